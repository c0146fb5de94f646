"""
Application container.

Everything that holds a connection (engine, cache client, GeoIP reader) or
shared state (alias counter, background executor) is built exactly once at
startup here and passed to the components that need it.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from linkpulse.auth.providers import AuthProvider, HeaderAuthProvider
from linkpulse.cache.factory import CacheBackend, CacheFactory
from linkpulse.cache.strategies import CacheStrategy
from linkpulse.click_processor.executor import ClickTaskExecutor
from linkpulse.config import Settings
from linkpulse.database.connection import build_engine, build_session_factory, init_db
from linkpulse.services.alias_generator import AliasGenerator
from linkpulse.services.analytics_service import AnalyticsAggregator
from linkpulse.services.click_recorder import ClickRecorder
from linkpulse.services.geo import GeoLocator, GeoLocatorFactory
from linkpulse.services.link_service import LinkService
from linkpulse.storage.click_storage import SQLClickStorage
from linkpulse.storage.link_store import LinkStore

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    engine: Engine
    cache: CacheStrategy
    geo_locator: GeoLocator
    executor: ClickTaskExecutor
    link_store: LinkStore
    click_storage: SQLClickStorage
    recorder: ClickRecorder
    link_service: LinkService
    analytics: AnalyticsAggregator
    auth: AuthProvider

    async def start(self):
        await self.executor.start()

    async def close(self):
        """Let pending clicks settle, then release connections"""
        await self.executor.stop()
        await self.cache.close()
        self.geo_locator.close()
        self.engine.dispose()
        logger.info("Container closed")


async def build_container(settings: Settings, cache: CacheStrategy = None) -> Container:
    """
    Wire the application.

    Args:
        settings: Configuration to build from
        cache: Pre-built cache to share instead of creating one from settings
    """
    engine = build_engine(settings.database_url)
    init_db(engine)
    session_factory = build_session_factory(engine)

    if cache is None:
        cache = await CacheFactory.create(
            CacheBackend(settings.cache_backend),
            redis_url=settings.redis_url,
            socket_timeout=settings.cache_socket_timeout,
        )

    geo_locator = GeoLocatorFactory.create(settings.geoip_database_path)
    executor = ClickTaskExecutor(
        worker_count=settings.click_worker_count,
        max_queue_size=settings.click_queue_size,
    )

    link_store = LinkStore(session_factory, timeout=settings.store_timeout)
    click_storage = SQLClickStorage(session_factory, timeout=settings.store_timeout)
    recorder = ClickRecorder(click_storage, geo_locator)

    link_service = LinkService(
        store=link_store,
        cache=cache,
        generator=AliasGenerator(length=settings.alias_length),
        recorder=recorder,
        executor=executor,
        base_url=settings.base_url,
        url_cache_ttl=settings.url_cache_ttl,
        max_alias_attempts=settings.max_alias_attempts,
    )
    analytics = AnalyticsAggregator(
        store=link_store,
        clicks=click_storage,
        cache=cache,
        base_url=settings.base_url,
        cache_ttl=settings.analytics_cache_ttl,
        window_days=settings.analytics_window_days,
    )

    return Container(
        settings=settings,
        engine=engine,
        cache=cache,
        geo_locator=geo_locator,
        executor=executor,
        link_store=link_store,
        click_storage=click_storage,
        recorder=recorder,
        link_service=link_service,
        analytics=analytics,
        auth=HeaderAuthProvider(settings.owner_header),
    )
