import logging
from typing import NamedTuple, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError as PydanticValidationError

from linkpulse.cache.keys import url_key
from linkpulse.cache.strategies import CacheStrategy
from linkpulse.click_processor.executor import ClickTaskExecutor
from linkpulse.errors import AliasConflict, AliasExhausted, InvalidLongUrl
from linkpulse.models.short_link import ShortLink
from linkpulse.services.alias_generator import RESERVED_ALIASES, AliasGenerator
from linkpulse.services.click_recorder import ClickRecorder
from linkpulse.storage.link_store import LinkStore

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(HttpUrl)


def build_short_url(base_url: str, alias: str) -> str:
    return f"{base_url.rstrip('/')}/{alias}"


class ClickContext(NamedTuple):
    """Request details the redirect hands over for click recording"""
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    visitor_id: Optional[str] = None


class LinkService:
    """
    Link creation and cache-aside resolution.

    Store, cache, generator, recorder and executor are all injected; the
    service owns no connections of its own.
    """

    def __init__(
        self,
        store: LinkStore,
        cache: CacheStrategy,
        generator: AliasGenerator,
        recorder: ClickRecorder,
        executor: ClickTaskExecutor,
        base_url: str,
        url_cache_ttl: int = 24 * 60 * 60,
        max_alias_attempts: int = 5,
    ):
        self.store = store
        self.cache = cache
        self.generator = generator
        self.recorder = recorder
        self.executor = executor
        self.base_url = base_url
        self.url_cache_ttl = url_cache_ttl
        self.max_alias_attempts = max_alias_attempts

    def short_url_for(self, alias: str) -> str:
        return build_short_url(self.base_url, alias)

    async def create_short_link(
        self,
        owner_id: str,
        long_url: str,
        custom_alias: Optional[str] = None,
        topic: Optional[str] = None
    ) -> ShortLink:
        """Create a new short link

        Always creates a new link even if the long URL already exists, so the
        same destination can be tracked per campaign/topic.

        Process:
        1. Validate the long URL
        2. Custom alias: validate format, reject if taken, insert
           Generated alias: generate, check, insert - up to max_alias_attempts
        3. Prime the cache with the alias -> long URL mapping

        Raises:
            InvalidLongUrl, InvalidAliasFormat, AliasConflict, AliasExhausted
        """
        # Validated but stored as given, so redirects go exactly where the caller asked
        try:
            _http_url.validate_python(long_url)
        except PydanticValidationError as e:
            raise InvalidLongUrl(f"Invalid URL: {long_url}") from e

        if custom_alias:
            link = await self._insert_custom(owner_id, long_url, custom_alias, topic)
        else:
            link = await self._insert_generated(owner_id, long_url, topic)

        await self.cache.set(url_key(link.alias), link.long_url, ttl=self.url_cache_ttl)

        logger.info("Short link created owner=%s alias=%s topic=%s", owner_id, link.alias, topic)
        return link

    async def _insert_custom(self, owner_id: str, long_url: str, alias: str, topic: Optional[str]) -> ShortLink:
        self.generator.validate_custom(alias)

        if await self.store.alias_exists(alias):
            raise AliasConflict(f"Alias '{alias}' is already taken")

        # A concurrent creator can still win between the check and the
        # insert; the store's unique constraint turns that into AliasConflict.
        return await self.store.insert(
            ShortLink(owner_id=owner_id, long_url=long_url, alias=alias, topic=topic)
        )

    async def _insert_generated(self, owner_id: str, long_url: str, topic: Optional[str]) -> ShortLink:
        for attempt in range(1, self.max_alias_attempts + 1):
            alias = self.generator.generate(long_url)

            if alias in RESERVED_ALIASES or await self.store.alias_exists(alias):
                logger.debug("Generated alias %s already taken (attempt %d)", alias, attempt)
                continue

            try:
                return await self.store.insert(
                    ShortLink(owner_id=owner_id, long_url=long_url, alias=alias, topic=topic)
                )
            except AliasConflict:
                logger.debug("Lost insert race for alias %s (attempt %d)", alias, attempt)

        logger.error("Alias generation exhausted after %d attempts", self.max_alias_attempts)
        raise AliasExhausted(
            f"Could not generate a unique alias after {self.max_alias_attempts} attempts"
        )

    async def resolve(self, alias: str, context: Optional[ClickContext] = None) -> Optional[str]:
        """
        Get the long URL for a redirect using the Cache-Aside pattern.

        Flow:
        1. Check cache first
        2. On miss, query the store for an active link
        3. Populate cache for next time
        4. Schedule click side effects (never awaited) and return

        Returns None for unknown or inactive aliases; nothing is cached or
        recorded in that case.

        A link deactivated after being cached keeps resolving until its cache
        entry expires (at most url_cache_ttl seconds).
        """
        cache_key = url_key(alias)

        # Step 1: Try cache first (a cache outage reads as a miss)
        long_url = await self.cache.get(cache_key)

        if long_url is None:
            # Step 2: Cache MISS - query the store
            link = await self.store.get_active(alias)
            if not link:
                return None

            long_url = link.long_url

            # Step 3: Populate cache. Concurrent misses all write the same value.
            await self.cache.set(cache_key, long_url, ttl=self.url_cache_ttl)

        # Step 4: Fire-and-forget click side effects
        self._schedule_click(alias, context or ClickContext())
        return long_url

    def _schedule_click(self, alias: str, context: ClickContext):
        # Counter and event log are independent jobs: either may fail alone.
        self.executor.submit(f"increment clicks for {alias}", self.store.increment_clicks, alias)
        self.executor.submit(
            f"record click for {alias}",
            self.recorder.record,
            alias,
            context.user_agent,
            context.ip_address,
            context.visitor_id,
        )

    async def deactivate(self, alias: str) -> bool:
        """
        Soft-delete a link by clearing its active flag.

        The cached mapping is not invalidated; redirects may continue until
        it expires.
        """
        updated = await self.store.set_active(alias, False)
        if updated:
            logger.info("Short link deactivated alias=%s", alias)
        return updated
