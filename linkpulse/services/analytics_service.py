"""
Analytics rollups over short links and their click events.

Each rollup combines two sources that are only eventually consistent:
- ShortLink.clicks (source of truth for total clicks)
- the click event log (dates, OS/device breakdowns, unique visitors)

Rollups are cached briefly; a cached rollup may lag behind new clicks for
up to analytics_cache_ttl seconds.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from linkpulse.cache.keys import analytics_key
from linkpulse.cache.strategies import CacheStrategy
from linkpulse.errors import LinkNotFound
from linkpulse.models.short_link import ShortLink
from linkpulse.schemas.analytics import (
    DateClicks,
    DeviceBucket,
    LinkSummary,
    OsBucket,
    OwnerRollup,
    Rollup,
    TopicRollup,
)
from linkpulse.services.link_service import build_short_url
from linkpulse.storage.click_storage import ClickStorageStrategy
from linkpulse.storage.link_store import LinkStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Rollup)


class AnalyticsAggregator:
    """
    Computes alias, topic and owner rollups.

    Cache-aside like resolution: look in the cache, otherwise compute from
    the stores and cache the result.
    """

    def __init__(
        self,
        store: LinkStore,
        clicks: ClickStorageStrategy,
        cache: CacheStrategy,
        base_url: str,
        cache_ttl: int = 300,
        window_days: int = 7,
        clock: Callable[[], datetime] = None,
    ):
        self.store = store
        self.clicks = clicks
        self.cache = cache
        self.base_url = base_url
        self.cache_ttl = cache_ttl
        self.window_days = window_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _window_start(self) -> datetime:
        return self._clock() - timedelta(days=self.window_days)

    async def for_alias(self, alias: str) -> Rollup:
        """
        Rollup for one link.

        Raises:
            LinkNotFound: no link (active or not) has this alias
        """
        key = analytics_key("alias", alias)
        cached = await self._cached(key, Rollup)
        if cached is not None:
            return cached

        link = await self.store.get(alias)
        if not link:
            raise LinkNotFound(f"Short link '{alias}' not found")

        rollup = await self._compute(Rollup, [link])
        await self._store(key, rollup)
        return rollup

    async def for_topic(self, topic: str) -> TopicRollup:
        """
        Rollup across every link tagged with `topic`, plus per-link summaries.

        Raises:
            LinkNotFound: no link carries this topic
        """
        key = analytics_key("topic", topic)
        cached = await self._cached(key, TopicRollup)
        if cached is not None:
            return cached

        links = await self.store.find_by_topic(topic)
        if not links:
            raise LinkNotFound(f"No short links for topic '{topic}'")

        rollup = await self._compute(TopicRollup, links)
        await self._store(key, rollup)
        return rollup

    async def for_owner(self, owner_id: str) -> OwnerRollup:
        """
        Rollup across every link the owner created, plus per-link summaries.

        Raises:
            LinkNotFound: the owner has no links
        """
        key = analytics_key("owner", owner_id)
        cached = await self._cached(key, OwnerRollup)
        if cached is not None:
            return cached

        links = await self.store.find_by_owner(owner_id)
        if not links:
            raise LinkNotFound(f"No short links for owner '{owner_id}'")

        rollup = await self._compute(OwnerRollup, links)
        await self._store(key, rollup)
        return rollup

    async def _compute(self, model: Type[R], links: List[ShortLink]) -> R:
        aliases = [link.alias for link in links]
        since = self._window_start()
        with_summaries = issubclass(model, TopicRollup)

        # Independent queries, run concurrently
        queries = [
            self.clicks.count_unique_visitors(aliases, since),
            self.clicks.clicks_by_date(aliases, since),
            self.clicks.breakdown(aliases, "os_name"),
            self.clicks.breakdown(aliases, "device_type"),
        ]
        if with_summaries:
            queries.append(self.clicks.unique_visitors_by_alias(aliases, since))

        unique_users, by_date, by_os, by_device, *rest = await asyncio.gather(*queries)

        fields = dict(
            total_clicks=sum(link.clicks or 0 for link in links),
            unique_users=unique_users,
            clicks_by_date=[DateClicks(**row) for row in by_date],
            os_type=[
                OsBucket(os_name=row["label"], unique_clicks=row["clicks"], unique_users=row["unique_users"])
                for row in by_os
            ],
            device_type=[
                DeviceBucket(device_name=row["label"], unique_clicks=row["clicks"], unique_users=row["unique_users"])
                for row in by_device
            ],
        )

        if with_summaries:
            per_alias = rest[0]
            fields["urls"] = [
                LinkSummary(
                    short_url=build_short_url(self.base_url, link.alias),
                    total_clicks=link.clicks or 0,
                    unique_users=per_alias.get(link.alias, 0),
                )
                for link in links
            ]
        if issubclass(model, OwnerRollup):
            fields["total_urls"] = len(links)

        return model(**fields)

    async def _cached(self, key: str, model: Type[R]) -> Optional[R]:
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            rollup = model.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable cached rollup %s", key)
            await self.cache.delete(key)
            return None
        logger.debug("Analytics cache hit %s", key)
        return rollup

    async def _store(self, key: str, rollup: Rollup):
        await self.cache.set(key, rollup.model_dump_json(by_alias=True), ttl=self.cache_ttl)
