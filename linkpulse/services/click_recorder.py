"""
Click capture.

The recorder enriches a raw redirect (user agent, IP, visitor cookie) into a
ClickRecord and writes it to click storage. It is always invoked from the
background executor, so it may block on storage without slowing redirects;
any exception it raises is logged by the executor.
"""

import logging
import uuid
from typing import Optional, Tuple

from linkpulse.click_processor.models import ClickRecord
from linkpulse.services.geo import GeoLocator, NullGeoLocator, normalize_ip
from linkpulse.services.user_agent import classify_user_agent
from linkpulse.storage.click_storage import ClickStorageStrategy

logger = logging.getLogger(__name__)


def new_visitor_id() -> str:
    return uuid.uuid4().hex


class ClickRecorder:
    """Builds and persists click events"""

    def __init__(self, storage: ClickStorageStrategy, geo_locator: Optional[GeoLocator] = None):
        self.storage = storage
        self.geo_locator = geo_locator or NullGeoLocator()

    @staticmethod
    def identify_visitor(cookie_value: Optional[str]) -> Tuple[str, bool]:
        """
        Resolve the visitor identifier for a request.

        Returns:
            (visitor_id, minted) - minted is True when the boundary must set
            the long-lived cookie because the client didn't send one
        """
        if cookie_value:
            return cookie_value, False
        return new_visitor_id(), True

    def build(
        self,
        alias: str,
        user_agent: Optional[str],
        ip_address: Optional[str],
        visitor_id: Optional[str] = None
    ) -> ClickRecord:
        client = classify_user_agent(user_agent)
        ip_address = normalize_ip(ip_address)

        try:
            geo = self.geo_locator.lookup(ip_address)
        except Exception as e:
            # Location is optional; a broken lookup must not lose the click
            logger.warning("Geo lookup error for %s: %s", ip_address, e)
            geo = None

        return ClickRecord(
            alias=alias,
            user_agent=user_agent,
            ip_address=ip_address,
            geo=geo,
            os_name=client.os_name,
            device_type=client.device_type,
            visitor_id=visitor_id or new_visitor_id(),
        )

    async def record(
        self,
        alias: str,
        user_agent: Optional[str],
        ip_address: Optional[str],
        visitor_id: Optional[str] = None
    ) -> ClickRecord:
        """Enrich and store one click. Storage errors propagate to the executor."""
        click = self.build(alias, user_agent, ip_address, visitor_id)
        await self.storage.store_click(click)

        logger.info(
            "Click recorded alias=%s os=%s device=%s country=%s",
            alias, click.os_name, click.device_type,
            click.geo.country if click.geo else None,
        )
        return click
