"""
IP geolocation strategies.

Lookups are best effort: any failure yields None and the click is recorded
without a location.
"""

import ipaddress
import logging
from abc import ABC, abstractmethod
from typing import Optional

from linkpulse.click_processor.models import GeoLocation

logger = logging.getLogger(__name__)


def normalize_ip(ip_address: Optional[str]) -> Optional[str]:
    """Strip the IPv4-mapped IPv6 prefix (::ffff:1.2.3.4 -> 1.2.3.4)"""
    if not ip_address:
        return None
    if ip_address.lower().startswith("::ffff:"):
        return ip_address[7:]
    return ip_address


class GeoLocator(ABC):
    """Resolves an IP address to a location"""

    @abstractmethod
    def lookup(self, ip_address: Optional[str]) -> Optional[GeoLocation]:
        pass

    def close(self) -> None:
        return None


class NullGeoLocator(GeoLocator):
    """Used when no geolocation database is configured"""

    def lookup(self, ip_address: Optional[str]) -> Optional[GeoLocation]:
        return None


class MaxMindGeoLocator(GeoLocator):
    """Looks addresses up in a local MaxMind GeoLite2/GeoIP2 City database"""

    def __init__(self, reader):
        """
        Args:
            reader: geoip2.database.Reader opened on a City database
        """
        self.reader = reader

    def lookup(self, ip_address: Optional[str]) -> Optional[GeoLocation]:
        from geoip2.errors import AddressNotFoundError

        ip_address = normalize_ip(ip_address)
        if not ip_address:
            return None
        try:
            address = ipaddress.ip_address(ip_address)
        except ValueError:
            return None
        if address.is_private or address.is_loopback:
            return None

        try:
            response = self.reader.city(ip_address)
        except AddressNotFoundError:
            return None
        except ValueError as e:
            logger.debug("Geo lookup failed for %s: %s", ip_address, e)
            return None

        return GeoLocation(
            country=response.country.iso_code,
            city=response.city.name,
            latitude=response.location.latitude,
            longitude=response.location.longitude,
        )

    def close(self) -> None:
        self.reader.close()


class GeoLocatorFactory:
    """Picks a locator based on whether a database path is configured"""

    @classmethod
    def create(cls, database_path: Optional[str]) -> GeoLocator:
        if not database_path:
            logger.info("No GeoIP database configured, clicks recorded without location")
            return NullGeoLocator()

        import geoip2.database
        from maxminddb.errors import InvalidDatabaseError

        try:
            reader = geoip2.database.Reader(database_path)
        except (OSError, InvalidDatabaseError) as e:
            logger.warning("GeoIP database %s unusable (%s), clicks recorded without location", database_path, e)
            return NullGeoLocator()

        logger.info("GeoIP database loaded from %s", database_path)
        return MaxMindGeoLocator(reader)
