"""
Tests for click enrichment: visitor identity, user agent and geolocation.
"""
import asyncio
from types import SimpleNamespace

import pytest
from geoip2.errors import AddressNotFoundError

from linkpulse.click_processor.models import GeoLocation
from linkpulse.services.click_recorder import ClickRecorder
from linkpulse.services.geo import GeoLocator, GeoLocatorFactory, MaxMindGeoLocator, NullGeoLocator, normalize_ip
from linkpulse.services.user_agent import classify_user_agent

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


class MemoryClickStorage:
    """Captures stored clicks"""

    def __init__(self):
        self.clicks = []

    async def store_click(self, record):
        self.clicks.append(record)


class FixedGeoLocator(GeoLocator):
    def lookup(self, ip_address):
        return GeoLocation(country="DE", city="Berlin", latitude=52.52, longitude=13.40)


class BrokenGeoLocator(GeoLocator):
    def lookup(self, ip_address):
        raise OSError("database went away")


class TestUserAgent:
    @pytest.mark.parametrize("raw, os_name, device", [
        (IPHONE, "iOS", "mobile"),
        (IPAD, "iOS", "tablet"),
        (WINDOWS_CHROME, "Windows", "desktop"),
        (GOOGLEBOT, "Unknown", "bot"),
        ("", "Unknown", "desktop"),
        (None, "Unknown", "desktop"),
    ])
    def test_classification(self, raw, os_name, device):
        info = classify_user_agent(raw)

        assert info.os_name == os_name
        assert info.device_type == device


class TestVisitorIdentity:
    def test_existing_cookie_reused(self):
        assert ClickRecorder.identify_visitor("visitor-123") == ("visitor-123", False)

    def test_missing_cookie_mints_new_id(self):
        first, minted = ClickRecorder.identify_visitor(None)
        second, _ = ClickRecorder.identify_visitor("")

        assert minted is True
        assert len(first) == 32
        assert first != second


class TestRecord:
    def test_record_enriches_and_stores(self):
        storage = MemoryClickStorage()
        recorder = ClickRecorder(storage, FixedGeoLocator())

        click = asyncio.run(recorder.record("abc1234", IPHONE, "::ffff:203.0.113.7", "visitor-1"))

        assert storage.clicks == [click]
        assert click.alias == "abc1234"
        assert click.ip_address == "203.0.113.7"
        assert click.os_name == "iOS"
        assert click.device_type == "mobile"
        assert click.visitor_id == "visitor-1"
        assert click.geo.city == "Berlin"
        assert click.timestamp.tzinfo is not None

    def test_missing_visitor_id_is_minted(self):
        recorder = ClickRecorder(MemoryClickStorage())

        click = asyncio.run(recorder.record("abc1234", WINDOWS_CHROME, "203.0.113.7"))

        assert click.visitor_id
        assert click.geo is None

    def test_geo_failure_still_records(self):
        storage = MemoryClickStorage()
        recorder = ClickRecorder(storage, BrokenGeoLocator())

        click = asyncio.run(recorder.record("abc1234", IPHONE, "203.0.113.7", "visitor-1"))

        assert click.geo is None
        assert len(storage.clicks) == 1


class FakeReader:
    def __init__(self, found=True):
        self.found = found
        self.closed = False

    def city(self, ip_address):
        if not self.found:
            raise AddressNotFoundError(f"{ip_address} not in database")
        return SimpleNamespace(
            country=SimpleNamespace(iso_code="US"),
            city=SimpleNamespace(name="Austin"),
            location=SimpleNamespace(latitude=30.26, longitude=-97.74),
        )

    def close(self):
        self.closed = True


class TestGeo:
    def test_normalize_ip(self):
        assert normalize_ip("::ffff:10.0.0.1") == "10.0.0.1"
        assert normalize_ip("2001:db8::1") == "2001:db8::1"
        assert normalize_ip(None) is None

    def test_maxmind_lookup(self):
        geo = MaxMindGeoLocator(FakeReader()).lookup("8.8.8.8")

        assert geo == GeoLocation(country="US", city="Austin", latitude=30.26, longitude=-97.74)

    def test_maxmind_unknown_private_and_garbage(self):
        assert MaxMindGeoLocator(FakeReader(found=False)).lookup("8.8.8.8") is None
        assert MaxMindGeoLocator(FakeReader()).lookup("127.0.0.1") is None
        assert MaxMindGeoLocator(FakeReader()).lookup("192.168.1.10") is None
        assert MaxMindGeoLocator(FakeReader()).lookup("not-an-ip") is None

    def test_factory_without_database(self):
        assert isinstance(GeoLocatorFactory.create(None), NullGeoLocator)

    def test_factory_with_missing_database(self, tmp_path):
        locator = GeoLocatorFactory.create(str(tmp_path / "missing.mmdb"))

        assert isinstance(locator, NullGeoLocator)
