import asyncio
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from linkpulse.click_processor.models import ClickRecord
from linkpulse.errors import TransientStoreError

from conftest import BASE_URL


def shorten(client, headers, **body):
    body.setdefault("longUrl", "https://www.google.com/")
    return client.post("/shorten", json=body, headers=headers)


class TestShorten:
    """Test POST /shorten"""

    def test_create_short_link(self, client: TestClient, auth_headers):
        response = shorten(client, auth_headers, topic="search")
        assert response.status_code == 201

        data = response.json()
        assert len(data["alias"]) == 7
        assert data["shortUrl"] == f"{BASE_URL}/{data['alias']}"
        assert data["longUrl"] == "https://www.google.com/"
        assert data["topic"] == "search"
        assert data["createdAt"]

    def test_requires_owner(self, client: TestClient):
        response = shorten(client, {})
        assert response.status_code == 401

    def test_custom_alias(self, client: TestClient, auth_headers):
        response = shorten(client, auth_headers, customAlias="My_Alias1")
        assert response.status_code == 201
        assert response.json()["alias"] == "My_Alias1"

    def test_duplicate_custom_alias(self, client: TestClient, auth_headers):
        assert shorten(client, auth_headers, customAlias="dupe-alias").status_code == 201

        response = shorten(client, auth_headers, longUrl="https://other.example/", customAlias="dupe-alias")
        assert response.status_code == 400

        # First link still redirects to its own URL
        redirect = client.get("/dupe-alias", follow_redirects=False)
        assert redirect.headers["location"] == "https://www.google.com/"

    def test_invalid_custom_alias(self, client: TestClient, auth_headers):
        assert shorten(client, auth_headers, customAlias="bad alias!").status_code == 400
        assert shorten(client, auth_headers, customAlias="ab").status_code == 400

    def test_invalid_url(self, client: TestClient, auth_headers):
        response = shorten(client, auth_headers, longUrl="not-a-valid-url")
        assert response.status_code == 400

    def test_reserved_alias_rejected(self, client: TestClient, auth_headers):
        response = shorten(client, auth_headers, customAlias="health")
        assert response.status_code == 400

        # Fixed routes keep answering
        assert client.get("/health").json()["status"] == "healthy"
        assert shorten(client, auth_headers, customAlias="overall").status_code == 400

    def test_long_url_echoed_unchanged(self, client: TestClient, auth_headers):
        response = shorten(client, auth_headers, longUrl="https://www.google.com")
        assert response.json()["longUrl"] == "https://www.google.com"

        redirect = client.get(f"/{response.json()['alias']}", follow_redirects=False)
        assert redirect.headers["location"] == "https://www.google.com"

    def test_store_unavailable(self, client: TestClient, auth_headers):
        async def unavailable(alias):
            raise TransientStoreError("Store unavailable")

        client.app.state.container.link_store.alias_exists = unavailable

        response = shorten(client, auth_headers, customAlias="down-alias")
        assert response.status_code == 500


class TestRedirect:
    """Test GET /{alias}"""

    def test_redirect_sets_visitor_cookie(self, client: TestClient, auth_headers):
        alias = shorten(client, auth_headers, longUrl="https://www.github.com/").json()["alias"]

        response = client.get(f"/{alias}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("visitorId=")
        assert "Max-Age=31536000" in cookie
        assert "HttpOnly" in cookie

    def test_existing_visitor_cookie_kept(self, client: TestClient, auth_headers):
        alias = shorten(client, auth_headers).json()["alias"]
        client.cookies.set("visitorId", "returning-visitor")

        response = client.get(f"/{alias}", follow_redirects=False)
        assert response.status_code == 302
        assert "set-cookie" not in response.headers

    def test_redirect_nonexistent(self, client: TestClient):
        response = client.get("/zzzzz99", follow_redirects=False)
        assert response.status_code == 404

    def test_redirect_store_unavailable(self, client: TestClient):
        async def unavailable(alias):
            raise TransientStoreError("Store unavailable")

        client.app.state.container.link_store.get_active = unavailable

        response = client.get("/zzzzz99", follow_redirects=False)
        assert response.status_code == 500


class TestAnalyticsEndpoints:
    """Test the /analytics routes"""

    def test_alias_analytics(self, client: TestClient, auth_headers):
        shorten(client, auth_headers, customAlias="abc1234")
        container = client.app.state.container
        now = datetime.now(timezone.utc)
        asyncio.run(container.click_storage.store_clicks([
            ClickRecord(alias="abc1234", timestamp=now, os_name="iOS", device_type="mobile", visitor_id="a"),
            ClickRecord(alias="abc1234", timestamp=now, os_name="iOS", device_type="mobile", visitor_id="a"),
            ClickRecord(alias="abc1234", timestamp=now, os_name="Windows", device_type="desktop", visitor_id="b"),
        ]))

        response = client.get("/analytics/abc1234", headers=auth_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["uniqueUsers"] == 2
        assert data["clicksByDate"] == [{"date": now.strftime("%Y-%m-%d"), "clicks": 3}]
        assert sum(bucket["uniqueClicks"] for bucket in data["osType"]) == 3
        assert all(bucket["uniqueUsers"] <= 2 for bucket in data["deviceType"])
        assert {bucket["osName"] for bucket in data["osType"]} == {"iOS", "Windows"}

    def test_alias_analytics_unknown(self, client: TestClient, auth_headers):
        response = client.get("/analytics/nope123", headers=auth_headers)
        assert response.status_code == 404

    def test_analytics_requires_owner(self, client: TestClient):
        assert client.get("/analytics/overall").status_code == 401

    def test_analytics_store_unavailable(self, client: TestClient, auth_headers):
        async def unavailable(owner_id):
            raise TransientStoreError("Store unavailable")

        client.app.state.container.link_store.find_by_owner = unavailable

        response = client.get("/analytics/overall", headers=auth_headers)
        assert response.status_code == 500

    def test_unknown_topic_is_all_zero(self, client: TestClient, auth_headers):
        response = client.get("/analytics/topic/unknown", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {
            "totalClicks": 0,
            "uniqueUsers": 0,
            "clicksByDate": [],
            "osType": [],
            "deviceType": [],
            "urls": [],
        }

    def test_topic_analytics(self, client: TestClient, auth_headers):
        shorten(client, auth_headers, customAlias="spring-1", topic="spring")
        shorten(client, auth_headers, customAlias="spring-2", topic="spring")

        data = client.get("/analytics/topic/spring", headers=auth_headers).json()
        assert {url["shortUrl"] for url in data["urls"]} == {
            f"{BASE_URL}/spring-1",
            f"{BASE_URL}/spring-2",
        }

    def test_overall_analytics(self, client: TestClient, auth_headers):
        empty = client.get("/analytics/overall", headers=auth_headers).json()
        assert empty["totalUrls"] == 0

        shorten(client, auth_headers)
        shorten(client, auth_headers, longUrl="https://www.python.org/")
        shorten(client, {"X-Owner-Id": "someone-else"})

        data = client.get("/analytics/overall", headers=auth_headers).json()
        assert data["totalUrls"] == 2
        assert len(data["urls"]) == 2


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "environment": "test"}
