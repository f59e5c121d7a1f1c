from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_app.config import Settings
from shortlink_app.dependencies import ServiceContainer
from shortlink_app.exceptions import ConflictError, ValidationError
from shortlink_app.models.log import AuditAction
from shortlink_app.schemas.url import ShortenRequest
from shortlink_app.storage.strategies import InMemoryRecordStore


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def shorten(client: TestClient, url="https://example.com/a", minutes=1, shortcode=None):
    body = {"originalUrl": url, "validityMinutes": minutes}
    if shortcode is not None:
        body["customShortcode"] = shortcode
    return client.post("/api/shorten", json=body)


class TakenStore(InMemoryRecordStore):
    """Every shortcode is already in use"""

    def exists(self, shortcode: str) -> bool:
        return True


class TestURLShortener:
    """Test URL shortener functionality over HTTP"""

    def test_create_short_url(self, client: TestClient, clock):
        """Test creating a short URL"""
        response = shorten(client)
        assert response.status_code == 200

        data = response.json()
        assert len(data["shortcode"]) == 6
        assert data["shortcode"].isalnum()
        assert data["originalUrl"] == "https://example.com/a"
        assert data["shortenedUrl"] == f"http://testserver/r/{data['shortcode']}"
        assert parse_iso(data["expiryTime"]) == clock.now + timedelta(minutes=1)

    def test_create_with_custom_shortcode(self, client: TestClient):
        response = shorten(client, shortcode="abc123")
        assert response.status_code == 200
        assert response.json()["shortcode"] == "abc123"

    def test_duplicate_custom_shortcode(self, client: TestClient):
        assert shorten(client, shortcode="abc123").status_code == 200

        response = shorten(client, url="https://example.com/b", shortcode="abc123")
        assert response.status_code == 409
        assert response.json() == {"error": "Shortcode already exists"}

    @pytest.mark.parametrize("body, message", [
        ({"validityMinutes": 5}, "Original URL is required"),
        ({"originalUrl": "not-a-valid-url", "validityMinutes": 5}, "Invalid URL format"),
        ({"originalUrl": "https://example.com", "validityMinutes": 0}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": -3}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": 2.5}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": "10"}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com"}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": 10**10}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": 2**64}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": 1e300}, "Validity must be a positive integer"),
        ({"originalUrl": "https://example.com", "validityMinutes": 5, "customShortcode": "my-code"},
         "Shortcode must be alphanumeric"),
    ])
    def test_invalid_create_requests(self, client: TestClient, store, body, message):
        """Each bad input gets its own message and nothing is stored"""
        response = client.post("/api/shorten", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": message}
        assert store.count() == 0

    def test_exhausted_shortcode_space(self, audit_log, clock):
        """Allocation giving up is a server fault: generic 500, real message in the log"""
        container = ServiceContainer(TakenStore(), audit_log, clock=clock)
        with TestClient(create_app(container)) as client:
            response = shorten(client)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        entries = audit_log.recent()
        assert [entry.action for entry in entries] == [
            AuditAction.SHORTEN_ATTEMPT,
            AuditAction.SHORTEN_ERROR,
        ]
        assert "Could not generate unique shortcode after 10 attempts" in entries[-1].details["error"]
        assert container.store.count() == 0
        container.close()

    def test_redirect_url(self, client: TestClient):
        """Test resolving a shortcode through the JSON API"""
        shortcode = shorten(client).json()["shortcode"]

        response = client.get(f"/api/redirect/{shortcode}")
        assert response.status_code == 200
        assert response.json() == {"originalUrl": "https://example.com/a", "success": True}

    def test_public_redirect(self, client: TestClient):
        """Test the /r/ link issues an actual HTTP redirect"""
        shortcode = shorten(client, url="https://www.github.com/").json()["shortcode"]

        response = client.get(f"/r/{shortcode}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_missing_shortcode(self, client: TestClient):
        response = client.get("/api/redirect/")
        assert response.status_code == 400
        assert response.json() == {"error": "Shortcode is required"}

    def test_redirect_nonexistent_url(self, client: TestClient, audit_log):
        response = client.get("/api/redirect/zzzzzz")
        assert response.status_code == 404
        assert response.json() == {"error": "Shortened URL not found"}

        actions = [entry.action for entry in audit_log.recent()]
        assert AuditAction.REDIRECT_SUCCESS not in actions

    def test_redirect_expired_url(self, client: TestClient, clock, store):
        shortcode = shorten(client, minutes=1).json()["shortcode"]
        clock.advance(minutes=1, seconds=1)

        response = client.get(f"/api/redirect/{shortcode}")
        assert response.status_code == 410
        assert response.json() == {"error": "Shortened URL has expired"}
        assert store.find_by_shortcode(shortcode).total_clicks == 0

    def test_redirect_records_click(self, client: TestClient, store):
        shortcode = shorten(client).json()["shortcode"]

        client.get(f"/api/redirect/{shortcode}", headers={"Referer": "https://news.example.org/"})

        record = store.find_by_shortcode(shortcode)
        assert record.total_clicks == 1
        click = record.clicks[0]
        assert click.source == "https://news.example.org/"
        assert click.user_agent == "testclient"
        assert click.ip == "testclient"
        assert click.location == "Unknown"

    def test_statistics(self, client: TestClient, clock):
        """One live and one expired record"""
        expiring = shorten(client, url="https://example.com/old", minutes=1).json()["shortcode"]
        client.get(f"/api/redirect/{expiring}")
        clock.advance(minutes=2)
        live = shorten(client, url="https://example.com/new", minutes=60).json()["shortcode"]
        client.get(f"/api/redirect/{live}")
        client.get(f"/api/redirect/{live}")

        response = client.get("/api/statistics")
        assert response.status_code == 200

        data = response.json()
        assert data["totalUrls"] == 2
        assert data["activeUrls"] == 1
        assert data["totalClicks"] == 3
        assert [url["shortcode"] for url in data["urls"]] == [expiring, live]
        assert data["urls"][0]["isExpired"] is True
        assert data["urls"][1]["isExpired"] is False
        assert len(data["urls"][1]["clicks"]) == 2

    def test_logs(self, client: TestClient):
        shortcode = shorten(client).json()["shortcode"]
        client.get(f"/api/redirect/{shortcode}")

        response = client.get("/api/logs", params={"limit": 2})
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 4
        assert [entry["action"] for entry in data["logs"]] == ["REDIRECT_ATTEMPT", "REDIRECT_SUCCESS"]
        assert data["logs"][1]["details"]["totalClicks"] == 1
        assert data["logs"][1]["userAgent"] == "testclient"

    def test_logs_default_limit(self, client: TestClient):
        for _ in range(60):
            client.get("/api/redirect/zzzzzz")

        data = client.get("/api/logs").json()
        assert data["total"] == 120
        assert len(data["logs"]) == 100

    @pytest.mark.parametrize("limit", ["abc", "", "1.5", "-2", "0"])
    def test_logs_bad_limit_uses_default(self, client: TestClient, limit):
        for _ in range(60):
            client.get("/api/redirect/zzzzzz")

        response = client.get("/api/logs", params={"limit": limit})

        assert response.status_code == 200
        assert len(response.json()["logs"]) == 100

    def test_health(self, client: TestClient):
        assert client.get("/health").json()["status"] == "healthy"


class TestURLService:
    """Test URL service business logic directly"""

    def test_short_code_generation(self, container, context):
        """Same long URL twice still gets two distinct records"""
        payload = ShortenRequest(original_url="https://www.test.com/", validity_minutes=10)
        url1 = container.url_service.create_short_url(payload, context)
        url2 = container.url_service.create_short_url(payload, context)

        assert url1.shortcode != url2.shortcode
        assert url1.original_url == url2.original_url

    def test_original_url_kept_verbatim(self, container, context):
        payload = ShortenRequest(original_url="https://example.com", validity_minutes=10)
        record = container.url_service.create_short_url(payload, context)
        assert record.original_url == "https://example.com"

    def test_record_fields(self, container, context, clock):
        payload = ShortenRequest(original_url="https://example.com/a", validity_minutes=1)
        record = container.url_service.create_short_url(payload, context, base_url="https://sho.rt/")

        assert record.shortened_url == f"https://sho.rt/r/{record.shortcode}"
        assert record.created_at == clock.now
        assert record.expiry_time - record.created_at == timedelta(milliseconds=60000)
        assert record.total_clicks == 0
        assert record.clicks == []
        assert record.is_expired is False

    def test_zero_validity_fails_before_store(self, container, context, store, audit_log):
        payload = ShortenRequest(original_url="https://example.com/a", validity_minutes=0)

        with pytest.raises(ValidationError):
            container.url_service.create_short_url(payload, context)

        assert store.count() == 0
        actions = [entry.action for entry in audit_log.recent()]
        assert actions == [AuditAction.SHORTEN_ATTEMPT, AuditAction.SHORTEN_ERROR]

    def test_validity_cap(self, store, audit_log, context, clock):
        container = ServiceContainer(
            store, audit_log, clock=clock, settings=Settings(max_validity_minutes=1440)
        )
        longest = ShortenRequest(original_url="https://example.com/a", validity_minutes=1440)
        record = container.url_service.create_short_url(longest, context)
        assert record.expiry_time == clock.now + timedelta(days=1)

        too_long = ShortenRequest(original_url="https://example.com/b", validity_minutes=1441)
        with pytest.raises(ValidationError) as exc_info:
            container.url_service.create_short_url(too_long, context)

        assert exc_info.value.message == "Validity must be a positive integer"
        assert store.count() == 1
        assert audit_log.recent()[-1].action == AuditAction.SHORTEN_ERROR

    def test_huge_validity_is_a_client_error(self, container, context, store):
        payload = ShortenRequest(original_url="https://example.com/a", validity_minutes=10**10)

        with pytest.raises(ValidationError):
            container.url_service.create_short_url(payload, context)
        assert store.count() == 0

    def test_duplicate_shortcode_conflict(self, container, context):
        payload = ShortenRequest(
            original_url="https://example.com/a",
            validity_minutes=5,
            custom_shortcode="abc123",
        )
        container.url_service.create_short_url(payload, context)

        with pytest.raises(ConflictError) as exc_info:
            container.url_service.create_short_url(payload, context)
        assert exc_info.value.message == "Shortcode already exists"

    def test_shortcode_not_reused_after_expiry(self, container, context, clock):
        payload = ShortenRequest(
            original_url="https://example.com/a",
            validity_minutes=1,
            custom_shortcode="reuse1",
        )
        container.url_service.create_short_url(payload, context)
        clock.advance(days=1)

        with pytest.raises(ConflictError):
            container.url_service.create_short_url(payload, context)

    def test_empty_custom_shortcode_generates_one(self, container, context):
        payload = ShortenRequest(
            original_url="https://example.com/a",
            validity_minutes=5,
            custom_shortcode="",
        )
        record = container.url_service.create_short_url(payload, context)
        assert len(record.shortcode) == 6

    def test_success_audit_entry(self, container, context, audit_log):
        payload = ShortenRequest(original_url="https://example.com/a", validity_minutes=5)
        record = container.url_service.create_short_url(payload, context)

        entry = audit_log.recent()[-1]
        assert entry.action == AuditAction.SHORTEN_SUCCESS
        assert entry.ip == "127.0.0.1"
        assert entry.details["shortcode"] == record.shortcode
        assert entry.details["expiryTime"] == record.expiry_time.isoformat()
