import asyncio
import sys
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from idealab.dashboard import app
from idealab.resources import ContentFeed, guides_feed, webinars_feed

GUIDES = [
    {"id": "g2", "title": "Pricing 101", "slug": "pricing-101", "status": "published", "created_at": "2025-02-01"},
    {"id": "g1", "title": "Validate fast", "slug": "validate-fast", "status": "published", "created_at": "2025-01-01"},
]

WEBINARS = [
    {"id": "w1", "title": "Kickoff", "slug": "kickoff", "status": "completed", "scheduled_date": "2025-01-10"},
    {"id": "w2", "title": "Draft session", "slug": "draft", "status": "draft", "scheduled_date": "2025-02-10"},
    {"id": "w3", "title": "Fundraising", "slug": "fundraising", "status": "scheduled", "scheduled_date": "2025-03-10"},
]


def test_feed_fetch_publishes_state():
    calls = []

    async def mock_list_resources(collection, status=None, order_by="created_at", descending=True, limit=100):
        calls.append((collection, status, order_by, descending))
        return [dict(row) for row in GUIDES]

    feed = guides_feed()
    with patch("idealab.resources.db.list_resources", side_effect=mock_list_resources):
        items = asyncio.run(feed.fetch())

    assert [item["id"] for item in items] == ["g2", "g1"]
    assert calls == [("guides", "published", "created_at", True)]
    assert feed.state() == {"data": items, "loading": False, "error": None}


def test_feed_error_leaves_data_empty():
    async def failing(*args, **kwargs):
        raise RuntimeError("permission denied")

    feed = ContentFeed("success_cases")
    feed.items = [{"id": "stale"}]
    with patch("idealab.resources.db.list_resources", side_effect=failing):
        asyncio.run(feed.refetch())

    assert feed.items == []
    assert feed.error == "permission denied"
    assert feed.loading is False


def test_webinars_skip_drafts_and_sort_by_date():
    calls = []

    async def mock_list_resources(collection, status=None, order_by="created_at", descending=True, limit=100):
        calls.append((collection, status, order_by, descending))
        return [dict(row) for row in WEBINARS]

    with patch("idealab.resources.db.list_resources", side_effect=mock_list_resources):
        items = asyncio.run(webinars_feed().fetch())

    assert [item["id"] for item in items] == ["w1", "w3"]
    assert calls == [("webinars", None, "scheduled_date", False)]


def test_get_by_slug_returns_none_on_miss_or_error():
    async def missing(collection, slug, status=None):
        return None

    async def failing(collection, slug, status=None):
        raise RuntimeError("boom")

    with patch("idealab.resources.db.get_resource_by_slug", side_effect=missing):
        assert asyncio.run(guides_feed().get_by_slug("nope")) is None
    with patch("idealab.resources.db.get_resource_by_slug", side_effect=failing):
        assert asyncio.run(guides_feed().get_by_slug("nope")) is None


def test_draft_webinar_is_hidden_by_slug():
    async def draft(collection, slug, status=None):
        return dict(WEBINARS[1])

    with patch("idealab.resources.db.get_resource_by_slug", side_effect=draft):
        assert asyncio.run(webinars_feed().get_by_slug("draft")) is None


class TestResourceRoutes:
    def setup_method(self):
        self.client = TestClient(app)

    def test_list_guides(self):
        async def mock_list_resources(collection, **kwargs):
            return [dict(row) for row in GUIDES]

        with patch("idealab.resources.db.list_resources", side_effect=mock_list_resources):
            response = self.client.get("/api/guides")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["total"] == 2

    def test_list_error_is_reported(self):
        async def failing(*args, **kwargs):
            raise RuntimeError("offline")

        with patch("idealab.resources.db.list_resources", side_effect=failing):
            response = self.client.get("/api/success-cases?lang=en")
        assert response.status_code == 500
        assert response.json()["items"] == []

    def test_guide_by_slug(self):
        async def by_slug(collection, slug, status=None):
            assert status == "published"
            return dict(GUIDES[0]) if slug == "pricing-101" else None

        with patch("idealab.resources.db.get_resource_by_slug", side_effect=by_slug):
            found = self.client.get("/api/guides/pricing-101")
            missing = self.client.get("/api/guides/unknown")

        assert found.status_code == 200
        assert found.json()["item"]["title"] == "Pricing 101"
        assert missing.status_code == 404
