import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from media_newsletter.models.content import MediaRecord


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, payload: Any = None, body: str = "", delay: float = 0):
        self.status = status
        self.payload = payload
        self.body = body
        self.delay = delay

    async def __aenter__(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type: Optional[str] = "application/json"):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def text(self):
        return self.body


class FakeSession:
    """Records requests and replays canned responses.

    ``post_responses`` are returned in order. ``get_routes`` maps a URL path
    suffix to a response.
    """

    def __init__(
        self,
        post_responses: Optional[List[Any]] = None,
        get_routes: Optional[Dict[str, Any]] = None,
    ):
        self.post_responses = list(post_responses or [])
        self.get_routes = dict(get_routes or {})
        self.calls: List[Dict[str, Any]] = []

    def _reply(self, response):
        if isinstance(response, BaseException):
            raise response
        return response

    def post(self, url, **kwargs):
        self.calls.append({"method": "POST", "url": url, **kwargs})
        return self._reply(self.post_responses.pop(0))

    def get(self, url, **kwargs):
        self.calls.append({"method": "GET", "url": url, **kwargs})
        for suffix, response in self.get_routes.items():
            if url.endswith(suffix):
                return self._reply(response)
        return FakeResponse(status=404, body="not found")


def make_record(
    title: str = "Inception",
    item_type: str = "Movie",
    days_ago: int = 1,
    **fields,
) -> MediaRecord:
    fields.setdefault("id", title.lower().replace(" ", "-"))
    return MediaRecord(
        title=title,
        type=item_type,
        date_added=datetime.now(timezone.utc) - timedelta(days=days_ago),
        **fields,
    )


@pytest.fixture
def records() -> List[MediaRecord]:
    """A small mixed library: two movies, a series, an album and a book."""
    return [
        make_record(
            "Inception",
            "Movie",
            year=2010,
            overview="A thief who steals corporate secrets through dream-sharing.",
            genres=["Action", "Sci-Fi", "Thriller", "Mystery"],
            director="Christopher Nolan",
            community_rating=8.8,
            poster_url="http://jellyfin.local/Items/inception/Images/Primary",
        ),
        make_record("Arrival", "Movie", year=2016, days_ago=2),
        make_record("The Expanse", "Series", year=2015, days_ago=3),
        make_record("Random Access Memories", "MusicAlbum", year=2013, days_ago=4),
        make_record("Dune", "Book", days_ago=5),
    ]


@pytest.fixture
def make_settings():
    """Build Settings that ignore any local .env file."""
    from media_newsletter.models.settings import Settings

    def _make(**overrides):
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def valid_settings(make_settings):
    return make_settings(
        ai_provider="OpenAI",
        ai_api_key="sk-test-0123456789abcdefghij",
        smtp_server="smtp.example.com",
        smtp_username="mailer",
        smtp_password="secret",
        sender_email="newsletter@example.com",
        recipients="alice@example.com, bob@example.com",
        jellyfin_url="http://jellyfin.local:8096",
        jellyfin_api_key="jf-key",
    )
