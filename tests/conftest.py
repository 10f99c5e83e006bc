"""
Shared test fixtures for scouting-report-function.

Provides mock implementations of:
- aiohttp ClientSession (news provider HTTP calls)
- Google GenAI async client (Gemini completions)
- Settings objects built without touching the environment
- Raw provider article factories
"""

import hashlib
import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from scouting_report_function.config import AISettings, NewsSettings, ScoringSettings, Settings


# ============================================================================
# AIOHTTP MOCKING
# ============================================================================

class MockResponse:
    """Mock aiohttp response usable as an async context manager."""

    def __init__(self, status: int = 200, payload: Any = None, raise_error: Optional[Exception] = None):
        self.status = status
        self._payload = payload if payload is not None else {}
        self._raise_error = raise_error

    async def __aenter__(self):
        if self._raise_error is not None:
            raise self._raise_error
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            import aiohttp
            raise aiohttp.ClientResponseError(
                request_info=MagicMock(), history=(), status=self.status, message="error"
            )

    async def json(self, content_type=None):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class MockSession:
    """Mock aiohttp ClientSession recording every GET."""

    def __init__(self, responses: Optional[List[MockResponse]] = None, default: Optional[MockResponse] = None):
        self._responses = list(responses or [])
        self._default = default or MockResponse()
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Dict = None, timeout=None):
        self.calls.append({"url": url, "params": params or {}, "timeout": timeout})
        if self._responses:
            return self._responses.pop(0)
        return self._default


@pytest.fixture
def make_response():
    """Factory for mock aiohttp responses."""
    return MockResponse


@pytest.fixture
def mock_session():
    """Factory for mock aiohttp sessions."""
    def _create(*responses: MockResponse, default: Optional[MockResponse] = None) -> MockSession:
        return MockSession(list(responses), default)
    return _create


# ============================================================================
# GENAI MOCKING
# ============================================================================

class MockGenerateResponse:
    """Mock google-genai GenerateContentResponse."""

    def __init__(self, text: Optional[str]):
        self.text = text


class MockGenAIClient:
    """Mock genai.Client exposing client.aio.models.generate_content."""

    def __init__(self, text: Optional[str] = None, side_effect: Any = None):
        self.aio = MagicMock()
        self.aio.models.generate_content = AsyncMock(
            return_value=MockGenerateResponse(text),
            side_effect=side_effect,
        )

    @property
    def generate_content(self) -> AsyncMock:
        return self.aio.models.generate_content


@pytest.fixture
def mock_genai_client():
    """Factory for mock GenAI clients returning fixed text or raising."""
    def _create(text: Optional[str] = None, side_effect: Any = None) -> MockGenAIClient:
        return MockGenAIClient(text=text, side_effect=side_effect)
    return _create


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def news_settings():
    """News settings with only NewsAPI configured."""
    return NewsSettings(newsapi_key="test-newsapi-key")


@pytest.fixture
def unconfigured_news_settings():
    """News settings without any provider key."""
    return NewsSettings()


@pytest.fixture
def scoring_settings():
    """Default relevance scoring settings."""
    return ScoringSettings()


@pytest.fixture
def ai_settings():
    """AI settings with a Gemini API key."""
    return AISettings(api_key="test-gemini-key", timeout_seconds=1.0)


@pytest.fixture
def settings(news_settings, ai_settings):
    """Complete settings object."""
    return Settings(environment="local", news=news_settings, ai=ai_settings)


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

BASE_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def newsapi_article(
    title: str = "Al-Hilal coach explains formation change",
    description: Optional[str] = "The manager switched to a back three in training.",
    published_at: Optional[str] = None,
    url: Optional[str] = None,
    source: str = "Example Sports",
) -> Dict[str, Any]:
    """Create a raw NewsAPI /v2/everything article."""
    return {
        "source": {"id": None, "name": source},
        "author": "Reporter",
        "title": title,
        "description": description,
        "url": url or f"https://example.com/{hashlib.md5(title.encode()).hexdigest()[:8]}",
        "urlToImage": None,
        "publishedAt": published_at or BASE_TIME.isoformat().replace("+00:00", "Z"),
        "content": (description or "") + " [+1200 chars]",
    }


def raw_article(
    title: str = "Al-Hilal coach explains formation change",
    content: str = "The manager switched to a back three in training.",
    publish_date: Optional[str] = None,
    hours_ago: int = 0,
    source: str = "Example Sports",
    api_source: str = "newsapi",
) -> Dict[str, Any]:
    """Create an article in the aggregator's provider-neutral raw shape."""
    if publish_date is None:
        publish_date = (BASE_TIME - timedelta(hours=hours_ago)).isoformat()
    return {
        "title": title,
        "url": f"https://example.com/{hashlib.md5(title.encode()).hexdigest()[:8]}",
        "source": source,
        "publish_date": publish_date,
        "content": content,
        "api_source": api_source,
    }


@pytest.fixture
def make_newsapi_article():
    """Factory fixture for raw NewsAPI articles."""
    return newsapi_article


@pytest.fixture
def make_raw_article():
    """Factory fixture for provider-neutral raw articles."""
    return raw_article


@pytest.fixture
def sample_raw_articles():
    """Raw articles including a case/whitespace duplicate and a too-short headline."""
    return [
        raw_article("Al-Hilal injury update before derby", "Striker fitness doubt.", hours_ago=5),
        raw_article("Al-Hilal transfer target linked with January move", "", hours_ago=1),
        raw_article("  AL-HILAL INJURY UPDATE BEFORE DERBY  ", "Duplicate with different case.", hours_ago=0),
        raw_article("Short", "Too generic to keep.", hours_ago=2),
        raw_article("Al-Hilal fans celebrate anniversary", "Club history event.", hours_ago=3),
    ]
