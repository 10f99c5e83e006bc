"""
News aggregator for fetching team news from multiple external APIs.

Supports: NewsAPI, GNews API, WorldNewsAPI

Each (provider, query) pair is fetched concurrently with its own timeout and
failure isolation. Raw articles are normalized into NewsItem, deduplicated on
headline, scored for tactical relevance and sorted newest first. When no
provider is configured or nothing usable comes back, templated mock items are
returned so downstream analysis always has something to work with.
"""

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import aiohttp

from .config import NewsSettings, ScoringSettings
from .errors import MalformedResponse, ProviderUnavailable
from .models import NewsItem

logger = logging.getLogger(__name__)

NEWSAPI_URL = "https://newsapi.org/v2/everything"
GNEWS_URL = "https://gnews.io/api/v4/search"
WORLDNEWSAPI_URL = "https://api.worldnewsapi.com/search-news"

MIN_QUERY_VARIANTS = 2
MAX_QUERY_VARIANTS = 4

LATEST_NEWS_QUERIES = ["football tactics", "football transfer news"]

# (headline, content, source, age in days); {team} is substituted
MOCK_NEWS_TEMPLATES = [
    ("{team} prepares tactical adjustments for upcoming fixtures",
     "Team showing strong form with new strategic approach in recent training.",
     "Football Analysis", 0),
    ("Latest team updates from {team} training ground",
     "Key player fitness reports and tactical preparation updates.",
     "Sports Central", 1),
    ("{team} tactical review: Recent performance analysis",
     "Comprehensive look at formation changes and player roles.",
     "Tactical Insights", 2),
    ("{team} coach weighs squad rotation before next match",
     "Manager hints at lineup changes to manage fitness across a congested schedule.",
     "Matchday Report", 3),
    ("{team} defensive shape under scrutiny after recent results",
     "Analysts point to gaps between the lines when the full-backs push forward.",
     "Tactical Insights", 4),
]

MOCK_LATEST_TEMPLATES = [
    ("Global football tactical trends analysis",
     "Latest developments in modern football strategy.",
     "Football Intelligence", 0),
]

_QUOTE_CHARS = re.compile(r'["“”]')
_WHITESPACE = re.compile(r"\s+")


class TimeRangeEnum(str, Enum):
    """Time range options for news queries"""
    LAST_24_HOURS = "last_24_hours"
    LAST_3_DAYS = "last_3_days"
    LAST_WEEK = "last_week"
    LAST_MONTH = "last_month"


TIME_RANGE_DELTAS = {
    TimeRangeEnum.LAST_24_HOURS: timedelta(days=1),
    TimeRangeEnum.LAST_3_DAYS: timedelta(days=3),
    TimeRangeEnum.LAST_WEEK: timedelta(days=7),
    TimeRangeEnum.LAST_MONTH: timedelta(days=30),
}


def sanitize_team_name(team_name: str) -> str:
    """Strip double quotes and collapse whitespace so the name can be quoted in a query."""
    if not team_name:
        return ""
    return _WHITESPACE.sub(" ", _QUOTE_CHARS.sub("", team_name)).strip()


def parse_published_at(value: Optional[str]) -> Optional[datetime]:
    """Parse a provider timestamp into an aware UTC datetime; None if unparseable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip().replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class NewsAggregator:
    """News aggregator for fetching and ranking team news from multiple APIs"""

    def __init__(self, settings: NewsSettings, scoring: Optional[ScoringSettings] = None):
        """Initialize the news aggregator with provider settings and scoring parameters."""
        self.settings = settings
        self.scoring = scoring or ScoringSettings()
        self._scoring_keywords = [k.lower() for k in self.scoring.keywords if k]

        try:
            self.time_range = TimeRangeEnum(settings.time_range)
        except ValueError:
            logger.warning(f"Invalid time_range '{settings.time_range}', using {TimeRangeEnum.LAST_WEEK.value}")
            self.time_range = TimeRangeEnum.LAST_WEEK

    def get_available_sources(self) -> List[str]:
        """Get list of available news sources based on configured API keys."""
        sources = []

        if self.settings.newsapi_key:
            sources.append('newsapi')
        if self.settings.gnews_api_key:
            sources.append('gnews')
        if self.settings.worldnewsapi_key:
            sources.append('worldnewsapi')

        return sources

    def get_date_range(self, now: Optional[datetime] = None) -> Dict[str, str]:
        """Get date range based on the time range setting."""
        now = now or datetime.now(timezone.utc)
        from_date = now - TIME_RANGE_DELTAS[self.time_range]

        # Date-only format (YYYY-MM-DD) is accepted by every provider
        return {
            "from": from_date.strftime("%Y-%m-%d"),
            "to": now.strftime("%Y-%m-%d")
        }

    def build_queries(self, team_name: str) -> List[str]:
        """
        Build 2-4 query variants pairing the quoted team name with tactical keywords.

        Separate narrow queries recall better than one broad OR query against
        keyword-indexed providers.
        """
        team = sanitize_team_name(team_name)
        if not team:
            return []

        quoted = f'"{team}"'
        queries = [f"{quoted} {keyword}" for keyword in self.settings.query_keywords[:MAX_QUERY_VARIANTS] if keyword]
        if len(queries) < MIN_QUERY_VARIANTS:
            queries.insert(0, quoted)
        if len(queries) < MIN_QUERY_VARIANTS:
            queries.append(f"{quoted} football")
        return queries

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    async def _get_json(self, session: aiohttp.ClientSession, provider: str, url: str, params: Dict) -> Dict:
        """
        GET a provider endpoint with its own timeout.

        Raises:
            ProviderUnavailable: rate limit, HTTP error, network error or timeout
            MalformedResponse: body is not a JSON object
        """
        try:
            async with session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.settings.query_timeout)
            ) as response:
                if response.status == 429:
                    raise ProviderUnavailable(provider, "rate limit reached")
                response.raise_for_status()
                data = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            raise ProviderUnavailable(provider, f"HTTP {e.status}") from e
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(provider, f"timed out after {self.settings.query_timeout}s") from e
        except aiohttp.ClientError as e:
            raise ProviderUnavailable(provider, str(e)) from e
        except ValueError as e:
            raise MalformedResponse(f"{provider}: response is not valid JSON") from e

        if not isinstance(data, dict):
            raise MalformedResponse(f"{provider}: expected a JSON object, got {type(data).__name__}")
        return data

    async def _fetch_isolated(
        self,
        provider: str,
        query: str,
        request: Callable[[], Awaitable[Dict]],
        extract: Callable[[Dict], List[Dict]],
    ) -> List[Dict]:
        """Run one provider query; any provider failure becomes an empty result."""
        try:
            logger.info(f"Fetching from {provider} with query: {query}")
            data = await request()
            articles = extract(data)
            logger.info(f"{provider} returned {len(articles)} articles for query: {query}")
            return articles
        except ProviderUnavailable as e:
            logger.warning(f"{provider} unavailable: {e}")
            return []
        except MalformedResponse as e:
            logger.error(f"{provider} malformed response: {e}")
            return []
        except Exception as e:
            logger.error(f"{provider} Error: {e}")
            return []

    async def fetch_newsapi_articles(self, session: aiohttp.ClientSession, query: str) -> List[Dict]:
        """Fetch news via NewsAPI."""
        if not self.settings.newsapi_key:
            logger.warning("NewsAPI key not provided, skipping")
            return []

        params = {
            "q": query,
            "language": self.settings.language,
            "from": self.get_date_range()["from"],
            "apiKey": self.settings.newsapi_key,
            "pageSize": min(self.settings.page_size, 100),
            "sortBy": "publishedAt",
            "searchIn": "title,description"
        }

        if self.settings.domains:
            params["domains"] = ",".join(self.settings.domains)

        def extract(data: Dict) -> List[Dict]:
            return [{
                "title": article.get("title"),
                "url": article.get("url"),
                "source": (article.get("source") or {}).get("name") or "NewsAPI",
                "publish_date": article.get("publishedAt"),
                "content": article.get("description") or "",
                "api_source": "newsapi",
            } for article in data.get("articles") or [] if isinstance(article, dict)]

        return await self._fetch_isolated(
            "NewsAPI", query, lambda: self._get_json(session, "NewsAPI", NEWSAPI_URL, params), extract
        )

    async def fetch_gnews_articles(self, session: aiohttp.ClientSession, query: str) -> List[Dict]:
        """Fetch news via GNews API."""
        if not self.settings.gnews_api_key:
            logger.warning("GNews API key not provided, skipping")
            return []

        params = {
            "q": query,
            "lang": self.settings.language,
            "from": self.get_date_range()["from"] + "T00:00:00Z",
            "apikey": self.settings.gnews_api_key,
            "max": min(self.settings.page_size, 100),
            "sortby": "publishedAt"
        }

        def extract(data: Dict) -> List[Dict]:
            return [{
                "title": article.get("title"),
                "url": article.get("url"),
                "source": article["source"].get("name") or "GNews" if isinstance(article.get("source"), dict) else "GNews",
                "publish_date": article.get("publishedAt"),
                "content": article.get("description") or "",
                "api_source": "gnews",
            } for article in data.get("articles") or [] if isinstance(article, dict)]

        return await self._fetch_isolated(
            "GNews", query, lambda: self._get_json(session, "GNews", GNEWS_URL, params), extract
        )

    async def fetch_worldnewsapi_articles(self, session: aiohttp.ClientSession, query: str) -> List[Dict]:
        """Fetch news via WorldNewsAPI."""
        if not self.settings.worldnewsapi_key:
            logger.warning("WorldNewsAPI key not provided, skipping")
            return []

        params = {
            "text": query,
            "language": self.settings.language,
            "earliest-publish-date": self.get_date_range()["from"],
            "api-key": self.settings.worldnewsapi_key,
            "number": min(self.settings.page_size, 100),
            "sort": "publish-time",
            "sort-direction": "desc"
        }

        if self.settings.domains:
            params["news-sources"] = ",".join(f"https://{d}" for d in self.settings.domains)

        def extract(data: Dict) -> List[Dict]:
            return [{
                "title": article.get("title"),
                "url": article.get("url"),
                "source": article.get("source_name") or self._extract_domain(article.get("url") or ""),
                "publish_date": article.get("publish_date"),
                "content": article.get("summary") or (article.get("text") or "")[:500],
                "api_source": "worldnewsapi",
            } for article in data.get("news") or [] if isinstance(article, dict)]

        return await self._fetch_isolated(
            "WorldNewsAPI", query, lambda: self._get_json(session, "WorldNewsAPI", WORLDNEWSAPI_URL, params), extract
        )

    def _extract_domain(self, url: str) -> str:
        """Extract domain name from URL for source attribution."""
        try:
            from urllib.parse import urlparse
            parsed = urlparse(url)
            domain = parsed.netloc.replace("www.", "")
            return domain.split('.')[0].title() if domain else "Unknown"
        except ValueError:
            return "Unknown"

    def _provider_fetchers(self) -> List[Callable[[aiohttp.ClientSession, str], Awaitable[List[Dict]]]]:
        fetchers = []
        if self.settings.newsapi_key:
            fetchers.append(self.fetch_newsapi_articles)
        if self.settings.gnews_api_key:
            fetchers.append(self.fetch_gnews_articles)
        if self.settings.worldnewsapi_key:
            fetchers.append(self.fetch_worldnewsapi_articles)
        return fetchers

    async def collect_raw_articles(self, queries: Sequence[str]) -> List[Dict]:
        """Fetch every (provider, query) pair concurrently and concatenate the results."""
        fetchers = self._provider_fetchers()
        if not fetchers or not queries:
            return []

        async with aiohttp.ClientSession() as session:
            tasks = [fetch(session, query) for fetch in fetchers for query in queries]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        all_articles = []
        for i, result in enumerate(results):
            if isinstance(result, BaseException):
                logger.error(f"Error from query task {i}: {result!r}")
                continue
            if result:
                all_articles.extend(result)

        logger.info(f"Fetched {len(all_articles)} raw articles from {len(tasks)} queries")
        return all_articles

    # ------------------------------------------------------------------
    # Normalization and ranking
    # ------------------------------------------------------------------

    def normalize_article(self, raw: Dict) -> NewsItem:
        """
        Map a provider article onto NewsItem.

        Raises:
            MalformedResponse: missing headline or unparseable publish date
        """
        headline = (raw.get("title") or "").strip()
        if not headline:
            raise MalformedResponse("article has no title")

        published_at = parse_published_at(raw.get("publish_date"))
        if published_at is None:
            raise MalformedResponse(f"unparseable publish date: {raw.get('publish_date')!r}")

        return NewsItem(
            headline=headline,
            content=(raw.get("content") or "").strip(),
            source=raw.get("source") or "Unknown",
            published_at=published_at,
            url=raw.get("url") or None,
            api_source=raw.get("api_source") or "unknown",
        )

    def normalize_articles(self, raw_articles: Sequence[Dict]) -> List[NewsItem]:
        """Normalize raw articles, discarding the ones that cannot be normalized."""
        items = []
        for raw in raw_articles:
            try:
                items.append(self.normalize_article(raw))
            except MalformedResponse as e:
                logger.debug(f"Discarding article: {e}")
        return items

    def deduplicate_articles(self, items: Sequence[NewsItem]) -> List[NewsItem]:
        """Keep the first item per normalized headline and drop too-generic headlines."""
        seen = set()
        unique = []

        for item in items:
            key = item.normalized_headline
            if len(key) < self.scoring.min_headline_length or key in seen:
                continue
            seen.add(key)
            unique.append(item)

        logger.info(f"Deduplicated {len(items)} -> {len(unique)} unique articles")
        return unique

    def score_relevance(self, headline: str, content: str = "") -> int:
        """Heuristic 0-100 tactical relevance based on keyword presence."""
        headline_lower = (headline or "").lower()
        content_lower = (content or "").lower()

        score = self.scoring.base_score
        for keyword in self._scoring_keywords:
            if keyword in headline_lower:
                score += self.scoring.headline_weight
            if keyword in content_lower:
                score += self.scoring.content_weight

        return max(0, min(100, score))

    def score_articles(self, items: Sequence[NewsItem]) -> List[NewsItem]:
        return [
            item.model_copy(update={"relevance_score": self.score_relevance(item.headline, item.content)})
            for item in items
        ]

    def sort_articles(self, items: Sequence[NewsItem]) -> List[NewsItem]:
        """Newest first; equal timestamps ordered by relevance."""
        return sorted(items, key=lambda x: (x.published_at, x.relevance_score), reverse=True)

    def rank_articles(self, raw_articles: Sequence[Dict], limit: int) -> List[NewsItem]:
        """Normalize, deduplicate, score, sort and truncate raw provider articles."""
        items = self.normalize_articles(raw_articles)
        items = self.deduplicate_articles(items)
        items = self.score_articles(items)
        return self.sort_articles(items)[:limit]

    def build_mock_news(self, team_name: str, limit: int, now: Optional[datetime] = None) -> List[NewsItem]:
        """Deterministic templated news about the team, anchored to the start of the current UTC day."""
        team = sanitize_team_name(team_name) or "The team"
        return self._from_templates(MOCK_NEWS_TEMPLATES, team, limit, now)

    def _from_templates(self, templates, team: str, limit: int, now: Optional[datetime]) -> List[NewsItem]:
        now = now or datetime.now(timezone.utc)
        anchor = now.replace(hour=0, minute=0, second=0, microsecond=0)

        items = []
        for headline, content, source, age_days in templates:
            headline = headline.format(team=team)
            items.append(NewsItem(
                headline=headline,
                content=content,
                source=source,
                published_at=anchor - timedelta(days=age_days),
                relevance_score=self.score_relevance(headline, content),
                api_source="mock",
            ))
        return self.sort_articles(items)[:limit]

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def fetch_team_news(self, team_name: str, limit: int = 10) -> List[NewsItem]:
        """
        Fetch, rank and return up to `limit` news items about a team.

        Never raises for provider problems; falls back to mock items when no
        provider is configured or nothing usable was returned.
        """
        if limit <= 0:
            return []

        queries = self.build_queries(team_name)
        if not queries:
            logger.warning(f"Team name {team_name!r} is empty after sanitizing, using mock news")
            return self.build_mock_news(team_name, limit)

        if not self.get_available_sources():
            logger.warning("No news API sources configured, using mock news")
            return self.build_mock_news(team_name, limit)

        raw_articles = await self.collect_raw_articles(queries)
        ranked = self.rank_articles(raw_articles, limit)

        if not ranked:
            logger.warning(f"No usable news for {team_name}, using mock news")
            return self.build_mock_news(team_name, limit)

        logger.info(f"Returning {len(ranked)} news items for {team_name}")
        return ranked

    async def fetch_latest_football_news(self, limit: int = 20) -> List[NewsItem]:
        """General football news, independent of any team."""
        if limit <= 0:
            return []

        ranked = []
        if self.get_available_sources():
            raw_articles = await self.collect_raw_articles(LATEST_NEWS_QUERIES)
            ranked = self.rank_articles(raw_articles, limit)

        if not ranked:
            logger.warning("No usable latest football news, using mock news")
            return self._from_templates(MOCK_LATEST_TEMPLATES, "", limit, None)
        return ranked
