"""
Configuration for the Scouting Report Function.

Settings are read once at startup from environment variables (and Google
Secret Manager for API keys outside local runs) and passed explicitly into
each component. Nothing in the pipeline reads os.environ after this point.
"""

import json
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_QUERY_KEYWORDS = ["injury", "transfer", "tactics", "formation"]

DEFAULT_SCORING_KEYWORDS = [
    "injury", "transfer", "tactics", "formation", "coach", "manager",
    "suspended", "fitness", "training", "strategy", "lineup", "squad",
]

MAX_AI_TEMPERATURE = 0.4


class NewsSettings(BaseModel):
    """News provider credentials and query options."""
    model_config = ConfigDict(frozen=True)

    newsapi_key: Optional[str] = None
    gnews_api_key: Optional[str] = None
    worldnewsapi_key: Optional[str] = None
    language: str = "en"
    domains: List[str] = Field(default_factory=list)
    time_range: str = "last_week"
    query_timeout: float = 4.0
    query_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_QUERY_KEYWORDS))
    page_size: int = 20


class ScoringSettings(BaseModel):
    """Relevance scoring parameters."""
    model_config = ConfigDict(frozen=True)

    keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_SCORING_KEYWORDS))
    base_score: int = 50
    headline_weight: int = 15
    content_weight: int = 10
    min_headline_length: int = 10


class AISettings(BaseModel):
    """AI completion service configuration."""
    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    project_id: Optional[str] = None
    location: str = "us-central1"
    model: str = "gemini-2.0-flash"
    temperature: float = 0.3
    max_output_tokens: int = 512
    timeout_seconds: float = 15.0

    @field_validator("temperature")
    @classmethod
    def clamp_temperature(cls, value: float) -> float:
        return min(max(value, 0.0), MAX_AI_TEMPERATURE)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key or self.project_id)


class Settings(BaseModel):
    """Process-wide, read-only configuration."""
    model_config = ConfigDict(frozen=True)

    environment: str = "development"
    news: NewsSettings = Field(default_factory=NewsSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    ai: AISettings = Field(default_factory=AISettings)
    report_news_limit: int = 10


def access_secret(secret_id: str, project_id: Optional[str], environment: str, version_id: str = "latest") -> str:
    """Access a secret from Google Cloud Secret Manager, or the environment when running locally."""
    env_value = os.getenv(secret_id, '').strip()
    if environment == 'local' or not project_id:
        return env_value

    try:
        from google.cloud import secretmanager

        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode("UTF-8").strip()
    except Exception as e:
        logger.error(f"Error accessing secret {secret_id}: {e}")
        return env_value


def _json_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        # Accept comma-separated values as well
        value = raw.split(",")
    if not isinstance(value, list):
        logger.warning(f"Ignoring {name}: expected a list, got {type(value).__name__}")
        return list(default)
    return [str(v).strip() for v in value if str(v).strip()]


def load_settings() -> Settings:
    """Build Settings from the environment (.env is honoured)."""
    load_dotenv()

    environment = os.getenv('ENVIRONMENT', 'development')
    project_id = os.getenv('GOOGLE_CLOUD_PROJECT') or None

    news = NewsSettings(
        newsapi_key=access_secret('NEWSAPI_KEY', project_id, environment) or None,
        gnews_api_key=access_secret('GNEWS_API_KEY', project_id, environment) or None,
        worldnewsapi_key=access_secret('WORLDNEWSAPI_KEY', project_id, environment) or None,
        language=os.getenv('NEWS_LANGUAGE', 'en'),
        domains=_json_list('NEWS_DOMAINS', []),
        time_range=os.getenv('NEWS_TIME_RANGE', 'last_week'),
        query_timeout=float(os.getenv('NEWS_QUERY_TIMEOUT', '4')),
        query_keywords=_json_list('NEWS_QUERY_KEYWORDS', DEFAULT_QUERY_KEYWORDS),
    )

    scoring = ScoringSettings(
        keywords=_json_list('SCORING_KEYWORDS', DEFAULT_SCORING_KEYWORDS),
    )

    ai = AISettings(
        api_key=access_secret('GEMINI_API_KEY', project_id, environment) or None,
        project_id=project_id,
        location=os.getenv('VERTEX_AI_LOCATION', 'us-central1'),
        model=os.getenv('AI_MODEL', 'gemini-2.0-flash'),
        temperature=float(os.getenv('AI_TEMPERATURE', '0.3')),
        max_output_tokens=int(os.getenv('AI_MAX_OUTPUT_TOKENS', '512')),
        timeout_seconds=float(os.getenv('AI_TIMEOUT', '15')),
    )

    settings = Settings(
        environment=environment,
        news=news,
        scoring=scoring,
        ai=ai,
        report_news_limit=int(os.getenv('REPORT_NEWS_LIMIT', '10')),
    )

    logger.info(
        f"Settings loaded: environment={environment}, "
        f"news_sources={sum(1 for k in (news.newsapi_key, news.gnews_api_key, news.worldnewsapi_key) if k)}, "
        f"ai_configured={ai.is_configured}"
    )
    return settings
