"""
Data Models for the Scouting Report Function

Pydantic models for news items and tactical reports, plus the StageResult
wrapper that carries success/degraded outcomes between pipeline stages.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# News Models
# ============================================================================

class NewsItem(BaseModel):
    """A normalized, scored news article about a team."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    headline: str = Field(min_length=1)
    content: str = ""
    source: str = ""
    published_at: datetime = Field(alias="publishedAt")
    url: Optional[str] = None
    relevance_score: int = Field(default=50, ge=0, le=100, alias="relevanceScore")
    api_source: str = Field(default="unknown", alias="apiSource")

    @property
    def normalized_headline(self) -> str:
        return " ".join(self.headline.split()).lower()


# ============================================================================
# Report Models
# ============================================================================

DATA_SOURCE_AI = "ai-enriched"
DATA_SOURCE_BASELINE = "baseline-engine"


class TacticalReport(BaseModel):
    """Tactical scouting report for an opponent team."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    opponent: str
    weaknesses: List[str] = Field(min_length=3, max_length=4)
    strategies: List[str] = Field(min_length=3, max_length=4)
    formation: str
    key_players: List[str] = Field(min_length=2, max_length=4, alias="keyPlayers")
    recent_news: List[str] = Field(min_length=3, max_length=4, alias="recentNews")
    confidence_score: int = Field(default=89, ge=0, le=100, alias="confidenceScore")
    ai_enhanced: bool = Field(default=False, alias="aiEnhanced")
    data_source: str = Field(default=DATA_SOURCE_BASELINE, alias="dataSource")

    analysis_id: str = Field(default="", alias="analysisId")
    news_count: int = Field(default=0, ge=0, alias="newsCount")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="generatedAt",
    )

    def to_response(self) -> dict:
        """Serialize with camelCase keys for the HTTP layer."""
        return self.model_dump(mode="json", by_alias=True)


class ReportStage(str, Enum):
    """Per-request composition states."""
    STARTED = "started"
    NEWS_FETCHED = "news_fetched"
    ENRICHED = "enriched"
    BASELINE_ONLY = "baseline_only"
    COMPLETED = "completed"


# ============================================================================
# Stage Results
# ============================================================================

T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of a pipeline stage: either the real value or a degraded substitute."""
    value: T
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "StageResult[T]":
        return cls(value=value, degraded=True, reason=reason)
