"""
Scouting Report Function

Turns a team name into a tactical scouting report: ranked news from several
news APIs, AI-extracted insights from Gemini, and a deterministic baseline
that is returned whenever enrichment is unavailable.
"""

from .config import Settings, load_settings
from .errors import ExtractionError, MalformedResponse, ProviderUnavailable, ScoutingError
from .insight_extractor import InsightExtractor, create_insight_extractor
from .models import NewsItem, TacticalReport
from .news_aggregator import NewsAggregator
from .report_composer import ReportComposer

__all__ = [
    "Settings",
    "load_settings",
    "ScoutingError",
    "ProviderUnavailable",
    "MalformedResponse",
    "ExtractionError",
    "InsightExtractor",
    "create_insight_extractor",
    "NewsItem",
    "TacticalReport",
    "NewsAggregator",
    "ReportComposer",
]
