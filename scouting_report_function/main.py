"""
Scouting Report Function

Entry points used by the HTTP layer: compose a tactical report for a team, or
fetch the ranked team news on its own. Settings are loaded once per process.

Local run:
    ENVIRONMENT=local python -m scouting_report_function.main "Al-Hilal"
"""

import asyncio
import json
import logging
import sys
from functools import lru_cache
from typing import List, Optional

from .config import Settings, load_settings
from .insight_extractor import create_insight_extractor
from .logging_config import configure_logging
from .models import NewsItem, TacticalReport
from .news_aggregator import NewsAggregator
from .report_composer import ReportComposer

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def build_composer(settings: Settings) -> ReportComposer:
    """Wire the pipeline components from settings."""
    return ReportComposer(
        news_aggregator=NewsAggregator(settings.news, settings.scoring),
        insight_extractor=create_insight_extractor(settings.ai),
        news_limit=settings.report_news_limit,
    )


async def compose_report_for_team(team_name: str, settings: Optional[Settings] = None) -> TacticalReport:
    """Compose a tactical report; always returns a complete report."""
    composer = build_composer(settings or get_settings())
    return await composer.compose_report(team_name)


async def fetch_news_for_team(team_name: str, limit: int = 10, settings: Optional[Settings] = None) -> List[NewsItem]:
    """Ranked team news without AI enrichment."""
    settings = settings or get_settings()
    aggregator = NewsAggregator(settings.news, settings.scoring)
    return await aggregator.fetch_team_news(team_name, limit)


async def main_local(team_name: str) -> None:
    """Main function for local execution."""
    report = await compose_report_for_team(team_name)
    print(json.dumps(report.to_response(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main_local(sys.argv[1] if len(sys.argv) > 1 else "Al-Hilal"))
