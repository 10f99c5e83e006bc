"""
Report Composer for Scouting Reports

Builds the deterministic baseline report for a team, then tries to enrich its
recent-news insights with AI output. Each stage yields a StageResult; a
degraded stage swaps in templated content instead of failing the request.
"""

import logging
import time
from typing import List, Sequence

from .errors import ExtractionError
from .insight_extractor import InsightExtractor
from .models import (
    DATA_SOURCE_AI,
    DATA_SOURCE_BASELINE,
    NewsItem,
    ReportStage,
    StageResult,
    TacticalReport,
)
from .news_aggregator import NewsAggregator, sanitize_team_name

logger = logging.getLogger(__name__)

DEFAULT_NEWS_LIMIT = 10
BASELINE_CONFIDENCE = 89
BASELINE_FORMATION = "4-3-3 Diamond"
MIN_RECENT_NEWS = 3
MAX_RECENT_NEWS = 4

WEAKNESS_TEMPLATES = [
    "{team} shows vulnerability to quick counter-attacks on the left flank",
    "Defensive line positioning inconsistent during set pieces",
    "Midfield pressing coordination needs improvement",
    "Vulnerable to pace on the wings during transitions",
]

STRATEGY_TEMPLATES = [
    "Exploit wide areas with overlapping fullback runs",
    "Press high immediately after losing possession",
    "Target set pieces with height advantage",
    "Use quick passing combinations in final third",
]

KEY_PLAYER_TEMPLATES = [
    "Neutralize their playmaker with dedicated marking",
    "Double-mark main striker in penalty area",
    "Exploit pace advantage against slower defenders",
    "Pressure their goalkeeper on goal kicks",
]

SUBSTITUTE_INSIGHT_TEMPLATES = [
    "{team} key midfielder picked up minor injury in training",
    "Recent tactical formation adjustments observed",
    "Coach emphasized defensive improvements in latest interview",
    "New signing expected to strengthen midfield options",
]


def _display_name(team_name: str) -> str:
    return sanitize_team_name(team_name) or "The opponent"


def substitute_insights(team_name: str) -> List[str]:
    """Deterministic recent-news insights used when AI enrichment is unavailable."""
    team = _display_name(team_name)
    return [t.format(team=team) for t in SUBSTITUTE_INSIGHT_TEMPLATES]


def build_baseline_report(team_name: str, news_count: int = 0) -> TacticalReport:
    """Template report parameterized only by the team name."""
    team = _display_name(team_name)
    return TacticalReport(
        opponent=team_name,
        weaknesses=[t.format(team=team) for t in WEAKNESS_TEMPLATES],
        strategies=list(STRATEGY_TEMPLATES),
        formation=BASELINE_FORMATION,
        key_players=list(KEY_PLAYER_TEMPLATES),
        recent_news=substitute_insights(team_name),
        confidence_score=BASELINE_CONFIDENCE,
        ai_enhanced=False,
        data_source=DATA_SOURCE_BASELINE,
        analysis_id=f"analysis_{int(time.time() * 1000)}",
        news_count=news_count,
    )


def _pad_insights(insights: Sequence[str], team_name: str) -> List[str]:
    """Top up a 2-item AI answer from the substitute list so the report stays within bounds."""
    padded = list(insights)[:MAX_RECENT_NEWS]
    for extra in substitute_insights(team_name):
        if len(padded) >= MIN_RECENT_NEWS:
            break
        if extra not in padded:
            padded.append(extra)
    return padded


class ReportComposer:
    """Composes tactical reports from news and AI insights, degrading to the baseline."""

    def __init__(
        self,
        news_aggregator: NewsAggregator,
        insight_extractor: InsightExtractor,
        news_limit: int = DEFAULT_NEWS_LIMIT,
    ):
        self.news_aggregator = news_aggregator
        self.insight_extractor = insight_extractor
        self.news_limit = news_limit

    async def _fetch_news(self, team_name: str) -> StageResult[List[NewsItem]]:
        try:
            news = await self.news_aggregator.fetch_team_news(team_name, self.news_limit)
        except Exception as e:
            logger.error(f"News fetch failed for {team_name}: {e}", exc_info=True)
            return StageResult.fallback([], reason=f"news fetch failed: {e}")
        return StageResult.ok(news)

    async def _enrich(self, team_name: str, news: List[NewsItem]) -> StageResult[List[str]]:
        try:
            insights = await self.insight_extractor.extract_insights(team_name, news)
        except ExtractionError as e:
            cause = e.__cause__
            logger.warning(
                f"AI enrichment unavailable for {team_name} ({e.reason}): {e}"
                + (f" | cause: {cause!r}" if cause else "")
            )
            return StageResult.fallback(substitute_insights(team_name), reason=e.reason)
        return StageResult.ok(_pad_insights(insights, team_name))

    async def compose_report(self, team_name: str) -> TacticalReport:
        """
        Build a complete tactical report for a team.

        Never raises (cancellation excepted): any failure yields the
        baseline-only report with ai_enhanced=False.
        """
        logger.info(f"[{ReportStage.STARTED.value}] Composing report for {team_name}")
        baseline = build_baseline_report(team_name)

        try:
            news_result = await self._fetch_news(team_name)
            news = news_result.value
            logger.info(f"[{ReportStage.NEWS_FETCHED.value}] {len(news)} news items for {team_name}")

            insight_result = await self._enrich(team_name, news)
            enriched = not insight_result.degraded
            stage = ReportStage.ENRICHED if enriched else ReportStage.BASELINE_ONLY
            logger.info(f"[{stage.value}] {team_name}: reason={insight_result.reason}")

            report = TacticalReport.model_validate({
                **baseline.model_dump(),
                "recent_news": insight_result.value,
                "ai_enhanced": enriched,
                "data_source": DATA_SOURCE_AI if enriched else DATA_SOURCE_BASELINE,
                "news_count": len(news),
            })
        except Exception as e:
            logger.error(f"Report composition failed for {team_name}, returning baseline: {e}", exc_info=True)
            report = baseline

        logger.info(
            f"[{ReportStage.COMPLETED.value}] {team_name}: "
            f"ai_enhanced={report.ai_enhanced}, data_source={report.data_source}"
        )
        return report
