"""
Unit tests for scouting_report_function/models.py
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from scouting_report_function.models import NewsItem, ReportStage, StageResult, TacticalReport


def report_data(**overrides):
    data = {
        "opponent": "Al-Hilal",
        "weaknesses": ["w1", "w2", "w3"],
        "strategies": ["s1", "s2", "s3"],
        "formation": "4-3-3",
        "key_players": ["k1", "k2"],
        "recent_news": ["n1", "n2", "n3"],
    }
    data.update(overrides)
    return data


class TestNewsItem:
    """Tests for NewsItem model."""

    def test_accepts_aliases(self):
        """camelCase and snake_case both populate fields."""
        item = NewsItem.model_validate({
            "headline": "Al-Hilal injury news",
            "publishedAt": "2025-01-15T12:00:00Z",
            "relevanceScore": 80,
        })
        assert item.relevance_score == 80
        assert item.published_at == datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def test_score_bounds(self):
        """Relevance must stay within 0-100."""
        with pytest.raises(ValidationError):
            NewsItem(headline="Al-Hilal news", published_at=datetime.now(timezone.utc), relevance_score=101)

    def test_empty_headline_rejected(self):
        """A headline is required."""
        with pytest.raises(ValidationError):
            NewsItem(headline="", published_at=datetime.now(timezone.utc))

    def test_normalized_headline(self):
        """Normalization trims and lowercases."""
        item = NewsItem(headline="  Al-Hilal WIN  ", published_at=datetime.now(timezone.utc))
        assert item.normalized_headline == "al-hilal win"

    def test_normalized_headline_collapses_inner_whitespace(self):
        """Runs of spaces and tabs collapse to one space."""
        item = NewsItem(headline="Al-Hilal\t WIN  the derby", published_at=datetime.now(timezone.utc))
        assert item.normalized_headline == "al-hilal win the derby"

    def test_frozen(self):
        """Items are immutable."""
        item = NewsItem(headline="Al-Hilal news", published_at=datetime.now(timezone.utc))
        with pytest.raises(ValidationError):
            item.relevance_score = 10


class TestTacticalReport:
    """Tests for TacticalReport model."""

    def test_defaults(self):
        """Defaults describe a baseline report."""
        report = TacticalReport(**report_data())
        assert report.confidence_score == 89
        assert report.ai_enhanced is False
        assert report.data_source == "baseline-engine"

    @pytest.mark.parametrize("field,value", [
        ("weaknesses", ["w1", "w2"]),
        ("weaknesses", ["w1", "w2", "w3", "w4", "w5"]),
        ("strategies", ["s1"]),
        ("key_players", ["k1"]),
        ("key_players", ["k1", "k2", "k3", "k4", "k5"]),
        ("recent_news", ["n1", "n2"]),
        ("confidence_score", 150),
    ])
    def test_bounds_enforced(self, field, value):
        """List lengths and confidence are bounded."""
        with pytest.raises(ValidationError):
            TacticalReport(**report_data(**{field: value}))

    def test_to_response_camel_case(self):
        """Response form uses camelCase keys and JSON types."""
        response = TacticalReport(**report_data(analysis_id="analysis_1", news_count=3)).to_response()

        assert response["keyPlayers"] == ["k1", "k2"]
        assert response["recentNews"] == ["n1", "n2", "n3"]
        assert response["confidenceScore"] == 89
        assert response["aiEnhanced"] is False
        assert response["dataSource"] == "baseline-engine"
        assert response["analysisId"] == "analysis_1"
        assert response["newsCount"] == 3
        assert isinstance(response["generatedAt"], str)


class TestStageResult:
    """Tests for StageResult and ReportStage."""

    def test_ok(self):
        """ok() is not degraded."""
        result = StageResult.ok([1, 2])
        assert result.value == [1, 2]
        assert result.degraded is False
        assert result.reason is None

    def test_fallback(self):
        """fallback() carries the reason."""
        result = StageResult.fallback([], reason="timeout")
        assert result.degraded is True
        assert result.reason == "timeout"

    def test_stage_values(self):
        """Stages serialize as plain strings."""
        assert ReportStage.BASELINE_ONLY.value == "baseline_only"
        assert ReportStage.ENRICHED == "enriched"
