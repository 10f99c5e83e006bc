"""
Insight Extractor for Scouting Reports

Sends aggregated team news to Gemini (google-genai) and parses a short list
of tactical insights from the completion, tolerating answers that ignore the
requested JSON format.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig, HttpOptions

from .config import AISettings
from .errors import ExtractionError
from .insight_parsers import parse_insights
from .models import NewsItem

logger = logging.getLogger(__name__)

MIN_INSIGHTS = 2
MAX_INSIGHTS = 4
NO_NEWS_MARKER = "No recent news available"

PROMPT_TEMPLATE = """You are an expert football tactical analyst preparing a scouting report on "{team_name}".

Recent News Context:
{news_block}

From the news above, identify 3-4 short insights that affect how to play against {team_name}
(injuries, suspensions, formation or coaching changes, squad rotation, form).

Respond with ONLY a JSON array of 3-4 strings, no prose and no code fences. Example:
["First insight", "Second insight", "Third insight"]"""

CONNECTION_TEST_PROMPT = "Test connection. Respond with 'Scouting analyst is ready'"


def render_news_block(news: Sequence[NewsItem]) -> str:
    """One line per item as '- headline: content'; a fixed marker when there is no news."""
    if not news:
        return NO_NEWS_MARKER
    return "\n".join(f"- {item.headline}: {item.content}" for item in news)


def build_prompt(team_name: str, news: Sequence[NewsItem]) -> str:
    return PROMPT_TEMPLATE.format(team_name=team_name, news_block=render_news_block(news))


def _classify_api_error(error: genai_errors.APIError) -> str:
    code = getattr(error, "code", None)
    if code in (401, 403):
        return "auth"
    if code == 429:
        return "rate_limited"
    return "api_error"


class InsightExtractor:
    """
    Extracts tactical insights about a team from recent news using Gemini.

    A None client means the AI service is not configured; every extraction
    then fails with ExtractionError(reason="unconfigured").
    """

    def __init__(self, client: Optional[genai.Client], settings: AISettings):
        """
        Initialize the insight extractor.

        Args:
            client: Initialized genai.Client, or None when AI is unavailable
            settings: Model name, sampling and timeout parameters
        """
        self.client = client
        self.settings = settings

        logger.info(
            f"InsightExtractor initialized: model={settings.model}, "
            f"configured={client is not None}, temperature={settings.temperature}"
        )

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _generation_config(self, max_output_tokens: Optional[int] = None) -> GenerateContentConfig:
        return GenerateContentConfig(
            temperature=self.settings.temperature,
            max_output_tokens=max_output_tokens or self.settings.max_output_tokens,
            candidate_count=1,
        )

    async def _complete(self, prompt: str, max_output_tokens: Optional[int] = None) -> str:
        """
        One-shot, non-streaming completion with a timeout.

        Raises:
            ExtractionError: unconfigured client, API, network or timeout failure
        """
        if not self.is_configured:
            raise ExtractionError("AI service is not configured", reason="unconfigured")

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.settings.model,
                    contents=prompt,
                    config=self._generation_config(max_output_tokens),
                ),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ExtractionError(
                f"AI completion timed out after {self.settings.timeout_seconds}s", reason="timeout"
            ) from e
        except genai_errors.APIError as e:
            reason = _classify_api_error(e)
            raise ExtractionError(f"AI service error ({reason}): {e}", reason=reason) from e
        except Exception as e:
            raise ExtractionError(f"AI request failed: {e}", reason="network") from e

        text = getattr(response, "text", None) or ""
        if not text.strip():
            raise ExtractionError("AI service returned an empty completion", reason="unparseable")
        return text

    async def extract_insights(self, team_name: str, news: Sequence[NewsItem]) -> List[str]:
        """
        Ask the model for 3-4 tactical insights about a team.

        Args:
            team_name: Opponent team name
            news: Ranked news items (may be empty)

        Returns:
            Between 2 and 4 insight strings

        Raises:
            ExtractionError: when no usable insights could be produced
        """
        prompt = build_prompt(team_name, news)
        logger.info(f"Requesting insights for {team_name} from {len(news)} news items")

        text = await self._complete(prompt)
        insights = parse_insights(text, team_name)

        if len(insights) < MIN_INSIGHTS:
            logger.warning(f"Only {len(insights)} insights recovered for {team_name}")
            raise ExtractionError(
                f"Recovered {len(insights)} insights, need at least {MIN_INSIGHTS}",
                reason="unparseable",
                raw_response=text,
            )

        logger.info(f"Extracted {len(insights)} insights for {team_name}")
        return insights[:MAX_INSIGHTS]

    async def test_connection(self) -> Dict[str, str]:
        """Readiness probe against the AI service; never raises."""
        try:
            text = await self._complete(CONNECTION_TEST_PROMPT, max_output_tokens=50)
            return {"status": "connected", "response": text.strip()}
        except ExtractionError as e:
            logger.warning(f"AI connection test failed: {e}")
            return {"status": "failed", "error": str(e)}


def create_insight_extractor(settings: AISettings) -> InsightExtractor:
    """
    Factory function to create an InsightExtractor with an initialized client.

    Uses the Gemini API key when present, otherwise Vertex AI with Application
    Default Credentials. Returns an unconfigured extractor when neither is set
    or client construction fails.
    """
    if not settings.is_configured:
        logger.warning("No Gemini API key or Vertex AI project configured; AI enrichment disabled")
        return InsightExtractor(client=None, settings=settings)

    http_options = HttpOptions(timeout=int(settings.timeout_seconds * 1000))

    try:
        if settings.api_key:
            client = genai.Client(api_key=settings.api_key, http_options=http_options)
        else:
            client = genai.Client(
                vertexai=True,
                project=settings.project_id,
                location=settings.location,
                http_options=http_options,
            )
    except Exception as e:
        logger.error(f"Failed to initialize GenAI client: {e}", exc_info=True)
        client = None

    return InsightExtractor(client=client, settings=settings)
