"""
Parsers that recover tactical insights from free-form model output.

Each strategy takes the raw response text and the team name and returns
either a list of insight strings or None to let the next strategy try.
PARSER_CHAIN lists them in the order they are attempted.
"""

import json
import logging
import re
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 4
MIN_LINE_LENGTH = 20

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)
_LIST_MARKER = re.compile(r"^\s*(?:[-•*]\s*|\d{1,2}[.)]\s+)")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

Parser = Callable[[str, str], Optional[List[str]]]


def _clean_strings(values) -> Optional[List[str]]:
    if not isinstance(values, list):
        return None
    cleaned = [v.strip() for v in values if isinstance(v, str) and v.strip()]
    return cleaned[:MAX_INSIGHTS] or None


def strip_code_fence(text: str) -> str:
    """Remove a wrapping ```json ... ``` (or bare ```) fence if present."""
    match = _FENCE.match(text or "")
    return match.group(1).strip() if match else (text or "").strip()


def parse_strict_json(text: str, team_name: str = "") -> Optional[List[str]]:
    """The whole response is a JSON array of strings."""
    try:
        return _clean_strings(json.loads(text))
    except (json.JSONDecodeError, TypeError):
        return None


def parse_fenced_json(text: str, team_name: str = "") -> Optional[List[str]]:
    """A JSON array wrapped in a code fence or surrounded by prose."""
    unfenced = strip_code_fence(text)
    result = parse_strict_json(unfenced)
    if result:
        return result

    # Try every opening bracket; prose may contain unrelated [..] first
    decoder = json.JSONDecoder()
    start = unfenced.find("[")
    while start != -1:
        try:
            values, _ = decoder.raw_decode(unfenced, start)
        except json.JSONDecodeError:
            values = None
        result = _clean_strings(values)
        if result:
            return result
        start = unfenced.find("[", start + 1)
    return None


def parse_bulleted_lines(text: str, team_name: str = "") -> Optional[List[str]]:
    """
    Recover insights from a model that ignored the JSON instruction.

    Keeps lines longer than MIN_LINE_LENGTH that carry a list marker or
    mention the team, with markers stripped.
    """
    body = strip_code_fence(text)
    lines = [line for line in body.splitlines() if line.strip()]
    if len(lines) <= 1:
        lines = _SENTENCE_BREAK.split(body)

    team = (team_name or "").strip().lower()
    insights = []
    for line in lines:
        stripped = line.strip()
        has_marker = bool(_LIST_MARKER.match(stripped))
        mentions_team = bool(team) and team in stripped.lower()
        if not (has_marker or mentions_team):
            continue

        insight = _LIST_MARKER.sub("", stripped, count=1).strip()
        if len(insight) > MIN_LINE_LENGTH:
            insights.append(insight)
        if len(insights) == MAX_INSIGHTS:
            break

    return insights or None


PARSER_CHAIN: Tuple[Tuple[str, Parser], ...] = (
    ("strict_json", parse_strict_json),
    ("fenced_json", parse_fenced_json),
    ("bulleted_lines", parse_bulleted_lines),
)


def parse_insights(text: str, team_name: str = "") -> List[str]:
    """Run the parser chain; returns the first non-empty result or an empty list."""
    for name, parser in PARSER_CHAIN:
        result = parser(text, team_name)
        if result:
            logger.debug(f"Parsed {len(result)} insights with {name}")
            return result
        logger.debug(f"Parser {name} found nothing, trying next")
    return []
