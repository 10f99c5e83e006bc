"""
Error taxonomy for the scouting report pipeline.

None of these reach the caller of compose_report; they are raised and
recovered inside the pipeline and logged with their root cause.
"""

from typing import Optional


class ScoutingError(Exception):
    """Base class for pipeline errors."""


class ProviderUnavailable(ScoutingError):
    """A news or AI provider is unreachable, misconfigured or rate-limited."""

    def __init__(self, provider: str, message: str = ""):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if message else provider)


class MalformedResponse(ScoutingError):
    """A provider returned data that could not be normalized or parsed."""


class ExtractionError(ScoutingError):
    """
    No usable AI insights could be produced.

    Attributes:
        reason: Short machine-readable cause (unconfigured, auth, rate_limited,
            timeout, api_error, network, unparseable)
    """

    def __init__(self, message: str, reason: str = "unparseable", raw_response: Optional[str] = None):
        self.reason = reason
        self.raw_response = raw_response
        super().__init__(message)
