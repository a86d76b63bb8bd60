"""
Exception hierarchy for the dashboard backend.

Every error raised on purpose by the service derives from DashboardError so
the FastAPI layer can render it with a single envelope.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for all service errors"""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(DashboardError):
    """Required configuration is missing or invalid"""

    error = "Configuration error"


class UpstreamFetchError(DashboardError):
    """An upstream data endpoint returned non-2xx or could not be reached"""

    error = "Upstream fetch failed"

    def __init__(
        self,
        message: str,
        source: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message, details=details)
        self.source = source
        self.upstream_status = status_code


class LLMError(DashboardError):
    """The LLM collaborator failed; never escapes the insight layer"""

    error = "LLM request failed"
