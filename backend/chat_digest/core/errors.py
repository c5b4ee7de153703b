"""Error types shared across the ingestion, cache and summarization layers.

Every error carries a machine-readable ``code`` and an HTTP-style
``status_code`` so a presentation layer can map it without inspecting the
message text.
"""

from typing import Any


class AppError(Exception):
    code = "UNKNOWN_ERROR"
    status_code = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class RemoteAPIError(AppError):
    """Microsoft Graph request failed (after retries, when retriable)."""

    code = "GRAPH_API_ERROR"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        status_code_seen: int | None = None,
        attempts: int = 1,
        details: Any = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code_seen = status_code_seen
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["attempts"] = self.attempts
        if self.status_code_seen is not None:
            payload["last_status"] = self.status_code_seen
        return payload


class SummarizationError(AppError):
    """Base for summarization backend failures."""

    code = "SUMMARIZATION_ERROR"
    status_code = 503

    def __init__(
        self,
        message: str,
        *,
        attempts: int = 0,
        last_status: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, details=details)
        self.attempts = attempts
        self.last_status = last_status

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["attempts"] = self.attempts
        if self.last_status is not None:
            payload["last_status"] = self.last_status
        return payload


class OllamaError(SummarizationError):
    code = "OLLAMA_ERROR"


class ClaudeAPIError(SummarizationError):
    code = "CLAUDE_API_ERROR"


class CacheError(AppError):
    """Storage-layer failure (anything but the intentional duplicate skip)."""

    code = "DATABASE_ERROR"
    status_code = 500


class ValidationError(AppError):
    """Malformed caller input. ``details`` lists ``{"field", "message"}`` entries."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NoMessagesError(AppError):
    """Nothing cached for the requested conversation and date range."""

    code = "NO_MESSAGES"
    status_code = 404


class ConfigurationError(AppError):
    code = "CONFIGURATION_ERROR"
    status_code = 500
