"""Custom exceptions for configuration, interview, and contest QA errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class APIKeyError(ConfigurationError):
    """Error when API key is missing."""

    def __init__(self) -> None:
        super().__init__(
            "API key required for real API calls",
            "Set OPENROUTER_API_KEY or add api_key to hydra.yaml.",
        )


class ValidationError(ConfigurationError):
    """Error when configuration validation fails."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{field}'",
            f"{reason}",
        )


class HydraError(Exception):
    """Base exception for verdict and contest QA failures."""


class SessionNotFoundError(HydraError):
    """Interview session does not exist for the acting user."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Interview session not found: {session_id}")


class VerdictError(HydraError):
    """Verdict cannot be produced or is missing from the session."""


class DecisionConflictError(HydraError):
    """A different decision was already applied to the verdict."""

    def __init__(self, session_id: str, existing: str, requested: str) -> None:
        self.session_id = session_id
        self.existing = existing
        self.requested = requested
        super().__init__(
            f"Session {session_id} already decided as '{existing}', cannot apply '{requested}'"
        )


class DiscrepancyError(HydraError):
    """Discrepancy escalation failed (LLM or persistence)."""


class ContestResultNotFoundError(HydraError):
    """Contest result does not exist."""

    def __init__(self, result_id: str) -> None:
        self.result_id = result_id
        super().__init__(f"Contest result not found: {result_id}")
