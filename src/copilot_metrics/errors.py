"""Custom exception types for the Copilot metrics engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import MetricsScope


class CopilotMetricsError(Exception):
    """Base exception for all recoverable Copilot metrics errors."""


class ConfigurationError(CopilotMetricsError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(CopilotMetricsError):
    """Raised when GitHub authentication credentials are unavailable or invalid."""


class ApiError(CopilotMetricsError):
    """Raised when a GitHub API request fails or returns an unexpected response."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MetricsFetchError(CopilotMetricsError):
    """Raised when a metrics snapshot cannot be fetched for an organization or team."""

    def __init__(
        self,
        scope: "MetricsScope",
        status_code: Optional[int] = None,
        message: str = "",
    ) -> None:
        status = f"status {status_code}" if status_code is not None else "no upstream status"
        detail = f": {message}" if message else ""
        super().__init__(f"Failed to fetch Copilot metrics for {scope.label} ({status}){detail}")
        self.scope = scope
        self.status_code = status_code


class InvalidScopeError(CopilotMetricsError):
    """Raised when a team identifier cannot be used to address the metrics API."""
