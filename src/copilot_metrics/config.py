"""Configuration parsing and validation for the Copilot metrics engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from .errors import AuthenticationError, ConfigurationError

DEFAULT_SECONDS_PER_SUGGESTION = 55
DEFAULT_MAX_HISTORICAL_DAYS = 28
DEFAULT_PERIOD_DAYS = 30
DEFAULT_CACHE_TTL_SECONDS = 30 * 60
DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class MetricsSettings:
    """Calculation constants shared by the normalization and approximation components.

    ``default_period_days`` is clamped to ``max_historical_days`` on construction
    because the upstream API never reports further back than that ceiling.
    """

    seconds_per_suggestion: int = DEFAULT_SECONDS_PER_SUGGESTION
    max_historical_days: int = DEFAULT_MAX_HISTORICAL_DAYS
    default_period_days: int = DEFAULT_PERIOD_DAYS

    def __post_init__(self) -> None:
        if self.seconds_per_suggestion <= 0:
            raise ConfigurationError(
                "Invalid value for 'seconds_per_suggestion': expected an integer greater than 0."
            )
        if self.max_historical_days <= 0:
            raise ConfigurationError(
                "Invalid value for 'max_historical_days': expected an integer greater than 0."
            )
        if self.default_period_days <= 0:
            raise ConfigurationError(
                "Invalid value for 'default_period_days': expected an integer greater than 0."
            )
        if self.default_period_days > self.max_historical_days:
            object.__setattr__(self, "default_period_days", self.max_historical_days)


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the metrics report generator."""

    organization: str
    token: str
    team_slugs: Tuple[str, ...] = ()
    base_url: str = DEFAULT_API_URL
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    settings: MetricsSettings = field(default_factory=MetricsSettings)


def _int_from_env(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default`` when unset."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default

    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an integer, got '{raw}'."
        ) from exc


def load_settings() -> MetricsSettings:
    """Build calculation settings from ``COPILOT_*`` environment variables.

    Raises:
        ConfigurationError: If a variable is set but not a positive integer.
    """
    return MetricsSettings(
        seconds_per_suggestion=_int_from_env(
            "COPILOT_SECONDS_PER_SUGGESTION", DEFAULT_SECONDS_PER_SUGGESTION
        ),
        max_historical_days=_int_from_env(
            "COPILOT_MAX_HISTORICAL_DAYS", DEFAULT_MAX_HISTORICAL_DAYS
        ),
        default_period_days=_int_from_env("COPILOT_DEFAULT_PERIOD_DAYS", DEFAULT_PERIOD_DAYS),
    )


def load_config(organization: str, team_slugs: Tuple[str, ...] = ()) -> Config:
    """Build and validate application configuration.

    Args:
        organization: GitHub organization login.
        team_slugs: Team slugs requested on the command line.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the organization is blank or a ``COPILOT_*``
            variable is invalid.
        AuthenticationError: If ``GITHUB_TOKEN`` is not configured.
    """
    if not organization.strip():
        raise ConfigurationError("Invalid value for 'organization': expected a non-empty name.")

    token: str = os.getenv("GITHUB_TOKEN", "").strip()
    if not token:
        raise AuthenticationError(
            "Missing required GitHub token. "
            "Set the 'GITHUB_TOKEN' environment variable before requesting Copilot metrics."
        )

    return Config(
        organization=organization.strip(),
        token=token,
        team_slugs=tuple(slug.strip() for slug in team_slugs if slug.strip()),
        base_url=os.getenv("GITHUB_API_URL", "").strip() or DEFAULT_API_URL,
        cache_ttl_seconds=_int_from_env("COPILOT_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
        settings=load_settings(),
    )
