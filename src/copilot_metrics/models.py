"""Domain models for Copilot usage metrics processing.

Snapshots and their sub-records are frozen: every transform in the engine returns a
new instance instead of mutating the one it was given, so a snapshot can be cached
and shared between callers safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class MetricName(str, Enum):
    """Metric selectors understood by the trend synthesizer and team comparator."""

    COMPLETIONS = "completions"
    ACCEPTANCE_RATE = "acceptanceRate"
    ACTIVE_USERS = "activeUsers"
    TIME_SAVED = "timeSaved"
    AVG_COMPLETIONS = "avgCompletions"

    @property
    def is_rate(self) -> bool:
        """Rates and averages cannot be divided across time periods."""
        return self in (MetricName.ACCEPTANCE_RATE, MetricName.AVG_COMPLETIONS)


@dataclass(frozen=True, slots=True)
class DateWindow:
    """Inclusive calendar date range."""

    start: date
    end: date

    @property
    def days(self) -> int:
        """Inclusive day count, never less than one."""
        return max(1, (self.end - self.start).days + 1)

    def intersection(self, other: "DateWindow") -> Optional["DateWindow"]:
        """Return the overlapping range, or ``None`` when the windows are disjoint."""
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end < start:
            return None
        return DateWindow(start=start, end=end)

    @classmethod
    def trailing(cls, days: int, end: date) -> "DateWindow":
        """Build the window of ``days`` calendar days ending on ``end``."""
        return cls(start=end - timedelta(days=max(1, days) - 1), end=end)

    @classmethod
    def parse(cls, start: Any, end: Any) -> Optional["DateWindow"]:
        """Parse ISO-8601 date (or datetime) strings, returning ``None`` when invalid."""
        try:
            start_date = date.fromisoformat(str(start)[:10])
            end_date = date.fromisoformat(str(end)[:10])
        except ValueError:
            return None
        return cls(start=start_date, end=end_date)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


@dataclass(frozen=True, slots=True)
class MetricsScope:
    """Organization, or a team inside an organization, that metrics are reported for."""

    organization: str
    team_slug: Optional[str] = None

    @property
    def is_team(self) -> bool:
        return self.team_slug is not None

    @property
    def label(self) -> str:
        if self.team_slug is None:
            return f"organization '{self.organization}'"
        return f"team '{self.team_slug}' in organization '{self.organization}'"


@dataclass(frozen=True, slots=True)
class Team:
    """Represents a GitHub team returned by the team listing API."""

    slug: str
    name: str
    id: Optional[int] = None


def _freeze_mapping(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only copy so a shared snapshot cannot be changed through its breakdowns."""
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class FileExtensionMetrics:
    """Copilot usage narrowed to one file extension."""

    completions_count: int = 0
    suggestions_count: int = 0
    acceptance_count: int = 0
    acceptance_percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completionsCount": self.completions_count,
            "suggestionsCount": self.suggestions_count,
            "acceptanceCount": self.acceptance_count,
            "acceptancePercentage": self.acceptance_percentage,
        }


@dataclass(frozen=True, slots=True)
class RepositoryMetrics:
    """Copilot usage narrowed to one repository."""

    repository_id: str = ""
    repository_name: str = ""
    completions_count: int = 0
    suggestion_count: int = 0
    acceptance_count: int = 0
    acceptance_percentage: float = 0.0
    active_users: int = 0
    files: Mapping[str, FileExtensionMetrics] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", _freeze_mapping(self.files))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repositoryId": self.repository_id,
            "repositoryName": self.repository_name,
            "completionsCount": self.completions_count,
            "suggestionCount": self.suggestion_count,
            "acceptanceCount": self.acceptance_count,
            "acceptancePercentage": self.acceptance_percentage,
            "activeUsers": self.active_users,
            "files": {label: metrics.to_dict() for label, metrics in self.files.items()},
        }


@dataclass(frozen=True, slots=True)
class MetricSnapshot:
    """Canonical aggregate of Copilot usage for one scope and calendar window."""

    completions_count: int = 0
    suggestion_count: int = 0
    acceptance_count: int = 0
    acceptance_percentage: float = 0.0
    active_users: int = 0
    avg_completions_per_user: float = 0.0
    avg_suggestions_per_user: float = 0.0
    avg_acceptance_percentage: float = 0.0
    repository_metrics: Tuple[RepositoryMetrics, ...] = ()
    file_extension_metrics: Mapping[str, FileExtensionMetrics] = field(default_factory=dict)
    covered_window: Optional[DateWindow] = None
    estimated_time_saved: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "file_extension_metrics", _freeze_mapping(self.file_extension_metrics)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the snapshot as the flat camelCase mapping handed to presentation code."""
        payload: Dict[str, Any] = {
            "totalCompletionsCount": self.completions_count,
            "totalSuggestionCount": self.suggestion_count,
            "totalAcceptanceCount": self.acceptance_count,
            "totalAcceptancePercentage": self.acceptance_percentage,
            "totalActiveUsers": self.active_users,
            "avgCompletionsPerUser": self.avg_completions_per_user,
            "avgSuggestionsPerUser": self.avg_suggestions_per_user,
            "avgAcceptancePercentage": self.avg_acceptance_percentage,
            "repositoryMetrics": [repo.to_dict() for repo in self.repository_metrics],
            "fileExtensionMetrics": {
                label: metrics.to_dict() for label, metrics in self.file_extension_metrics.items()
            },
        }
        if self.covered_window is not None:
            payload["dateRange"] = {
                "startDate": self.covered_window.start.isoformat(),
                "endDate": self.covered_window.end.isoformat(),
            }
        if self.estimated_time_saved is not None:
            payload["estimatedTimeSaved"] = self.estimated_time_saved
        return payload


@dataclass(frozen=True, slots=True)
class TrendPoint:
    """One synthesized value for the period ending on ``date``."""

    date: date
    value: float


@dataclass(frozen=True, slots=True)
class Trend:
    """Chronological series of values for one metric."""

    metric: MetricName
    points: Tuple[TrendPoint, ...]
    change_percentage: float


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Side-by-side values of one metric across teams.

    ``entities`` keeps every requested team slug in input order; ``values`` only
    holds teams whose snapshot was available, so a missing team is distinguishable
    from a team whose value is genuinely zero.
    """

    metric: MetricName
    entities: Tuple[str, ...]
    values: Dict[str, float]

    def highest(self) -> Optional[Tuple[str, float]]:
        """Return the team with the largest value; the earliest entity wins ties."""
        best: Optional[Tuple[str, float]] = None
        for entity in self.entities:
            if entity not in self.values:
                continue
            value = self.values[entity]
            if best is None or value > best[1]:
                best = (entity, value)
        return best
