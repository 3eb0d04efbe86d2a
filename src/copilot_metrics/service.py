"""Application service wiring transport, normalization, enrichment and caching.

All public methods are coroutines. The only suspension point is the call into the
synchronous transport, which runs in a worker thread via ``asyncio.to_thread``.
Organization fetches are all-or-nothing; multi-team fetches collect each team's
outcome independently so one failing team never aborts the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Union

from .cache import SnapshotCache
from .calculator import enhance_with_derived_metrics
from .comparison import compare_teams
from .config import MetricsSettings
from .errors import ApiError, InvalidScopeError, MetricsFetchError
from .models import ComparisonResult, DateWindow, MetricName, MetricSnapshot, MetricsScope, Trend
from .normalizer import normalize_snapshot
from .rescaler import rescale_to_window
from .timeseries import synthesize_trend

logger = logging.getLogger(__name__)

RESERVED_TEAM_SLUGS = frozenset({"teams"})


class SnapshotFetcher(Protocol):
    """Transport collaborator returning raw metrics payloads."""

    def fetch_snapshot(self, scope: MetricsScope, window: Optional[DateWindow] = None) -> Any:
        ...


@dataclass(frozen=True)
class TeamFetchResults:
    """Per-team outcomes of a concurrent multi-team fetch."""

    snapshots: Dict[str, MetricSnapshot] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)


def validate_scope(scope: MetricsScope) -> None:
    """Reject team identifiers that cannot address the team metrics endpoint.

    Raises:
        InvalidScopeError: If the organization or team slug is blank, or the slug
            collides with a reserved routing token such as ``teams``.
    """
    if not scope.organization.strip():
        raise InvalidScopeError("Organization name must not be empty.")

    if not scope.is_team:
        return

    slug = scope.team_slug.strip()
    if not slug:
        raise InvalidScopeError(f"Team slug must not be empty for organization '{scope.organization}'.")
    if slug.lower() in RESERVED_TEAM_SLUGS:
        raise InvalidScopeError(
            f"Invalid team slug '{scope.team_slug}': it conflicts with the API path structure."
        )


class MetricsService:
    """Fetches, normalizes and derives Copilot metrics for organizations and teams."""

    def __init__(
        self,
        client: SnapshotFetcher,
        settings: Optional[MetricsSettings] = None,
        cache: Optional[SnapshotCache] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._client = client
        self._settings = settings or MetricsSettings()
        self._cache = cache
        self._today = today

    @property
    def settings(self) -> MetricsSettings:
        return self._settings

    def full_window(self) -> DateWindow:
        """The provider's whole reporting window, ending today."""
        return DateWindow.trailing(self._settings.max_historical_days, self._today())

    def default_window(self, end: Optional[date] = None) -> DateWindow:
        """The default reporting period, ending on ``end`` or today."""
        return DateWindow.trailing(self._settings.default_period_days, end or self._today())

    def _clamp_window(self, window: DateWindow) -> DateWindow:
        if window.days <= self._settings.max_historical_days:
            return window

        clamped = DateWindow.trailing(self._settings.max_historical_days, window.end)
        logger.info(
            "Clamped fetch window to historical limit",
            extra={"requested": str(window), "window": str(clamped)},
        )
        return clamped

    async def fetch_snapshot(
        self,
        scope: MetricsScope,
        window: Optional[DateWindow] = None,
        skip_cache: bool = False,
    ) -> MetricSnapshot:
        """Fetch one scope and return its normalized, enriched snapshot.

        Raises:
            InvalidScopeError: Before any fetch when the scope is unusable.
            MetricsFetchError: When the transport fails, naming the scope and status.
        """
        validate_scope(scope)
        window = self._clamp_window(window or self.full_window())

        if not skip_cache and self._cache is not None:
            cached = self._cache.get(scope, window)
            if cached is not None:
                logger.debug("Cache hit", extra={"scope": scope.label, "window": str(window)})
                return cached

        logger.info("Fetching Copilot metrics", extra={"scope": scope.label, "window": str(window)})
        try:
            payload = await asyncio.to_thread(self._client.fetch_snapshot, scope, window)
        except ApiError as exc:
            raise MetricsFetchError(scope, exc.status_code, str(exc)) from exc

        snapshot = normalize_snapshot(payload)
        if snapshot.covered_window is None:
            snapshot = replace(snapshot, covered_window=window)
        snapshot = enhance_with_derived_metrics(snapshot, self._settings.seconds_per_suggestion)

        if self._cache is not None:
            self._cache.set(scope, window, snapshot)

        return snapshot

    async def get_organization_metrics(
        self,
        org: str,
        window: Optional[DateWindow] = None,
        skip_cache: bool = False,
    ) -> MetricSnapshot:
        return await self.fetch_snapshot(MetricsScope(org), window, skip_cache)

    async def get_team_metrics(
        self,
        org: str,
        team_slug: str,
        window: Optional[DateWindow] = None,
        skip_cache: bool = False,
    ) -> MetricSnapshot:
        return await self.fetch_snapshot(MetricsScope(org, team_slug), window, skip_cache)

    async def get_filtered_metrics(
        self,
        scope: MetricsScope,
        requested: DateWindow,
        skip_cache: bool = False,
    ) -> MetricSnapshot:
        """Fetch the whole reporting window and approximate ``requested`` from it."""
        snapshot = await self.fetch_snapshot(scope, self.full_window(), skip_cache)
        return rescale_to_window(snapshot, requested, self._settings, self._today())

    async def get_metrics_trend(
        self,
        scope: MetricsScope,
        metric: Union[MetricName, str],
        periods: int = 10,
        period_days: int = 7,
        skip_cache: bool = False,
    ) -> Trend:
        """Synthesize a trend for ``metric`` from the whole reporting window."""
        snapshot = await self.fetch_snapshot(scope, self.full_window(), skip_cache)
        return synthesize_trend(
            snapshot,
            metric,
            periods=periods,
            period_days=period_days,
            settings=self._settings,
            today=self._today(),
        )

    async def fetch_team_snapshots(
        self,
        org: str,
        team_slugs: Sequence[str],
        window: Optional[DateWindow] = None,
        skip_cache: bool = False,
    ) -> TeamFetchResults:
        """Fetch several teams concurrently, collecting each outcome independently."""
        tasks = [
            self.get_team_metrics(org, slug, window, skip_cache) for slug in team_slugs
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcome = TeamFetchResults()
        for slug, result in zip(team_slugs, results):
            if isinstance(result, MetricSnapshot):
                outcome.snapshots[slug] = result
                continue
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Team metrics fetch failed",
                extra={"organization": org, "team": slug, "error": str(result)},
            )
            outcome.failures[slug] = result

        logger.info(
            "Fetched team metrics",
            extra={
                "organization": org,
                "teams_total": len(team_slugs),
                "teams_succeeded": len(outcome.snapshots),
                "teams_failed": len(outcome.failures),
            },
        )
        return outcome

    async def get_team_comparison(
        self,
        org: str,
        team_slugs: Sequence[str],
        metric: Union[MetricName, str],
        window: Optional[DateWindow] = None,
        skip_cache: bool = False,
    ) -> ComparisonResult:
        """Compare ``metric`` across teams; teams that failed to fetch are omitted from values."""
        results = await self.fetch_team_snapshots(org, team_slugs, window, skip_cache)
        return compare_teams(
            team_slugs,
            results.snapshots,
            metric,
            self._settings.seconds_per_suggestion,
        )

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()
