"""Approximate a sub-window of a fixed reporting window by proportional scaling.

The metrics API only reports one aggregate over its trailing window and cannot be
queried for an arbitrary sub-range. This module estimates what a requested range
"would have been" by assuming usage was spread uniformly across the covered window:

- count fields (totals, active users, per-repository and per-extension counts) are
  multiplied by ``overlap_days / covered_days`` and rounded half up, each field
  independently, so ``acceptance <= suggestions`` may drift by one after rounding;
- percentages and per-user averages are recomputed from the scaled counts, never
  scaled themselves; a zero denominator yields ``0.0`` and percentages are capped
  at 100;
- estimated time saved is recomputed from the scaled acceptance count.

A requested window with no overlap produces an all-zero snapshot whose
``covered_window`` is the requested range.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Optional

from .calculator import calculate_time_saved, round_half_up, safe_percentage, safe_ratio
from .config import MetricsSettings
from .models import DateWindow, FileExtensionMetrics, MetricSnapshot, RepositoryMetrics

logger = logging.getLogger(__name__)


def scale_count(count: int, ratio: float) -> int:
    """Scale a count by ``ratio`` and round half up to the nearest integer."""
    return int(round_half_up(count * ratio))


def resolve_covered_window(
    snapshot: MetricSnapshot,
    settings: MetricsSettings,
    today: Optional[date] = None,
) -> DateWindow:
    """Return the snapshot's covered window, assuming the provider's trailing window if unset."""
    if snapshot.covered_window is not None:
        return snapshot.covered_window
    return DateWindow.trailing(settings.max_historical_days, today or date.today())


def _scale_extension(metrics: FileExtensionMetrics, ratio: float) -> FileExtensionMetrics:
    suggestions = scale_count(metrics.suggestions_count, ratio)
    acceptances = scale_count(metrics.acceptance_count, ratio)
    return FileExtensionMetrics(
        completions_count=scale_count(metrics.completions_count, ratio),
        suggestions_count=suggestions,
        acceptance_count=acceptances,
        acceptance_percentage=safe_percentage(acceptances, suggestions),
    )


def _scale_extensions(
    extensions: Dict[str, FileExtensionMetrics], ratio: float
) -> Dict[str, FileExtensionMetrics]:
    return {label: _scale_extension(metrics, ratio) for label, metrics in extensions.items()}


def _scale_repository(repository: RepositoryMetrics, ratio: float) -> RepositoryMetrics:
    suggestions = scale_count(repository.suggestion_count, ratio)
    acceptances = scale_count(repository.acceptance_count, ratio)
    return replace(
        repository,
        completions_count=scale_count(repository.completions_count, ratio),
        suggestion_count=suggestions,
        acceptance_count=acceptances,
        acceptance_percentage=safe_percentage(acceptances, suggestions),
        active_users=scale_count(repository.active_users, ratio),
        files=_scale_extensions(repository.files, ratio),
    )


def empty_snapshot(window: DateWindow) -> MetricSnapshot:
    """All-zero snapshot reporting on ``window``."""
    return MetricSnapshot(covered_window=window, estimated_time_saved=0.0)


def scale_snapshot(
    snapshot: MetricSnapshot,
    ratio: float,
    window: DateWindow,
    seconds_per_suggestion: int,
) -> MetricSnapshot:
    """Scale every count of ``snapshot`` by ``ratio`` and recompute dependent fields."""
    completions = scale_count(snapshot.completions_count, ratio)
    suggestions = scale_count(snapshot.suggestion_count, ratio)
    acceptances = scale_count(snapshot.acceptance_count, ratio)
    active_users = scale_count(snapshot.active_users, ratio)
    acceptance_percentage = safe_percentage(acceptances, suggestions)

    return MetricSnapshot(
        completions_count=completions,
        suggestion_count=suggestions,
        acceptance_count=acceptances,
        acceptance_percentage=acceptance_percentage,
        active_users=active_users,
        avg_completions_per_user=safe_ratio(completions, active_users),
        avg_suggestions_per_user=safe_ratio(suggestions, active_users),
        avg_acceptance_percentage=acceptance_percentage,
        repository_metrics=tuple(
            _scale_repository(repository, ratio) for repository in snapshot.repository_metrics
        ),
        file_extension_metrics=_scale_extensions(snapshot.file_extension_metrics, ratio),
        covered_window=window,
        estimated_time_saved=calculate_time_saved(acceptances, seconds_per_suggestion),
    )


def rescale_to_window(
    snapshot: MetricSnapshot,
    requested: DateWindow,
    settings: Optional[MetricsSettings] = None,
    today: Optional[date] = None,
) -> MetricSnapshot:
    """Approximate ``snapshot`` for the ``requested`` date range.

    Args:
        snapshot: Canonical snapshot covering the provider's reporting window.
        requested: Window the caller wants metrics for.
        settings: Calculation constants; defaults are used when omitted.
        today: Reference date used only when the snapshot has no covered window.

    Returns:
        A new snapshot whose ``covered_window`` is the intersection of ``requested``
        and the snapshot's window, or an all-zero snapshot for ``requested`` when
        the two do not overlap.
    """
    settings = settings or MetricsSettings()
    covered = resolve_covered_window(snapshot, settings, today)
    overlap = requested.intersection(covered)

    if overlap is None:
        logger.debug(
            "Requested window does not overlap covered window",
            extra={"requested": str(requested), "covered": str(covered)},
        )
        return empty_snapshot(requested)

    ratio = overlap.days / covered.days
    logger.debug(
        "Rescaling snapshot to requested window",
        extra={
            "requested": str(requested),
            "covered": str(covered),
            "overlap_days": overlap.days,
            "ratio": ratio,
        },
    )
    return scale_snapshot(snapshot, ratio, overlap, settings.seconds_per_suggestion)
