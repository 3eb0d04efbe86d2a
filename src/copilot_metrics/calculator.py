"""Derived metric calculations for canonical Copilot snapshots.

Estimated time saved assumes every accepted suggestion saves the developer a fixed
number of seconds (55 by default). The real saving depends on suggestion length,
language familiarity and typing speed, so the value is an indicator rather than a
measurement.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Union

from .config import DEFAULT_SECONDS_PER_SUGGESTION
from .models import MetricName, MetricSnapshot

logger = logging.getLogger(__name__)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round non-negative values with halves going up (``0.5 -> 1``)."""
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def calculate_time_saved(
    acceptance_count: int,
    seconds_per_suggestion: int = DEFAULT_SECONDS_PER_SUGGESTION,
) -> float:
    """Calculate estimated time saved in hours, rounded to two decimal places.

    Args:
        acceptance_count: Number of accepted suggestions.
        seconds_per_suggestion: Average time saved per accepted suggestion.

    Returns:
        Hours saved, e.g. ``15.28`` for 1000 acceptances at 55 seconds each.
    """
    return round_half_up(acceptance_count * seconds_per_suggestion / 3600, 2)


def enhance_with_derived_metrics(
    snapshot: MetricSnapshot,
    seconds_per_suggestion: int = DEFAULT_SECONDS_PER_SUGGESTION,
) -> MetricSnapshot:
    """Return a copy of ``snapshot`` with ``estimated_time_saved`` populated."""
    return replace(
        snapshot,
        estimated_time_saved=calculate_time_saved(snapshot.acceptance_count, seconds_per_suggestion),
    )


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator``, or ``0.0`` for a zero denominator."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def safe_percentage(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator * 100`` capped at 100, or ``0.0`` for a zero denominator."""
    return min(100.0, safe_ratio(numerator, denominator) * 100)


def resolve_metric(metric: Union[MetricName, str]) -> MetricName:
    """Map a metric selector to ``MetricName``; unknown selectors fall back to completions."""
    if isinstance(metric, MetricName):
        return metric

    try:
        return MetricName(metric)
    except ValueError:
        logger.warning(
            "Unknown metric selector; falling back to completions",
            extra={"metric": metric},
        )
        return MetricName.COMPLETIONS


def extract_metric_value(
    snapshot: MetricSnapshot,
    metric: MetricName,
    seconds_per_suggestion: int = DEFAULT_SECONDS_PER_SUGGESTION,
) -> float:
    """Pick the scalar that represents ``metric`` for one snapshot."""
    if metric is MetricName.ACCEPTANCE_RATE:
        return snapshot.acceptance_percentage
    if metric is MetricName.ACTIVE_USERS:
        return float(snapshot.active_users)
    if metric is MetricName.TIME_SAVED:
        if snapshot.estimated_time_saved is not None:
            return snapshot.estimated_time_saved
        return calculate_time_saved(snapshot.acceptance_count, seconds_per_suggestion)
    if metric is MetricName.AVG_COMPLETIONS:
        if snapshot.avg_completions_per_user:
            return snapshot.avg_completions_per_user
        return safe_ratio(snapshot.completions_count, snapshot.active_users)
    return float(snapshot.completions_count)
