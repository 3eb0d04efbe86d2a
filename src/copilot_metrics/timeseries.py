"""Synthesize chart-ready trends from a single bulk metrics snapshot.

The metrics API cannot be queried per period inside its historical limit, so each
trend point is derived from one snapshot by distributing it over fixed-length
periods that count backward from today. A period receives a share of a count
metric proportional to its calendar overlap with the snapshot's covered window;
rate metrics are not divisible across time and are copied whole into every period
that overlaps at all.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple, Union

from .calculator import extract_metric_value, resolve_metric, round_half_up
from .config import MetricsSettings
from .models import DateWindow, MetricName, MetricSnapshot, Trend, TrendPoint
from .rescaler import resolve_covered_window

logger = logging.getLogger(__name__)


def adjust_period_config(
    periods: int,
    period_days: int,
    max_historical_days: int,
) -> Tuple[int, int]:
    """Fit ``periods * period_days`` inside the provider's historical limit.

    The period count is kept when shrinking the period length is enough; otherwise
    the count shrinks with the length held, down to one period spanning the whole
    limit.

    Returns:
        ``(periods, period_days)`` that never reach past ``max_historical_days``.
    """
    periods = max(1, periods)
    period_days = max(1, period_days)

    if periods * period_days <= max_historical_days:
        return periods, period_days

    shrunk_days = max_historical_days // periods
    if shrunk_days >= 1:
        return periods, shrunk_days

    shrunk_periods = max_historical_days // period_days
    if shrunk_periods >= 1:
        return shrunk_periods, period_days

    return 1, max_historical_days


def period_windows(periods: int, period_days: int, today: date) -> List[DateWindow]:
    """Windows of ``period_days`` walking backward from ``today``, most recent first."""
    windows: List[DateWindow] = []
    for index in range(periods):
        end = today - timedelta(days=index * period_days)
        windows.append(DateWindow.trailing(period_days, end))
    return windows


def calculate_change_percentage(points: Sequence[TrendPoint]) -> float:
    """Percentage change from the first to the last point; ``0.0`` when the first is zero."""
    if not points:
        return 0.0

    first_value = points[0].value
    last_value = points[-1].value
    if first_value == 0:
        return 0.0
    return (last_value - first_value) / first_value * 100


def _period_value(
    metric: MetricName,
    whole_value: float,
    overlap: Optional[DateWindow],
    covered: DateWindow,
) -> float:
    if overlap is None:
        return 0.0
    if metric.is_rate:
        return whole_value

    share = whole_value * overlap.days / covered.days
    if metric is MetricName.TIME_SAVED:
        return round_half_up(share, 2)
    return round_half_up(share)


def synthesize_trend(
    snapshot: MetricSnapshot,
    metric: Union[MetricName, str],
    periods: int = 10,
    period_days: int = 7,
    settings: Optional[MetricsSettings] = None,
    today: Optional[date] = None,
) -> Trend:
    """Distribute one snapshot across periods ending today.

    Args:
        snapshot: Canonical snapshot; its ``covered_window`` anchors the overlap.
        metric: Metric selector, e.g. ``MetricName.COMPLETIONS`` or ``"acceptanceRate"``.
        periods: Requested number of periods.
        period_days: Requested length of each period.
        settings: Calculation constants; defaults are used when omitted.
        today: End date of the most recent period; defaults to the current date.

    Returns:
        Trend with one point per (adjusted) period, oldest first.
    """
    settings = settings or MetricsSettings()
    today = today or date.today()
    selected = resolve_metric(metric)

    effective_periods, effective_days = adjust_period_config(
        periods, period_days, settings.max_historical_days
    )
    if (effective_periods, effective_days) != (periods, period_days):
        logger.info(
            "Adjusted trend periods to fit historical limit",
            extra={
                "requested_periods": periods,
                "requested_period_days": period_days,
                "periods": effective_periods,
                "period_days": effective_days,
                "max_historical_days": settings.max_historical_days,
            },
        )

    covered = resolve_covered_window(snapshot, settings, today)
    whole_value = extract_metric_value(snapshot, selected, settings.seconds_per_suggestion)

    points = [
        TrendPoint(
            date=window.end,
            value=_period_value(selected, whole_value, window.intersection(covered), covered),
        )
        for window in period_windows(effective_periods, effective_days, today)
    ]
    points.sort(key=lambda point: point.date)

    return Trend(
        metric=selected,
        points=tuple(points),
        change_percentage=calculate_change_percentage(points),
    )
