"""Cross-team comparison of a single metric."""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Union

from .calculator import extract_metric_value, resolve_metric
from .config import DEFAULT_SECONDS_PER_SUGGESTION
from .models import ComparisonResult, MetricName, MetricSnapshot


def compare_teams(
    team_slugs: Sequence[str],
    snapshots: Mapping[str, Optional[MetricSnapshot]],
    metric: Union[MetricName, str],
    seconds_per_suggestion: int = DEFAULT_SECONDS_PER_SUGGESTION,
) -> ComparisonResult:
    """Extract one value per team from already-fetched snapshots.

    Teams are reported on their own un-rescaled totals. A team listed in
    ``team_slugs`` without a snapshot stays in ``entities`` but is left out of
    ``values``.
    """
    selected = resolve_metric(metric)
    values: Dict[str, float] = {}

    for slug in team_slugs:
        snapshot = snapshots.get(slug)
        if snapshot is None:
            continue
        values[slug] = extract_metric_value(snapshot, selected, seconds_per_suggestion)

    return ComparisonResult(metric=selected, entities=tuple(team_slugs), values=values)
