"""Tests for derived metric calculations and metric selection."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from copilot_metrics.calculator import (
    calculate_time_saved,
    enhance_with_derived_metrics,
    extract_metric_value,
    resolve_metric,
    safe_percentage,
    safe_ratio,
)
from copilot_metrics.models import MetricName, MetricSnapshot


def test_calculate_time_saved_rounds_to_two_decimals():
    """Verify time saved converts seconds to hours rounded to two decimal places."""
    assert calculate_time_saved(1000, 55) == 15.28
    assert calculate_time_saved(200, 55) == 3.06
    assert calculate_time_saved(3600, 1) == 1.0
    assert calculate_time_saved(0, 55) == 0.0


def test_calculate_time_saved_uses_default_seconds_per_suggestion():
    """Verify the default constant of 55 seconds per suggestion is applied."""
    assert calculate_time_saved(1000) == 15.28


def test_enhance_with_derived_metrics_returns_new_snapshot():
    """Verify enrichment populates time saved without mutating the input snapshot."""
    snapshot = MetricSnapshot(acceptance_count=1000)

    enhanced = enhance_with_derived_metrics(snapshot, 55)

    assert enhanced.estimated_time_saved == 15.28
    assert snapshot.estimated_time_saved is None
    assert enhanced.acceptance_count == 1000


def test_safe_division_helpers_guard_zero_denominators():
    """Verify ratio helpers return zero for empty denominators and cap percentages."""
    assert safe_ratio(10, 0) == 0.0
    assert safe_ratio(10, 4) == 2.5
    assert safe_percentage(5, 0) == 0.0
    assert safe_percentage(1, 4) == 25.0
    assert safe_percentage(5, 4) == 100.0


def test_resolve_metric_accepts_values_and_falls_back_to_completions():
    """Verify metric selectors resolve from strings and unknown names fall back."""
    assert resolve_metric("acceptanceRate") is MetricName.ACCEPTANCE_RATE
    assert resolve_metric(MetricName.TIME_SAVED) is MetricName.TIME_SAVED
    assert resolve_metric("bogus") is MetricName.COMPLETIONS


@pytest.mark.parametrize(
    "metric, expected",
    [
        (MetricName.COMPLETIONS, 500.0),
        (MetricName.ACCEPTANCE_RATE, 40.0),
        (MetricName.ACTIVE_USERS, 5.0),
        (MetricName.TIME_SAVED, 3.06),
        (MetricName.AVG_COMPLETIONS, 100.0),
    ],
)
def test_extract_metric_value_selects_expected_field(metric, expected):
    """Verify each metric selector maps to its snapshot field."""
    snapshot = MetricSnapshot(
        completions_count=500,
        acceptance_count=200,
        acceptance_percentage=40.0,
        active_users=5,
    )

    assert extract_metric_value(snapshot, metric, 55) == pytest.approx(expected)


def test_extract_metric_value_prefers_sourced_values():
    """Verify sourced averages and computed time saved take precedence over recomputation."""
    snapshot = MetricSnapshot(
        completions_count=500,
        active_users=5,
        avg_completions_per_user=42.0,
        acceptance_count=200,
        estimated_time_saved=9.99,
    )

    assert extract_metric_value(snapshot, MetricName.AVG_COMPLETIONS) == 42.0
    assert extract_metric_value(snapshot, MetricName.TIME_SAVED) == 9.99
