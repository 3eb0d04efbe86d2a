"""Tests for proportional window rescaling."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from copilot_metrics.config import MetricsSettings
from copilot_metrics.models import DateWindow, FileExtensionMetrics, MetricSnapshot, RepositoryMetrics
from copilot_metrics.rescaler import rescale_to_window

COVERED = DateWindow(start=date(2026, 1, 1), end=date(2026, 1, 28))


def _window(start_day: int, end_day: int, month: int = 1) -> DateWindow:
    return DateWindow(start=date(2026, month, start_day), end=date(2026, month, end_day))


def _snapshot(**overrides) -> MetricSnapshot:
    values = dict(
        completions_count=2800,
        suggestion_count=1400,
        acceptance_count=560,
        acceptance_percentage=38.5,
        active_users=28,
        avg_completions_per_user=100.0,
        avg_suggestions_per_user=50.0,
        avg_acceptance_percentage=38.5,
        repository_metrics=(
            RepositoryMetrics(
                repository_id="1",
                repository_name="api",
                completions_count=1000,
                suggestion_count=500,
                acceptance_count=200,
                acceptance_percentage=40.0,
                active_users=10,
                files={".py": FileExtensionMetrics(completions_count=600, suggestions_count=300)},
            ),
        ),
        file_extension_metrics={
            ".py": FileExtensionMetrics(
                completions_count=1600,
                suggestions_count=800,
                acceptance_count=320,
                acceptance_percentage=40.0,
            )
        },
        covered_window=COVERED,
        estimated_time_saved=8.56,
    )
    values.update(overrides)
    return MetricSnapshot(**values)


def test_rescale_identity_when_requested_equals_covered():
    """Verify a full-window request keeps counts and recomputes percentages from them."""
    snapshot = _snapshot()

    result = rescale_to_window(snapshot, COVERED, MetricsSettings())

    assert result.completions_count == 2800
    assert result.suggestion_count == 1400
    assert result.acceptance_count == 560
    assert result.active_users == 28
    assert result.acceptance_percentage == pytest.approx(40.0)
    assert result.covered_window == COVERED
    assert result.estimated_time_saved == 8.56
    assert result.repository_metrics[0].completions_count == 1000
    assert result.file_extension_metrics[".py"].acceptance_count == 320


def test_rescale_half_window_scales_counts_and_recomputes_ratios():
    """Verify counts scale by overlap ratio while rates come from scaled counts."""
    result = rescale_to_window(_snapshot(), _window(1, 14), MetricsSettings())

    assert result.completions_count == 1400
    assert result.suggestion_count == 700
    assert result.acceptance_count == 280
    assert result.active_users == 14
    assert result.acceptance_percentage == pytest.approx(40.0)
    assert result.avg_acceptance_percentage == pytest.approx(40.0)
    assert result.avg_completions_per_user == pytest.approx(100.0)
    assert result.avg_suggestions_per_user == pytest.approx(50.0)
    assert result.estimated_time_saved == 4.28
    assert result.covered_window == _window(1, 14)


def test_rescale_scales_repository_and_extension_breakdowns():
    """Verify per-repository, per-file and per-extension counts are scaled too."""
    result = rescale_to_window(_snapshot(), _window(1, 14))

    repo = result.repository_metrics[0]
    assert repo.repository_name == "api"
    assert repo.completions_count == 500
    assert repo.suggestion_count == 250
    assert repo.acceptance_count == 100
    assert repo.active_users == 5
    assert repo.files[".py"].completions_count == 300
    assert result.file_extension_metrics[".py"].completions_count == 800
    assert result.file_extension_metrics[".py"].acceptance_percentage == pytest.approx(40.0)


def test_rescale_partial_overlap_uses_intersection_as_covered_window():
    """Verify a request straddling the covered start is scaled to its overlap only."""
    requested = DateWindow(start=date(2025, 12, 20), end=date(2026, 1, 7))

    result = rescale_to_window(_snapshot(), requested)

    assert result.covered_window == _window(1, 7)
    assert result.completions_count == 700


@pytest.mark.parametrize(
    "requested",
    [
        DateWindow(start=date(2025, 12, 1), end=date(2025, 12, 31)),
        DateWindow(start=date(2026, 2, 1), end=date(2026, 2, 10)),
    ],
)
def test_rescale_without_overlap_returns_zero_snapshot_for_requested_window(requested):
    """Verify a disjoint request yields zero counts reported on the requested window."""
    result = rescale_to_window(_snapshot(), requested)

    assert result.completions_count == 0
    assert result.suggestion_count == 0
    assert result.acceptance_count == 0
    assert result.active_users == 0
    assert result.acceptance_percentage == 0.0
    assert result.repository_metrics == ()
    assert result.file_extension_metrics == {}
    assert result.estimated_time_saved == 0.0
    assert result.covered_window == requested


def test_rescale_is_monotonic_in_overlap():
    """Verify growing the overlap never shrinks any scaled count."""
    snapshot = _snapshot(completions_count=997, suggestion_count=451, acceptance_count=173, active_users=13)
    previous = None

    for end_day in range(1, 29):
        result = rescale_to_window(snapshot, _window(1, end_day))
        counts = (
            result.completions_count,
            result.suggestion_count,
            result.acceptance_count,
            result.active_users,
            result.repository_metrics[0].completions_count,
        )
        if previous is not None:
            assert all(current >= before for current, before in zip(counts, previous))
        previous = counts


def test_rescale_zero_denominators_yield_zero_rates():
    """Verify zero suggestions and zero users produce zero rates instead of errors."""
    snapshot = _snapshot(suggestion_count=0, acceptance_count=5, active_users=0)

    result = rescale_to_window(snapshot, _window(1, 14))

    assert result.acceptance_percentage == 0.0
    assert result.avg_completions_per_user == 0.0
    assert result.avg_suggestions_per_user == 0.0


def test_rescale_tolerates_acceptance_above_suggestions():
    """Verify inconsistent upstream counts are scaled without crashing and rates stay capped."""
    snapshot = _snapshot(suggestion_count=10, acceptance_count=20)

    result = rescale_to_window(snapshot, COVERED)

    assert result.acceptance_count == 20
    assert result.acceptance_percentage == 100.0


def test_rescale_same_day_windows_do_not_divide_by_zero():
    """Verify single-day windows count as one day."""
    day = DateWindow(start=date(2026, 1, 5), end=date(2026, 1, 5))
    snapshot = _snapshot(covered_window=day)

    result = rescale_to_window(snapshot, day)

    assert result.completions_count == 2800


def test_rescale_assumes_trailing_window_when_snapshot_has_none():
    """Verify a snapshot without window metadata is anchored to the trailing historical window."""
    snapshot = _snapshot(covered_window=None)

    result = rescale_to_window(snapshot, _window(1, 14), MetricsSettings(), today=date(2026, 1, 28))

    assert result.completions_count == 1400


def test_rescale_does_not_mutate_input_snapshot():
    """Verify the source snapshot is untouched after rescaling."""
    snapshot = _snapshot()

    rescale_to_window(snapshot, _window(1, 7))

    assert snapshot == _snapshot()


def test_rescaled_breakdowns_are_read_only():
    """Verify scaled extension breakdowns cannot be mutated in place."""
    result = rescale_to_window(_snapshot(), _window(1, 14))

    with pytest.raises(TypeError):
        result.file_extension_metrics[".js"] = FileExtensionMetrics()

    assert result.file_extension_metrics[".py"].completions_count == 800
    assert result.repository_metrics[0].files[".py"].completions_count == 300
