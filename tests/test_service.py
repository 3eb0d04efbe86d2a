"""Tests for the async metrics service with a fake transport."""

import asyncio
import sys
from datetime import date
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from copilot_metrics.cache import SnapshotCache
from copilot_metrics.config import MetricsSettings
from copilot_metrics.errors import ApiError, InvalidScopeError, MetricsFetchError
from copilot_metrics.models import DateWindow, MetricName, MetricsScope
from copilot_metrics.service import MetricsService, validate_scope

TODAY = date(2026, 1, 28)
FULL_WINDOW = DateWindow(start=date(2026, 1, 1), end=date(2026, 1, 28))


class FakeClient:
    """Transport double returning canned payloads per team slug (``None`` for the org)."""

    def __init__(self, payloads=None, failures=None):
        self.payloads = payloads or {}
        self.failures = failures or {}
        self.calls = []

    def fetch_snapshot(self, scope, window=None):
        self.calls.append((scope, window))
        if scope.team_slug in self.failures:
            raise self.failures[scope.team_slug]
        return self.payloads.get(scope.team_slug, {})


def _service(client, cache=None, settings=None) -> MetricsService:
    return MetricsService(client, settings=settings, cache=cache, today=lambda: TODAY)


def test_fetch_organization_metrics_attaches_window_and_time_saved():
    """Verify org snapshots are normalized, anchored to the fetch window and enriched."""
    client = FakeClient(payloads={None: {"data": {"total_acceptance_count": "1000"}}})

    snapshot = asyncio.run(_service(client).get_organization_metrics("acme"))

    assert snapshot.acceptance_count == 1000
    assert snapshot.estimated_time_saved == 15.28
    assert snapshot.covered_window == FULL_WINDOW
    assert client.calls == [(MetricsScope("acme"), FULL_WINDOW)]


def test_fetch_adopts_window_reported_by_payload():
    """Verify window metadata carried by the payload wins over the fetch window."""
    payload = {"date_range": {"start_date": "2026-01-03", "end_date": "2026-01-27"}}
    client = FakeClient(payloads={None: payload})

    snapshot = asyncio.run(_service(client).get_organization_metrics("acme"))

    assert snapshot.covered_window == DateWindow(start=date(2026, 1, 3), end=date(2026, 1, 27))


def test_fetch_clamps_window_to_historical_limit():
    """Verify fetch windows longer than the provider limit are trimmed to its trailing days."""
    client = FakeClient()
    requested = DateWindow(start=date(2025, 11, 1), end=date(2026, 1, 28))

    asyncio.run(_service(client).get_organization_metrics("acme", requested))

    assert client.calls[0][1] == FULL_WINDOW


def test_fetch_failure_names_scope_and_status():
    """Verify transport failures surface as MetricsFetchError with scope and status."""
    client = FakeClient(failures={"web": ApiError("Not Found", status_code=404)})

    with pytest.raises(MetricsFetchError) as exc_info:
        asyncio.run(_service(client).get_team_metrics("acme", "web"))

    assert exc_info.value.status_code == 404
    assert exc_info.value.scope == MetricsScope("acme", "web")
    assert "team 'web' in organization 'acme'" in str(exc_info.value)
    assert "status 404" in str(exc_info.value)


@pytest.mark.parametrize("slug", ["teams", "Teams", "  "])
def test_reserved_or_blank_team_slug_rejected_before_fetch(slug):
    """Verify invalid team slugs fail before the transport is called."""
    client = FakeClient()

    with pytest.raises(InvalidScopeError):
        asyncio.run(_service(client).get_team_metrics("acme", slug))

    assert client.calls == []


def test_validate_scope_accepts_organization_and_regular_team():
    """Verify ordinary scopes pass validation."""
    validate_scope(MetricsScope("acme"))
    validate_scope(MetricsScope("acme", "web"))


def test_cache_hit_skips_transport_and_skip_cache_refetches():
    """Verify cached snapshots are reused unless the cache is bypassed."""
    client = FakeClient(payloads={None: {"total_completions_count": 10}})
    service = _service(client, cache=SnapshotCache())

    first = asyncio.run(service.get_organization_metrics("acme"))
    second = asyncio.run(service.get_organization_metrics("acme"))
    third = asyncio.run(service.get_organization_metrics("acme", skip_cache=True))

    assert first == second == third
    assert len(client.calls) == 2


def test_failed_fetch_is_not_cached():
    """Verify only complete snapshots are inserted into the cache."""
    cache = SnapshotCache()
    client = FakeClient(failures={"web": ApiError("boom", status_code=500)})

    with pytest.raises(MetricsFetchError):
        asyncio.run(_service(client, cache=cache).get_team_metrics("acme", "web"))

    assert len(cache) == 0


def test_get_filtered_metrics_rescales_full_window_snapshot():
    """Verify filtered metrics are approximated from the whole reporting window."""
    client = FakeClient(payloads={None: {"total_completions_count": 2800, "total_acceptance_count": 560}})
    requested = DateWindow(start=date(2026, 1, 22), end=date(2026, 1, 28))

    snapshot = asyncio.run(_service(client).get_filtered_metrics(MetricsScope("acme"), requested))

    assert snapshot.completions_count == 700
    assert snapshot.acceptance_count == 140
    assert snapshot.covered_window == requested
    assert client.calls[0][1] == FULL_WINDOW


def test_get_metrics_trend_synthesizes_points():
    """Verify trends are synthesized from one full-window snapshot."""
    client = FakeClient(payloads={"web": {"totalCompletionsCount": 2800}})

    trend = asyncio.run(
        _service(client).get_metrics_trend(MetricsScope("acme", "web"), "completions", 4, 7)
    )

    assert trend.metric is MetricName.COMPLETIONS
    assert [point.value for point in trend.points] == [700, 700, 700, 700]
    assert len(client.calls) == 1


def test_get_metrics_trend_propagates_fetch_failure():
    """Verify a failing fetch fails the trend instead of returning empty points."""
    client = FakeClient(failures={None: ApiError("Forbidden", status_code=403)})

    with pytest.raises(MetricsFetchError):
        asyncio.run(_service(client).get_metrics_trend(MetricsScope("acme"), "completions"))


def test_fetch_team_snapshots_collects_partial_failures():
    """Verify one failing team does not abort the other team fetches."""
    client = FakeClient(
        payloads={"web": {"total_completions_count": 5}, "api": {"total_completions_count": 7}},
        failures={"mobile": ApiError("Server Error", status_code=502)},
    )

    results = asyncio.run(_service(client).fetch_team_snapshots("acme", ["web", "mobile", "api", "teams"]))

    assert set(results.snapshots) == {"web", "api"}
    assert isinstance(results.failures["mobile"], MetricsFetchError)
    assert isinstance(results.failures["teams"], InvalidScopeError)
    assert len(client.calls) == 3


def test_get_team_comparison_omits_failed_teams():
    """Verify comparison values only include teams that were fetched successfully."""
    client = FakeClient(
        payloads={"web": {"total_active_users": 4}, "api": {"total_active_users": 4}},
        failures={"mobile": ApiError("Server Error", status_code=500)},
    )

    result = asyncio.run(
        _service(client).get_team_comparison("acme", ["web", "mobile", "api"], MetricName.ACTIVE_USERS)
    )

    assert result.entities == ("web", "mobile", "api")
    assert result.values == {"web": 4.0, "api": 4.0}
    assert result.highest() == ("web", 4.0)


def test_default_window_uses_clamped_period():
    """Verify the default reporting window respects the historical ceiling."""
    service = _service(FakeClient(), settings=MetricsSettings(default_period_days=7))

    assert service.default_window() == DateWindow(start=date(2026, 1, 22), end=TODAY)
    assert service.full_window() == FULL_WINDOW


def test_cached_snapshot_breakdowns_cannot_be_mutated_by_callers():
    """Verify a caller cannot corrupt the cached snapshot through its breakdown mapping."""
    payload = {
        "total_completions_count": 10,
        "file_extension_metrics": {".py": {"completions_count": 4}},
    }
    client = FakeClient(payloads={None: payload})
    service = _service(client, cache=SnapshotCache())

    first = asyncio.run(service.get_organization_metrics("acme"))
    with pytest.raises(TypeError):
        del first.file_extension_metrics[".py"]
    second = asyncio.run(service.get_organization_metrics("acme"))

    assert set(second.file_extension_metrics) == {".py"}
    assert len(client.calls) == 1


def test_default_window_ends_on_given_date():
    """Verify the default period can be anchored on an explicit end date."""
    service = _service(FakeClient(), settings=MetricsSettings(default_period_days=7))

    assert service.default_window(date(2026, 1, 14)) == DateWindow(
        start=date(2026, 1, 8), end=date(2026, 1, 14)
    )
