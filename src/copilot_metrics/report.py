"""Formatting helpers for Copilot metrics reporting.

This module renders the engine's in-memory results as plain text:
- a usage summary for one organization or team snapshot,
- a trend table with its first-to-last change,
- a cross-team comparison with the leading team highlighted.
"""

from __future__ import annotations

from typing import List, Optional

from .models import ComparisonResult, MetricName, MetricSnapshot, Trend

_METRIC_LABELS = {
    MetricName.COMPLETIONS: "Completions",
    MetricName.ACCEPTANCE_RATE: "Acceptance Rate",
    MetricName.ACTIVE_USERS: "Active Users",
    MetricName.TIME_SAVED: "Time Saved",
    MetricName.AVG_COMPLETIONS: "Avg Completions per User",
}


def format_hours(hours: Optional[float]) -> str:
    """Format hours as ``12.5h``; ``"n/a"`` when not computed."""
    if hours is None:
        return "n/a"
    return f"{hours:.1f}h"


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def format_metric_value(metric: MetricName, value: float) -> str:
    """Format a metric value the way it is displayed in reports."""
    if metric is MetricName.ACCEPTANCE_RATE:
        return format_percentage(value)
    if metric is MetricName.TIME_SAVED:
        return format_hours(value)
    if metric is MetricName.AVG_COMPLETIONS:
        return f"{value:,.2f}"
    return f"{int(value):,}"


def generate_snapshot_report(scope_label: str, snapshot: MetricSnapshot, top_n: int = 5) -> str:
    """Generate a human-readable usage summary for one snapshot.

    Repositories and file extensions are listed by completions, largest first,
    limited to ``top_n`` entries each.
    """
    window = str(snapshot.covered_window) if snapshot.covered_window else "unknown window"
    lines = [
        f"Scope: {scope_label}",
        f"Window: {window}",
        "Copilot Usage Report",
        "",
        f"   Completions: {snapshot.completions_count:,}",
        f"   Suggestions: {snapshot.suggestion_count:,}",
        f"   Acceptances: {snapshot.acceptance_count:,}",
        f"   Acceptance Rate: {format_percentage(snapshot.acceptance_percentage)}",
        f"   Active Users: {snapshot.active_users:,}",
        f"   Avg Completions per User: {snapshot.avg_completions_per_user:,.2f}",
        f"   Estimated Time Saved: {format_hours(snapshot.estimated_time_saved)}",
    ]

    repositories = sorted(
        snapshot.repository_metrics, key=lambda repo: repo.completions_count, reverse=True
    )[:top_n]
    if repositories:
        lines.extend(["", "Top Repositories"])
        for repo in repositories:
            lines.append(
                f"   {repo.repository_name or repo.repository_id or '(unnamed)'}: "
                f"{repo.completions_count:,} completions, "
                f"{format_percentage(repo.acceptance_percentage)} accepted"
            )

    extensions = sorted(
        snapshot.file_extension_metrics.items(),
        key=lambda item: item[1].completions_count,
        reverse=True,
    )[:top_n]
    if extensions:
        lines.extend(["", "Top File Extensions"])
        for label, metrics in extensions:
            lines.append(
                f"   {label}: {metrics.completions_count:,} completions, "
                f"{format_percentage(metrics.acceptance_percentage)} accepted"
            )

    return "\n".join(lines)


def generate_trend_report(scope_label: str, trend: Trend) -> str:
    """Generate a per-period table for a trend."""
    lines = [
        f"Scope: {scope_label}",
        f"{_METRIC_LABELS[trend.metric]} Trend",
        "",
    ]
    for point in trend.points:
        lines.append(f"   {point.date.isoformat()}: {format_metric_value(trend.metric, point.value)}")

    lines.extend(["", f"Change: {trend.change_percentage:+.2f}%"])
    return "\n".join(lines)


def generate_comparison_report(comparison: ComparisonResult) -> str:
    """Generate a side-by-side team table; teams without data are shown as ``n/a``."""
    lines: List[str] = [f"{_METRIC_LABELS[comparison.metric]} by Team", ""]
    highest = comparison.highest()

    for entity in comparison.entities:
        if entity not in comparison.values:
            lines.append(f"   {entity}: n/a")
            continue
        marker = " (highest)" if highest is not None and highest[0] == entity else ""
        value = format_metric_value(comparison.metric, comparison.values[entity])
        lines.append(f"   {entity}: {value}{marker}")

    return "\n".join(lines)
