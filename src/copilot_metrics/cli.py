"""Command-line argument parsing for the Copilot metrics report generator."""

from __future__ import annotations

import argparse
from datetime import date
from typing import Optional, Sequence

from .models import MetricName


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def _iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` CLI value."""
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a date in YYYY-MM-DD format") from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for Copilot metrics reporting.

    Returns:
        Parsed CLI arguments: organization, teams, report kind, optional window
        bounds, metric selector and trend period settings.
    """
    parser = argparse.ArgumentParser(
        prog="copilot-metrics",
        description=(
            "Report GitHub Copilot usage for an organization or its teams: "
            "window summaries, synthesized trends and team comparisons."
        ),
    )

    parser.add_argument(
        "--org",
        required=True,
        help="GitHub organization login.",
    )
    parser.add_argument(
        "--team",
        dest="teams",
        action="append",
        default=[],
        help="Team slug (repeatable). Summary and trend reports use the first team.",
    )
    parser.add_argument(
        "--all-teams",
        action="store_true",
        help="Compare every team in the organization (compare report only).",
    )
    parser.add_argument(
        "--report",
        choices=("summary", "trend", "compare"),
        default="summary",
        help="Report to generate (default: summary).",
    )
    parser.add_argument(
        "--start",
        type=_iso_date,
        default=None,
        help="First day of the reporting window (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--end",
        type=_iso_date,
        default=None,
        help="Last day of the reporting window (YYYY-MM-DD, default: today).",
    )
    parser.add_argument(
        "--metric",
        choices=[metric.value for metric in MetricName],
        default=MetricName.COMPLETIONS.value,
        help="Metric for trend and compare reports (default: completions).",
    )
    parser.add_argument(
        "--periods",
        type=_positive_int,
        default=10,
        help="Number of trend periods (default: 10).",
    )
    parser.add_argument(
        "--period-days",
        type=_positive_int,
        default=7,
        help="Days per trend period (default: 7).",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Bypass the in-memory snapshot cache.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    args = parser.parse_args(argv)
    if args.start is not None and args.end is not None and args.end < args.start:
        parser.error("--end must not be earlier than --start")

    return args
