"""Entry point for the Copilot metrics report generator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import List, Optional, Sequence

from .cache import SnapshotCache
from .cli import parse_args
from .config import Config, load_config
from .copilot_client import CopilotClient
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    CopilotMetricsError,
    InvalidScopeError,
    MetricsFetchError,
)
from .logging_config import setup_logging
from .models import DateWindow, MetricsScope
from .report import generate_comparison_report, generate_snapshot_report, generate_trend_report
from .service import MetricsService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_INVALID_SCOPE = 5


def resolve_window(
    service: MetricsService,
    start: Optional[date],
    end: Optional[date],
    today: date,
) -> DateWindow:
    """Fill in missing window bounds from the service's default reporting period."""
    if start is None:
        return service.default_window(end)
    return DateWindow(start=start, end=end or today)


async def build_report(
    args: argparse.Namespace,
    config: Config,
    client: CopilotClient,
    today: date,
) -> str:
    """Run the requested report against the metrics service and render it."""
    cache = None if args.no_cache else SnapshotCache(ttl_seconds=config.cache_ttl_seconds)
    service = MetricsService(client, settings=config.settings, cache=cache, today=lambda: today)

    team_slug = config.team_slugs[0] if config.team_slugs else None
    scope = MetricsScope(config.organization, team_slug)

    if args.report == "trend":
        trend = await service.get_metrics_trend(
            scope,
            args.metric,
            periods=args.periods,
            period_days=args.period_days,
        )
        return generate_trend_report(scope.label, trend)

    if args.report == "compare":
        team_slugs: List[str] = list(config.team_slugs)
        if args.all_teams:
            teams = await asyncio.to_thread(client.list_teams, config.organization)
            team_slugs.extend(team.slug for team in teams if team.slug not in team_slugs)
        if not team_slugs:
            raise ConfigurationError("The compare report requires --team or --all-teams.")

        window = None
        if args.start is not None or args.end is not None:
            window = resolve_window(service, args.start, args.end, today)
        comparison = await service.get_team_comparison(
            config.organization, team_slugs, args.metric, window
        )
        return generate_comparison_report(comparison)

    requested = resolve_window(service, args.start, args.end, today)
    snapshot = await service.get_filtered_metrics(scope, requested)
    return generate_snapshot_report(scope.label, snapshot)


def orchestrate_metrics_report(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the requested report and map failures to exit codes."""
    try:
        args = parse_args(argv)
        setup_logging(verbose=args.verbose)

        config = load_config(organization=args.org, team_slugs=tuple(args.teams))
        client = CopilotClient(config=config)

        report = asyncio.run(build_report(args, config, client, date.today()))
        print(report)
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        print(f"Authentication error: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except InvalidScopeError as exc:
        print(f"Invalid scope: {exc}", file=sys.stderr)
        return EXIT_INVALID_SCOPE
    except (ApiError, MetricsFetchError) as exc:
        print(f"GitHub API error: {exc}", file=sys.stderr)
        return EXIT_API
    except CopilotMetricsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED
    except Exception:
        logger.exception("Unexpected failure while generating Copilot metrics report")
        return EXIT_UNEXPECTED


def main() -> None:
    raise SystemExit(orchestrate_metrics_report())


if __name__ == "__main__":
    main()
