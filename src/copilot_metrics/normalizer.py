"""Normalization of raw Copilot metrics payloads into canonical snapshots.

The upstream response shape is not a contract: totals may sit at the top level or
inside a ``metrics``/``data`` envelope, keys arrive in snake_case or camelCase, and
numbers are sometimes serialized as strings. Every canonical field is resolved from a
declarative table of candidate keys, probed in priority order (snake-style first),
and falls back to a typed zero/empty default. Nothing here raises for malformed
input; the worst case is an all-zero snapshot.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import DateWindow, FileExtensionMetrics, MetricSnapshot, RepositoryMetrics

logger = logging.getLogger(__name__)

_ENVELOPE_KEYS = ("metrics", "data")

_SNAPSHOT_COUNT_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("completions_count", ("total_completions_count", "totalCompletionsCount")),
    ("suggestion_count", ("total_suggestion_count", "totalSuggestionCount")),
    ("acceptance_count", ("total_acceptance_count", "totalAcceptanceCount")),
    ("active_users", ("total_active_users", "totalActiveUsers")),
)

_SNAPSHOT_PERCENTAGE_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("acceptance_percentage", ("total_acceptance_percentage", "totalAcceptancePercentage")),
    ("avg_acceptance_percentage", ("avg_acceptance_percentage", "avgAcceptancePercentage")),
)

_SNAPSHOT_AVERAGE_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("avg_completions_per_user", ("avg_completions_per_user", "avgCompletionsPerUser")),
    ("avg_suggestions_per_user", ("avg_suggestions_per_user", "avgSuggestionsPerUser")),
)

_REPOSITORY_TEXT_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("repository_id", ("repository_id", "repositoryId")),
    ("repository_name", ("repository_name", "repositoryName")),
)

_REPOSITORY_COUNT_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("completions_count", ("completions_count", "completionsCount")),
    (
        "suggestion_count",
        ("suggestion_count", "suggestions_count", "suggestionCount", "suggestionsCount"),
    ),
    ("acceptance_count", ("acceptance_count", "acceptanceCount")),
    ("active_users", ("active_users", "activeUsers")),
)

_EXTENSION_COUNT_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("completions_count", ("completions_count", "completionsCount")),
    (
        "suggestions_count",
        ("suggestions_count", "suggestion_count", "suggestionsCount", "suggestionCount"),
    ),
    ("acceptance_count", ("acceptance_count", "acceptanceCount")),
)

_ACCEPTANCE_PERCENTAGE_KEYS = ("acceptance_percentage", "acceptancePercentage")
_REPOSITORY_COLLECTION_KEYS = ("repository_metrics", "repositoryMetrics")
_EXTENSION_COLLECTION_KEYS = ("file_extension_metrics", "fileExtensionMetrics")
_FILES_COLLECTION_KEYS = ("files",)
_EXTENSION_LABEL_KEYS = ("extension", "file_extension", "fileExtension", "language")


def _probe(source: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the value of the first candidate key present in ``source``."""
    for key in keys:
        if key in source and source[key] is not None:
            return source[key]
    return None


def to_number(value: Any) -> float:
    """Coerce a numeric or numeric-as-string value, degrading to ``0.0``.

    Booleans, non-numeric strings, NaN, infinities and integers too large for a
    float all become zero so they never leak into downstream arithmetic.
    """
    if isinstance(value, bool) or value is None:
        return 0.0

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def to_count(value: Any) -> int:
    """Coerce ``value`` to a non-negative integer count."""
    number = to_number(value)
    if number <= 0:
        return 0
    return int(math.floor(number + 0.5))


def to_percentage(value: Any) -> float:
    """Coerce ``value`` to a percentage clamped to ``[0, 100]``."""
    return min(100.0, max(0.0, to_number(value)))


def _to_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _resolve_fields(
    source: Mapping[str, Any],
    table: Sequence[Tuple[str, Tuple[str, ...]]],
    coerce: Any,
) -> Dict[str, Any]:
    return {name: coerce(_probe(source, keys)) for name, keys in table}


def _unwrap(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Use the first conventional envelope sub-object, if any; unwraps a single level."""
    for key in _ENVELOPE_KEYS:
        candidate = payload.get(key)
        if isinstance(candidate, Mapping):
            return candidate
    return payload


def _normalize_extension(entry: Any) -> FileExtensionMetrics:
    if not isinstance(entry, Mapping):
        raise TypeError(f"expected a mapping, got {type(entry).__name__}")

    return FileExtensionMetrics(
        acceptance_percentage=to_percentage(_probe(entry, _ACCEPTANCE_PERCENTAGE_KEYS)),
        **_resolve_fields(entry, _EXTENSION_COUNT_FIELDS, to_count),
    )


def _normalize_extension_collection(collection: Any) -> Dict[str, FileExtensionMetrics]:
    """Normalize a label->entry mapping, or a sequence of labelled entries."""
    if isinstance(collection, Mapping):
        items: List[Tuple[str, Any]] = [(str(label), entry) for label, entry in collection.items()]
    elif isinstance(collection, (list, tuple)):
        items = []
        for entry in collection:
            label = _probe(entry, _EXTENSION_LABEL_KEYS) if isinstance(entry, Mapping) else None
            if label is None:
                logger.debug("Skipping unlabelled file extension entry", extra={"entry": entry})
                continue
            items.append((str(label), entry))
    else:
        return {}

    extensions: Dict[str, FileExtensionMetrics] = {}
    for label, entry in items:
        try:
            extensions[label] = _normalize_extension(entry)
        except (TypeError, ValueError, OverflowError) as exc:
            logger.debug(
                "Skipping malformed file extension entry",
                extra={"extension": label, "error": str(exc)},
            )
    return extensions


def _normalize_repository(entry: Any) -> RepositoryMetrics:
    if not isinstance(entry, Mapping):
        raise TypeError(f"expected a mapping, got {type(entry).__name__}")

    return RepositoryMetrics(
        acceptance_percentage=to_percentage(_probe(entry, _ACCEPTANCE_PERCENTAGE_KEYS)),
        files=_normalize_extension_collection(_probe(entry, _FILES_COLLECTION_KEYS)),
        **_resolve_fields(entry, _REPOSITORY_TEXT_FIELDS, _to_text),
        **_resolve_fields(entry, _REPOSITORY_COUNT_FIELDS, to_count),
    )


def _normalize_repository_collection(collection: Any) -> Tuple[RepositoryMetrics, ...]:
    if not isinstance(collection, (list, tuple)):
        return ()

    repositories: List[RepositoryMetrics] = []
    for index, entry in enumerate(collection):
        try:
            repositories.append(_normalize_repository(entry))
        except (TypeError, ValueError, OverflowError) as exc:
            logger.debug(
                "Skipping malformed repository entry",
                extra={"index": index, "error": str(exc)},
            )
    return tuple(repositories)


def _resolve_window(source: Mapping[str, Any]) -> Optional[DateWindow]:
    """Adopt window metadata carried by the payload; never invents dates."""
    snake = source.get("date_range")
    if isinstance(snake, Mapping):
        window = DateWindow.parse(snake.get("start_date"), snake.get("end_date"))
        if window is not None:
            return window

    camel = source.get("dateRange")
    if isinstance(camel, Mapping):
        return DateWindow.parse(camel.get("startDate"), camel.get("endDate"))

    return None


def normalize_snapshot(payload: Any) -> MetricSnapshot:
    """Convert an arbitrary parsed JSON payload into a canonical ``MetricSnapshot``.

    Args:
        payload: Result of parsing an upstream metrics response, or an already
            canonical snapshot (returned unchanged).

    Returns:
        A fully populated snapshot; absent numbers are zero and absent collections
        empty. ``covered_window`` is only set when the payload carries one.
    """
    if isinstance(payload, MetricSnapshot):
        return payload

    if not isinstance(payload, Mapping):
        logger.debug(
            "Metrics payload is not a mapping; returning empty snapshot",
            extra={"payload_type": type(payload).__name__},
        )
        return MetricSnapshot()

    source = _unwrap(payload)

    snapshot = MetricSnapshot(
        repository_metrics=_normalize_repository_collection(
            _probe(source, _REPOSITORY_COLLECTION_KEYS)
        ),
        file_extension_metrics=_normalize_extension_collection(
            _probe(source, _EXTENSION_COLLECTION_KEYS)
        ),
        covered_window=_resolve_window(source),
        **_resolve_fields(source, _SNAPSHOT_COUNT_FIELDS, to_count),
        **_resolve_fields(source, _SNAPSHOT_PERCENTAGE_FIELDS, to_percentage),
        **_resolve_fields(source, _SNAPSHOT_AVERAGE_FIELDS, lambda value: max(0.0, to_number(value))),
    )

    logger.debug(
        "Normalized metrics payload",
        extra={
            "completions_count": snapshot.completions_count,
            "acceptance_count": snapshot.acceptance_count,
            "repositories": len(snapshot.repository_metrics),
            "extensions": len(snapshot.file_extension_metrics),
        },
    )
    return snapshot
