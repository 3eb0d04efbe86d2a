"""Logging configuration with GitHub token redaction."""

from __future__ import annotations

import logging
import re
from typing import ClassVar, List, Pattern, Tuple


class TokenRedactingFilter(logging.Filter):
    """Filter that redacts GitHub credentials from log messages."""

    SECRET_PATTERNS: ClassVar[List[Tuple[Pattern[str], str]]] = [
        (re.compile(r"gh[pousr]_[a-zA-Z0-9]{20,}"), "[REDACTED_GH_TOKEN]"),
        (re.compile(r"github_pat_[a-zA-Z0-9_]+"), "[REDACTED_GH_PAT]"),
        (re.compile(r"(Authorization:\s*)[^\s,\]]+(\s+[^\s,\]]+)?", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(token[=:]\s*)[^\s,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(str(record.msg))
        if record.args:
            record.args = tuple(
                self._redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True

    def _redact(self, text: str) -> str:
        for pattern, replacement in self.SECRET_PATTERNS:
            text = pattern.sub(replacement, text)
        return text


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for the command-line front-end.

    Args:
        verbose: Enable debug level logging.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    redaction_filter = TokenRedactingFilter()
    for handler in logging.getLogger().handlers:
        handler.addFilter(redaction_filter)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
