"""Normalization and date-range approximation engine for GitHub Copilot usage metrics."""

__version__ = "0.1.0"
