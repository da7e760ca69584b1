"""Reporters for presenting merge results."""

from __future__ import annotations

from monocov.reporters.terminal import CLIReporter, reporter

__all__ = ["CLIReporter", "reporter"]
