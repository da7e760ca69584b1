"""Error types and process exit codes."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes returned by the ``monocov`` CLI."""

    OK = 0
    THRESHOLD_NOT_MET = 1
    USAGE = 2
    NO_INPUTS = 3
    PARSE_ERROR = 4
    IO_ERROR = 5
    DISCOVERY_ERROR = 6


class MonocovError(Exception):
    """Base class for all errors that abort a merge run."""

    exit_code: ExitCode = ExitCode.IO_ERROR


class DiscoveryError(MonocovError):
    """Raised when per-package report files cannot be enumerated."""

    exit_code = ExitCode.DISCOVERY_ERROR


class SummaryParseError(MonocovError):
    """Raised when a ``coverage-summary.json`` file is not a valid summary document."""

    exit_code = ExitCode.PARSE_ERROR

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Failed to parse coverage summary {path}: {reason}")
        self.path = path
        self.reason = reason


class CoverageIOError(MonocovError):
    """Raised when a report cannot be read or an output cannot be written."""

    exit_code = ExitCode.IO_ERROR


class ConfigError(MonocovError):
    """Raised when ``.monocov.yml`` cannot be loaded."""

    exit_code = ExitCode.USAGE
