"""Merge Istanbul ``coverage-summary.json`` documents.

A summary document maps a scope to per-axis metrics::

    {
      "total": {
        "lines": {"total": 10, "covered": 5, "skipped": 0, "pct": 50},
        "functions": {...},
        "statements": {...},
        "branches": {...}
      },
      "/repo/packages/a/src/index.ts": {"lines": {...}, ...}
    }

The ``total`` scope accumulates across merged documents; every other scope
is a file path owned by exactly one package and is replaced on merge.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from monocov.errors import CoverageIOError, SummaryParseError
from monocov.writer import write_text_output

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

TOTAL_KEY = "total"

AXES = ("lines", "functions", "statements", "branches")
COUNT_FIELDS = ("total", "covered", "skipped")

_EMPTY_PCT = 100.0


def calc_percent(covered: float, total: float) -> float:
    """Return ``100 * covered / total`` rounded half-up to one decimal place.

    A scope with nothing to measure counts as fully covered. The rounding is
    done on integers, ``floor(1000 * covered / total + 0.5) / 10``, so that
    e.g. 1/3 gives 33.3 and 2/3 gives 66.7 without float drift.
    """
    if total <= 0:
        return _EMPTY_PCT
    return ((2000 * covered + total) // (2 * total)) / 10


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


@dataclass
class CoverageMetric:
    """Counts for one coverage axis of one scope."""

    total: int = 0
    covered: int = 0
    skipped: int = 0
    pct: float = _EMPTY_PCT

    def add(self, other: Mapping[str, Any]) -> None:
        """Add the numeric counts of *other* and recompute ``pct``.

        ``pct`` from *other* is ignored. Missing or non-numeric counts
        contribute nothing.
        """
        for name in COUNT_FIELDS:
            value = other.get(name)
            if _is_number(value):
                setattr(self, name, getattr(self, name) + value)
        self.recompute()

    def recompute(self) -> None:
        """Derive ``pct`` from the current counts."""
        self.pct = calc_percent(self.covered, self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "skipped": self.skipped,
            "pct": self.pct,
        }


@dataclass
class SummaryEntry:
    """Metrics for one scope across all four axes."""

    lines: CoverageMetric = field(default_factory=CoverageMetric)
    functions: CoverageMetric = field(default_factory=CoverageMetric)
    statements: CoverageMetric = field(default_factory=CoverageMetric)
    branches: CoverageMetric = field(default_factory=CoverageMetric)

    def metric(self, axis: str) -> CoverageMetric:
        """Return the metric for *axis* (one of :data:`AXES`)."""
        if axis not in AXES:
            raise KeyError(axis)
        metric: CoverageMetric = getattr(self, axis)
        return metric

    def merge(self, other: Mapping[str, Any]) -> None:
        """Accumulate a raw summary entry into this one, axis by axis."""
        for axis in AXES:
            metric = self.metric(axis)
            raw_metric = other.get(axis)
            if isinstance(raw_metric, Mapping):
                metric.add(raw_metric)
            else:
                metric.recompute()

    def to_dict(self) -> dict[str, Any]:
        return {axis: self.metric(axis).to_dict() for axis in AXES}


def _reject_constant(name: str) -> Any:
    msg = f"non-finite number {name} is not allowed"
    raise ValueError(msg)


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        _reject_constant(literal)
    return value


def load_summary(path: Path) -> dict[str, Any]:
    """Read and parse one ``coverage-summary.json`` file.

    Raises:
        CoverageIOError: If the file cannot be read.
        SummaryParseError: If the content is not a JSON object or holds
            NaN or Infinity.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SummaryParseError(path, f"not UTF-8 text ({e})") from e
    except OSError as e:
        raise CoverageIOError(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as e:
        raise SummaryParseError(path, str(e)) from e

    if not isinstance(data, dict):
        raise SummaryParseError(path, f"expected a JSON object, got {type(data).__name__}")
    return data


class SummaryMerger:
    """Accumulates summary documents into one repo-wide summary."""

    def __init__(self) -> None:
        self._total = SummaryEntry()
        self._files: dict[str, Any] = {}
        self.files_merged = 0

    @property
    def total(self) -> SummaryEntry:
        """The accumulated ``total`` scope."""
        return self._total

    @property
    def file_scopes(self) -> dict[str, Any]:
        """Per-file entries in first-seen order (values as last merged)."""
        return dict(self._files)

    def merge(self, path: Path) -> None:
        """Merge the summary at *path* into the aggregate.

        ``total`` is added into the aggregate total. Every other scope
        replaces any entry already held under the same key.
        """
        data = load_summary(path)

        total = data.get(TOTAL_KEY)
        if isinstance(total, Mapping):
            self._total.merge(total)
        elif total is not None:
            logger.warning("Ignoring non-object %r scope in %s", TOTAL_KEY, path)

        for scope, entry in data.items():
            if scope == TOTAL_KEY:
                continue
            if scope in self._files:
                logger.debug("Scope %s redefined by %s; keeping the later entry", scope, path)
            self._files[scope] = entry

        self.files_merged += 1
        logger.debug("Merged summary %s (%d scope(s))", path, len(data))

    def to_dict(self) -> dict[str, Any]:
        """Return the aggregate as a JSON-ready mapping with ``total`` first."""
        result: dict[str, Any] = {TOTAL_KEY: self._total.to_dict()}
        result.update(self._files)
        return result

    def render(self) -> str:
        """Serialize the aggregate as compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def write(self, destination: Path) -> None:
        """Write the aggregate to *destination*, replacing any existing file."""
        write_text_output(destination, self.render())
