"""Compare a merged total against configured coverage thresholds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from monocov.summary import AXES

if TYPE_CHECKING:
    from monocov.config import CoverageConfig
    from monocov.summary import SummaryEntry


@dataclass
class ThresholdFailure:
    """One axis whose merged percentage is below its threshold."""

    axis: str
    actual: float
    threshold: float

    def describe(self) -> str:
        return f"{self.axis} coverage {self.actual:.1f}% is below the {self.threshold:.1f}% threshold"


def check_thresholds(total: SummaryEntry, coverage: CoverageConfig) -> list[ThresholdFailure]:
    """Return the axes of *total* that fall short of *coverage*.

    A threshold of 0 disables the check for that axis.
    """
    thresholds = coverage.as_axis_map()
    failures: list[ThresholdFailure] = []
    for axis in AXES:
        threshold = thresholds[axis]
        if threshold <= 0:
            continue
        actual = total.metric(axis).pct
        if actual < threshold:
            failures.append(ThresholdFailure(axis=axis, actual=actual, threshold=threshold))
    return failures
