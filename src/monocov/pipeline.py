"""Discover, merge and write the repo-wide coverage reports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from monocov.config import DEFAULT_COVERAGE_DIR, DEFAULT_PACKAGES_DIR, DEFAULT_SOURCE_DIR
from monocov.discovery import LCOV_FILENAME, SUMMARY_FILENAME, find_lcov_files, find_summary_files
from monocov.lcov import LcovMerger
from monocov.summary import SummaryEntry, SummaryMerger

if TYPE_CHECKING:
    from monocov.config import MonocovConfig

logger = logging.getLogger(__name__)


@dataclass
class MergeOptions:
    """Inputs for one merge run."""

    root: Path
    packages_dir: str = DEFAULT_PACKAGES_DIR
    coverage_dir: str = DEFAULT_COVERAGE_DIR
    source_dir: str = DEFAULT_SOURCE_DIR
    sort_inputs: bool = True
    cwd: Path | None = None
    """Directory lcov paths are made relative to (default: process cwd)."""

    @classmethod
    def from_config(cls, config: MonocovConfig) -> MergeOptions:
        return cls(
            root=Path(config.root),
            packages_dir=config.merge.packages_dir,
            coverage_dir=config.merge.coverage_dir,
            source_dir=config.merge.source_dir,
            sort_inputs=config.merge.sort_inputs,
        )

    @property
    def summary_output(self) -> Path:
        return self.root / self.coverage_dir / SUMMARY_FILENAME

    @property
    def lcov_output(self) -> Path:
        return self.root / self.coverage_dir / LCOV_FILENAME


@dataclass
class SummaryRun:
    """Outcome of the summary pipeline."""

    inputs: list[Path]
    output: Path
    total: SummaryEntry
    file_scopes: int = 0


@dataclass
class LcovRun:
    """Outcome of the lcov pipeline."""

    inputs: list[Path]
    output: Path
    blocks: int = 0


@dataclass
class MergeResult:
    """Outcome of both pipelines."""

    summary: SummaryRun
    lcov: LcovRun
    root: Path = field(default_factory=Path.cwd)

    @property
    def has_inputs(self) -> bool:
        return bool(self.summary.inputs or self.lcov.inputs)


def merge_summaries(options: MergeOptions) -> SummaryRun:
    """Merge every per-package summary and write the repo-wide summary."""
    inputs = find_summary_files(
        options.root, options.packages_dir, options.coverage_dir, sort=options.sort_inputs
    )
    merger = SummaryMerger()
    for path in inputs:
        merger.merge(path)

    output = options.summary_output
    merger.write(output)
    logger.info("Merged %d summary file(s) into %s", len(inputs), output)

    return SummaryRun(
        inputs=inputs,
        output=output,
        total=merger.total,
        file_scopes=len(merger.file_scopes),
    )


def merge_lcov(options: MergeOptions) -> LcovRun:
    """Merge every per-package lcov report and write the repo-wide report."""
    inputs = find_lcov_files(
        options.root, options.packages_dir, options.coverage_dir, sort=options.sort_inputs
    )
    merger = LcovMerger(options.coverage_dir, source_dir=options.source_dir, cwd=options.cwd)
    for path in inputs:
        merger.merge(path)

    output = options.lcov_output
    merger.write(output)
    logger.info("Merged %d lcov file(s) into %s", len(inputs), output)

    return LcovRun(inputs=inputs, output=output, blocks=len(merger.blocks))


def run_merge(options: MergeOptions) -> MergeResult:
    """Run the summary pipeline, then the lcov pipeline.

    The pipelines share nothing; if the lcov pipeline fails, the summary
    output already written stays in place.
    """
    summary = merge_summaries(options)
    lcov = merge_lcov(options)
    return MergeResult(summary=summary, lcov=lcov, root=options.root)
