"""Locate per-package coverage reports inside a monorepo."""

from __future__ import annotations

import logging
from pathlib import Path

from monocov.errors import DiscoveryError

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "coverage-summary.json"
LCOV_FILENAME = "lcov.info"


def report_pattern(packages_dir: str, coverage_dir: str, filename: str) -> str:
    """Return the glob pattern, relative to the root, for one report file name."""
    return f"{packages_dir}/*/{coverage_dir}/{filename}"


def find_report_files(
    root: str | Path,
    packages_dir: str,
    coverage_dir: str,
    filename: str,
    *,
    sort: bool = True,
) -> list[Path]:
    """Return every ``{root}/{packages_dir}/*/{coverage_dir}/{filename}``.

    Args:
        root: Monorepo root directory.
        packages_dir: Directory under *root* with one subdirectory per package.
        coverage_dir: Per-package coverage output directory.
        filename: Report file name to look for.
        sort: Return paths in sorted order. When False, the order is
            whatever the filesystem walk yields.

    Returns:
        Absolute paths, possibly empty.

    Raises:
        DiscoveryError: If the pattern is invalid or the tree cannot be walked.
    """
    root_path = Path(root).resolve()
    pattern = report_pattern(packages_dir, coverage_dir, filename)

    try:
        paths = list(root_path.glob(pattern))
    except (OSError, ValueError) as e:
        raise DiscoveryError(f"Failed to expand {root_path / pattern}: {e}") from e

    if sort:
        paths.sort()

    logger.debug("Found %d file(s) matching %s under %s", len(paths), pattern, root_path)
    return paths


def find_summary_files(
    root: str | Path, packages_dir: str, coverage_dir: str, *, sort: bool = True
) -> list[Path]:
    """Return all per-package ``coverage-summary.json`` files."""
    return find_report_files(root, packages_dir, coverage_dir, SUMMARY_FILENAME, sort=sort)


def find_lcov_files(
    root: str | Path, packages_dir: str, coverage_dir: str, *, sort: bool = True
) -> list[Path]:
    """Return all per-package ``lcov.info`` files."""
    return find_report_files(root, packages_dir, coverage_dir, LCOV_FILENAME, sort=sort)
