"""Concatenate per-package ``lcov.info`` reports.

Each package's report names its sources relative to the package
(``SF:src/index.ts``). Merged into one file those paths must be
re-anchored to the repository root (``SF:packages/foo/src/index.ts``).
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from monocov.config import DEFAULT_COVERAGE_DIR, DEFAULT_SOURCE_DIR
from monocov.discovery import LCOV_FILENAME
from monocov.errors import CoverageIOError
from monocov.writer import write_text_output

logger = logging.getLogger(__name__)


def package_root_for(report: Path, coverage_dir: str, cwd: Path | None = None) -> str:
    """Infer a package's root directory from the path of its lcov report.

    The report path is made relative to *cwd* (default: the process working
    directory) and the trailing ``/{coverage_dir}/lcov.info`` is dropped.
    """
    base = cwd if cwd is not None else Path.cwd()
    relative = Path(os.path.relpath(report, base)).as_posix()
    return relative.removesuffix(f"/{coverage_dir}/{LCOV_FILENAME}")


def rewrite_source_paths(text: str, package_root: str, source_dir: str = DEFAULT_SOURCE_DIR) -> str:
    """Prefix every line starting with ``SF:{source_dir}`` with *package_root*."""
    marker = re.compile(rf"^SF:{re.escape(source_dir)}", re.MULTILINE)
    replacement = f"SF:{package_root}/{source_dir}"
    return marker.sub(lambda _match: replacement, text)


class LcovMerger:
    """Accumulates rewritten lcov blocks in merge order."""

    def __init__(
        self,
        coverage_dir: str = DEFAULT_COVERAGE_DIR,
        *,
        source_dir: str = DEFAULT_SOURCE_DIR,
        cwd: Path | None = None,
    ) -> None:
        self.coverage_dir = coverage_dir
        self.source_dir = source_dir
        self._cwd = cwd
        self._blocks: list[str] = []

    @property
    def blocks(self) -> list[str]:
        return list(self._blocks)

    def merge(self, path: Path) -> None:
        """Append the report at *path*, re-anchored to the merge root.

        A missing file is skipped: packages without tests produce no report.
        """
        if not path.exists():
            logger.debug("No lcov report at %s; skipping", path)
            return

        try:
            with path.open(encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise CoverageIOError(f"Cannot read {path}: {e}") from e

        package_root = package_root_for(path, self.coverage_dir, self._cwd)
        self._blocks.append(rewrite_source_paths(text, package_root, self.source_dir))
        logger.debug("Merged lcov %s as %s", path, package_root)

    def render(self) -> str:
        """Join the non-empty blocks with newlines."""
        return "\n".join(block for block in self._blocks if block)

    def write(self, destination: Path) -> None:
        """Write the merged report to *destination*, replacing any existing file."""
        write_text_output(destination, self.render())
