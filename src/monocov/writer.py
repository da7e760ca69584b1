"""Write merged reports to disk."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from monocov.errors import CoverageIOError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_parent_dir(path: Path) -> None:
    """Create the immediate parent of *path* if it does not exist.

    Only one level is created; a missing grandparent is an error.
    """
    parent = path.parent
    if parent.is_dir():
        return
    try:
        parent.mkdir(exist_ok=True)
    except OSError as e:
        raise CoverageIOError(f"Cannot create output directory {parent}: {e}") from e
    logger.debug("Created output directory %s", parent)


def write_text_output(path: Path, text: str) -> None:
    """Overwrite *path* with *text*, creating its parent directory if needed.

    Line endings in *text* are written as given.
    """
    ensure_parent_dir(path)
    try:
        path.write_text(text, encoding="utf-8", newline="")
    except OSError as e:
        raise CoverageIOError(f"Cannot write {path}: {e}") from e
    logger.debug("Wrote %d characters to %s", len(text), path)
