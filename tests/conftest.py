"""Shared fixtures for monocov tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


def write_file(root: Path, rel: str, content: str) -> Path:
    """Write *content* to a file under *root* and return its path."""
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")
    return f


def write_json(root: Path, rel: str, data: Any) -> Path:
    """Write a JSON file under *root* and return its path."""
    return write_file(root, rel, json.dumps(data, indent=2))


def metric(total: int, covered: int, skipped: int = 0, pct: float = 0.0) -> dict[str, Any]:
    """Build one raw summary metric."""
    return {"total": total, "covered": covered, "skipped": skipped, "pct": pct}


def summary_entry(
    lines: tuple[int, int] = (0, 0),
    functions: tuple[int, int] = (0, 0),
    statements: tuple[int, int] = (0, 0),
    branches: tuple[int, int] = (0, 0),
) -> dict[str, Any]:
    """Build a raw summary entry from ``(total, covered)`` pairs."""
    return {
        "lines": metric(*lines),
        "functions": metric(*functions),
        "statements": metric(*statements),
        "branches": metric(*branches),
    }


@pytest.fixture
def monorepo(tmp_path: Path) -> Path:
    """A two-package monorepo with summary and lcov reports for both packages."""
    write_json(
        tmp_path,
        "packages/a/coverage/coverage-summary.json",
        {
            "total": summary_entry(lines=(10, 5), functions=(4, 2), statements=(12, 6)),
            "packages/a/src/index.ts": summary_entry(lines=(10, 5)),
        },
    )
    write_json(
        tmp_path,
        "packages/b/coverage/coverage-summary.json",
        {
            "total": summary_entry(lines=(10, 10), functions=(2, 2), branches=(4, 1)),
            "packages/b/src/main.ts": summary_entry(lines=(10, 10)),
        },
    )
    write_file(
        tmp_path,
        "packages/a/coverage/lcov.info",
        "TN:\nSF:src/index.ts\nDA:1,1\nend_of_record\n",
    )
    write_file(
        tmp_path,
        "packages/b/coverage/lcov.info",
        "TN:\nSF:src/main.ts\nDA:1,0\nend_of_record\n",
    )
    return tmp_path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep MONOCOV_* settings from the outer environment out of tests."""
    monkeypatch.delenv("MONOCOV_PACKAGES_DIR", raising=False)
    monkeypatch.delenv("MONOCOV_COVERAGE_DIR", raising=False)
