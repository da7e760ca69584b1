"""Configuration parsing from ``.monocov.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from monocov.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".monocov.yml"

DEFAULT_PACKAGES_DIR = "packages"
DEFAULT_COVERAGE_DIR = "coverage"
DEFAULT_SOURCE_DIR = "src"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_MAX_PERCENTAGE = 100.0


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        else:
            result[key] = value
    return result


@dataclass
class MergeConfig:
    """Where per-package reports live and how they are combined."""

    packages_dir: str = DEFAULT_PACKAGES_DIR
    """Directory under the root holding one subdirectory per package."""

    coverage_dir: str = DEFAULT_COVERAGE_DIR
    """Per-package coverage output directory, also used for the merged output."""

    source_dir: str = DEFAULT_SOURCE_DIR
    """Package-relative source directory referenced by ``SF:`` lines in lcov reports."""

    sort_inputs: bool = True
    """Merge discovered files in sorted order instead of raw glob order."""


@dataclass
class CoverageConfig:
    """Thresholds for the optional coverage gate (0 disables an axis)."""

    line_threshold: float = 0.0
    function_threshold: float = 0.0
    statement_threshold: float = 0.0
    branch_threshold: float = 0.0

    def as_axis_map(self) -> dict[str, float]:
        """Return thresholds keyed by summary axis name."""
        return {
            "lines": self.line_threshold,
            "functions": self.function_threshold,
            "statements": self.statement_threshold,
            "branches": self.branch_threshold,
        }


@dataclass
class MonocovConfig:
    """Complete monocov configuration."""

    root: str
    """Base path for discovery and output."""

    merge: MergeConfig = field(default_factory=MergeConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _parse_flag(value: Any, name: str) -> bool:
    """Read a boolean setting; strings come from quoted values or ${VAR} placeholders."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    msg = f"{name} must be a boolean (got: {value!r})"
    raise ValueError(msg)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        return {}
    return section


def _parse_merge_config(raw: dict[str, Any]) -> MergeConfig:
    """Parse the ``merge`` section, falling back to environment variables."""
    merge_raw = _section(raw, "merge")

    return MergeConfig(
        packages_dir=str(
            merge_raw.get(
                "packages_dir", os.environ.get("MONOCOV_PACKAGES_DIR", DEFAULT_PACKAGES_DIR)
            )
        ),
        coverage_dir=str(
            merge_raw.get(
                "coverage_dir", os.environ.get("MONOCOV_COVERAGE_DIR", DEFAULT_COVERAGE_DIR)
            )
        ),
        source_dir=str(merge_raw.get("source_dir", DEFAULT_SOURCE_DIR)),
        sort_inputs=_parse_flag(merge_raw.get("sort_inputs", True), "merge.sort_inputs"),
    )


def _parse_coverage_config(raw: dict[str, Any]) -> CoverageConfig:
    """Parse coverage thresholds from raw YAML."""
    coverage_raw = _section(raw, "coverage")

    return CoverageConfig(
        line_threshold=float(coverage_raw.get("line_threshold", 0.0)),
        function_threshold=float(coverage_raw.get("function_threshold", 0.0)),
        statement_threshold=float(coverage_raw.get("statement_threshold", 0.0)),
        branch_threshold=float(coverage_raw.get("branch_threshold", 0.0)),
    )


def load_config(root: str | Path) -> MonocovConfig:
    """Load ``.monocov.yml`` from *root*.

    Falls back to environment variables and defaults when the file is
    missing or incomplete.

    Raises:
        ConfigError: If the file exists but is not valid YAML or holds
            values of the wrong type.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        try:
            parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"Failed to load {config_file}: {e}") from e
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            logger.warning("Ignoring %s: top level is not a mapping", config_file)

    try:
        merge = _parse_merge_config(raw)
        coverage = _parse_coverage_config(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {config_file}: {e}") from e

    return MonocovConfig(root=str(root_path), merge=merge, coverage=coverage, raw=raw)


def _validate_dir_name(key: str, value: str) -> list[str]:
    if not value.strip():
        return [f"{key} must not be empty"]
    if "/" in value or "\\" in value:
        return [f"{key} must be a single directory name (got: {value!r})"]
    if any(ch in value for ch in "*?["):
        return [f"{key} must not contain glob characters (got: {value!r})"]
    return []


def _validate_merge_config(merge: MergeConfig) -> list[str]:
    """Validate directory names used to build discovery patterns."""
    errors: list[str] = []
    errors.extend(_validate_dir_name("merge.packages_dir", merge.packages_dir))
    errors.extend(_validate_dir_name("merge.coverage_dir", merge.coverage_dir))
    errors.extend(_validate_dir_name("merge.source_dir", merge.source_dir))
    return errors


def _validate_coverage_config(coverage: CoverageConfig) -> list[str]:
    """Validate coverage threshold settings."""
    errors: list[str] = []

    for name, value in (
        ("line_threshold", coverage.line_threshold),
        ("function_threshold", coverage.function_threshold),
        ("statement_threshold", coverage.statement_threshold),
        ("branch_threshold", coverage.branch_threshold),
    ):
        if not 0.0 <= value <= _MAX_PERCENTAGE:
            errors.append(f"coverage.{name} must be between 0 and 100 (got: {value})")

    return errors


def validate_config(config: MonocovConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.root:
        errors.append("root is required")

    errors.extend(_validate_merge_config(config.merge))
    errors.extend(_validate_coverage_config(config.coverage))

    return errors
