"""monocov CLI — top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from rich.markup import escape

from monocov import __version__
from monocov.config import MonocovConfig, load_config, validate_config
from monocov.errors import ConfigError, ExitCode, MonocovError
from monocov.pipeline import MergeOptions, MergeResult, run_merge
from monocov.reporters.terminal import console, reporter
from monocov.thresholds import ThresholdFailure, check_thresholds

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(*, verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=_LOG_FORMAT)


def _config_to_dict(config: MonocovConfig) -> dict[str, Any]:
    """Convert MonocovConfig to dictionary for display."""
    result = asdict(config)
    # Remove the raw field as it's redundant
    result.pop("raw", None)
    return result


def _exit(code: ExitCode) -> NoReturn:
    raise SystemExit(int(code))


def _load_config_or_exit(root: Path) -> MonocovConfig:
    try:
        return load_config(root)
    except ConfigError as e:
        reporter.print_error(escape(str(e)))
        _exit(e.exit_code)


def _merge_result_to_dict(
    result: MergeResult, failures: list[ThresholdFailure], *, success: bool
) -> dict[str, Any]:
    return {
        "success": success,
        "root": str(result.root),
        "summary": {
            "inputs": [str(p) for p in result.summary.inputs],
            "output": str(result.summary.output),
            "file_scopes": result.summary.file_scopes,
        },
        "lcov": {
            "inputs": [str(p) for p in result.lcov.inputs],
            "output": str(result.lcov.output),
            "blocks": result.lcov.blocks,
        },
        "total": result.summary.total.to_dict(),
        "threshold_failures": [asdict(f) for f in failures],
    }


@click.group()
@click.option(
    "--ci",
    is_flag=True,
    help="CI mode: machine-readable JSON output instead of tables.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="monocov")
@click.pass_context
def cli(ctx: click.Context, *, ci: bool, verbose: bool) -> None:
    """monocov — merge per-package coverage reports of a monorepo."""
    ctx.ensure_object(dict)
    ctx.obj["ci"] = ci
    _configure_logging(verbose=verbose)


@cli.command()
@click.option(
    "--packages",
    "packages_dir",
    default=None,
    help="Directory under root with one subdirectory per package.  [default: packages]",
)
@click.option(
    "--coverage",
    "coverage_dir",
    default=None,
    help="Per-package coverage directory, also used for the merged output.  "
    "[default: coverage]",
)
@click.option(
    "--root",
    default=None,
    type=click.Path(file_okay=False),
    help="Base path for discovery and output.  [default: current directory]",
)
@click.option(
    "--check",
    is_flag=True,
    help="Fail when the merged total is below the configured coverage thresholds.",
)
@click.option(
    "--fail-on-empty",
    is_flag=True,
    help="Fail when no per-package reports are found.",
)
@click.option("--json-output", "as_json", is_flag=True, help="Output raw JSON instead of tables.")
@click.pass_context
def merge(
    ctx: click.Context,
    packages_dir: str | None,
    coverage_dir: str | None,
    root: str | None,
    *,
    check: bool,
    fail_on_empty: bool,
    as_json: bool,
) -> None:
    """Merge per-package coverage-summary.json and lcov.info files.

    Writes {root}/{coverage}/coverage-summary.json and
    {root}/{coverage}/lcov.info.

    Example:
      monocov merge
      monocov merge --packages libs --coverage .coverage --check
    """
    json_mode = as_json or bool(ctx.obj and ctx.obj.get("ci"))
    root_path = Path(root) if root else Path.cwd()

    config = _load_config_or_exit(root_path)
    if packages_dir is not None:
        config.merge.packages_dir = packages_dir
    if coverage_dir is not None:
        config.merge.coverage_dir = coverage_dir

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(escape(error))
        _exit(ExitCode.USAGE)

    options = MergeOptions.from_config(config)
    if not json_mode:
        reporter.print_header("monocov merge")

    try:
        result = run_merge(options)
    except MonocovError as e:
        logger.debug("Merge aborted", exc_info=True)
        if json_mode:
            click.echo(
                json.dumps(
                    {"success": False, "error": str(e), "exit_code": int(e.exit_code)},
                    indent=2,
                )
            )
        else:
            reporter.print_error(escape(str(e)))
        _exit(e.exit_code)

    failures = check_thresholds(result.summary.total, config.coverage) if check else []
    empty = fail_on_empty and not result.has_inputs
    success = not failures and not empty

    if json_mode:
        click.echo(json.dumps(_merge_result_to_dict(result, failures, success=success), indent=2))
    else:
        if not result.has_inputs:
            reporter.print_warning(
                "No per-package reports found under "
                f"{escape(str(options.root / config.merge.packages_dir))}"
            )
        reporter.print_merge_result(result)
        reporter.print_threshold_failures(failures)

    if empty:
        _exit(ExitCode.NO_INPUTS)
    if failures:
        _exit(ExitCode.THRESHOLD_NOT_MET)


@cli.group("config")
def config_group() -> None:
    """Inspect `.monocov.yml` configuration."""


@config_group.command("show")
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Monorepo root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(root: str, *, as_json: bool) -> None:
    """Display the resolved configuration.

    Example:
      monocov config show
      monocov config show --json-output
    """
    config = _load_config_or_exit(Path(root))
    config_dict = _config_to_dict(config)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Monorepo root directory.",
)
def config_validate(root: str) -> None:
    """Validate `.monocov.yml`.

    Example:
      monocov config validate
    """
    config = _load_config_or_exit(Path(root))
    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()

    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{escape(error)}[/red]")

    console.print()
    console.print("[dim]Fix these errors in .monocov.yml and run 'monocov config validate' again.[/dim]")
    _exit(ExitCode.USAGE)
