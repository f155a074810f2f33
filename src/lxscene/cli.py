"""Click CLI entry point for the scene compiler."""

from __future__ import annotations

import json
import logging
import warnings
from pathlib import Path

import click

from lxscene import __version__
from lxscene.inspection import inspect_model, pose_payload, render_text, render_yaml
from lxscene.loader import LoadResult, load_scene
from lxscene.warning_policy import WarningPolicy, parse_code_list

_warning_options = [
    click.option(
        "--warn-as-error",
        "warn_as_error",
        type=str,
        default=None,
        help="Comma-separated W-codes to treat as errors (e.g. W01,W02).",
    ),
    click.option(
        "--suppress-warning",
        "suppress_warning",
        type=str,
        default=None,
        help="Comma-separated W-codes to suppress (e.g. W03).",
    ),
]


def warning_options(func):
    for option in reversed(_warning_options):
        func = option(func)
    return func


def _build_warning_policy(
    warn_as_error: str | None, suppress_warning: str | None
) -> WarningPolicy | None:
    """Parse CLI warning options into a WarningPolicy, or None if unset."""
    if warn_as_error is None and suppress_warning is None:
        return None
    try:
        wae = parse_code_list(warn_as_error) if warn_as_error else frozenset()
        sup = parse_code_list(suppress_warning) if suppress_warning else frozenset()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    return WarningPolicy(warn_as_error=wae, suppress=sup)


def _load(input_file: Path, warn_as_error: str | None, suppress_warning: str | None) -> LoadResult:
    """Load a scene, echo its warnings to stderr, and fail on a fatal error."""
    policy = _build_warning_policy(warn_as_error, suppress_warning)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        result = load_scene(input_file, warning_policy=policy)
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if not result.loaded_ok:
        raise click.ClickException(str(result.error))
    return result


@click.group()
@click.version_option(version=__version__, prog_name="lxscene")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log compile progress.")
def main(verbose: bool = False) -> None:
    """lxscene: compile LXS scene documents and sample their animations."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@warning_options
def check(
    input_file: Path,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Compile and link a scene document, reporting warnings and errors."""
    result = _load(input_file, warn_as_error, suppress_warning)
    model = result.model
    click.echo(
        f"OK: {input_file} (root {model.root!r}, {len(model.components)} components, "
        f"{len(model.primitives)} primitives, {len(result.warnings)} warnings)"
    )


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "yaml"]),
    default="text",
    show_default=True,
    help="Inspection output format.",
)
@warning_options
def inspect(
    input_file: Path,
    output_format: str = "text",
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Summarize the compiled model of a scene document."""
    result = _load(input_file, warn_as_error, suppress_warning)
    payload = inspect_model(result.model)
    if output_format == "json":
        click.echo(json.dumps(payload, indent=2))
    elif output_format == "yaml":
        click.echo(render_yaml(payload), nl=False)
    else:
        click.echo(render_text(payload), nl=False)


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--time",
    "time_",
    type=click.FloatRange(min=0.0),
    required=True,
    help="Elapsed time in seconds to advance animations by.",
)
@click.option(
    "--step",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="Advance in frame-sized increments of this many seconds.",
)
@warning_options
def pose(
    input_file: Path,
    time_: float,
    step: float | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Advance animations to a time and print every draw call as JSON."""
    result = _load(input_file, warn_as_error, suppress_warning)
    payload = pose_payload(result.graph, time_, step)
    click.echo(json.dumps(payload, indent=2))
