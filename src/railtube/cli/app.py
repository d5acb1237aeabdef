"""Main CLI application for railtube."""

import asyncio
import os
from collections.abc import Coroutine
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from railtube.cli.commands.apply import run_apply
from railtube.cli.commands.doctor import run_doctor_command
from railtube.cli.commands.export import run_export
from railtube.cli.commands.run import run_named_script
from railtube.config.loader import get_env_overrides
from railtube.config.models import RunOptions
from railtube.core.errors import RailtubeError
from railtube.core.logging import setup_logging
from railtube.system.command import CommandError

app = typer.Typer(
    name="railtube",
    help="Declarative OS package management",
    no_args_is_help=True,
)

SourceOption = Annotated[
    str,
    typer.Option("--source", "-s", help="Manifest file path or HTTP(S) URL"),
]
LogFileOption = Annotated[
    str,
    typer.Option("--log-file", help="Append-only action log (default: railtube.log)"),
]


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    trace: Annotated[
        bool, typer.Option("--trace", help="Print every command and its output")
    ] = False,
) -> None:
    """railtube - apply a package manifest to this machine."""
    setup_logging(verbose=verbose, trace=trace)
    ctx.obj = {"trace": trace}


def split_comma_list(items: list[str]) -> list[str]:
    """Split repeated, comma-separated option values into one list."""
    result = []
    for item in items:
        result.extend([s.strip() for s in item.split(",") if s.strip()])
    return result


def _needs_root(error: CommandError) -> bool:
    """Whether a failed sudo command looks like it lacked root privileges."""
    if not error.command.startswith("sudo ") or os.geteuid() == 0:
        return False
    return (
        "Permission denied" in error.output
        or "Could not open lock file" in error.output
        or error.returncode == 100
    )


def _run[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning railtube errors into exit codes."""
    try:
        return asyncio.run(coro)
    except CommandError as e:
        typer.echo(f"Error: {e}", err=True)
        if e.output:
            typer.echo(e.output, err=True)
        if _needs_root(e):
            typer.echo("This command requires root privileges. Please run with sudo.", err=True)
        raise typer.Exit(code=1) from e
    except (RailtubeError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def apply(
    ctx: typer.Context,
    source: SourceOption,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be installed without installing"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts"),
    ] = False,
    only: Annotated[
        list[str] | None,
        typer.Option("--only", help="Apply only these sections (e.g. apt,cargo)"),
    ] = None,
    log_file: LogFileOption = "",
) -> None:
    """Apply a manifest to this machine."""
    env_overrides = get_env_overrides()
    sections = split_comma_list(only or []) + env_overrides.only

    try:
        options = RunOptions.from_flags(
            dry_run=dry_run,
            yes=yes or env_overrides.yes,
            only=sections or None,
        )
    except ValidationError as e:
        typer.echo(f"Error: {e.errors()[0]['msg']}", err=True)
        raise typer.Exit(code=1) from e

    summary = _run(
        run_apply(
            source,
            options,
            log_file=log_file or env_overrides.log_file,
            trace=ctx.obj["trace"],
        )
    )
    if not summary.success:
        raise typer.Exit(code=1)


@app.command()
def doctor(source: SourceOption) -> None:
    """Report drift between a manifest and the installed packages."""
    _run(run_doctor_command(source))


@app.command()
def run(
    ctx: typer.Context,
    script_name: Annotated[str, typer.Argument(help="Script name from the [scripts] section")],
    source: SourceOption,
    log_file: LogFileOption = "",
) -> None:
    """Run a script defined in a manifest."""
    env_overrides = get_env_overrides()
    _run(
        run_named_script(
            source,
            script_name,
            log_file=log_file or env_overrides.log_file,
            trace=ctx.obj["trace"],
        )
    )


@app.command()
def export(
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Where to write the generated manifest"),
    ] = "exported-env.toml",
) -> None:
    """Export the installed packages as a manifest."""
    _run(run_export(output))


if __name__ == "__main__":
    app()
