"""
capbuild — CLI entrypoint.

Usage:
    capbuild --help
    capbuild build --platform android --keystore-path release.jks
    capbuild plan --platform ios --type adhoc
    capbuild options
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from capbuild import __version__
from capbuild.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="capbuild")
@click.option("--verbose", "-v", is_flag=True, help="Show every command as it runs.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to capacitor-build.yml (default: auto-detect).",
)
@click.option(
    "--project-dir",
    "-C",
    "project_dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Ionic project directory (default: config file's directory, else cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    project_dir: str | None,
) -> None:
    """capbuild — build Ionic Capacitor apps for Android and iOS."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    from capbuild.core.config.loader import find_config_file
    from capbuild.core.context import set_project_root as _set_ctx_root

    start = Path(project_dir) if project_dir else None
    cfg = Path(config_path) if config_path else find_config_file(start)
    ctx.obj["config_path"] = cfg

    if project_dir:
        root = Path(project_dir).resolve()
    elif cfg is not None:
        root = cfg.parent.resolve()
    else:
        root = Path.cwd()
    ctx.obj["project_root"] = root
    _set_ctx_root(root)

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


# ── Register commands from capbuild/ui/cli/ ─────────────────────

from capbuild.ui.cli.build import build, options, paths, plan

cli.add_command(build)
cli.add_command(plan)
cli.add_command(paths)
cli.add_command(options)


if __name__ == "__main__":
    cli()
