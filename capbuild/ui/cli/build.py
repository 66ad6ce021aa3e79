"""
CLI commands for building — build, plan, paths, options.

Thin wrappers over ``capbuild.core.engine.builder``. Every build option
can come from a flag, an environment variable or capacitor-build.yml;
flags left unset don't override the other sources.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from capbuild.core.errors import CapbuildError

# ── Shared option flags ─────────────────────────────────────────

_OPTION_FLAGS: list[Callable] = [
    click.option("--platform", "-p", default=None, help="android or ios."),
    click.option("--release/--debug-build", "release", default=None,
                 help="Release (default) or debug build."),
    click.option("--device/--no-device", default=None, help="Build for device (default: on)."),
    click.option("--prod/--no-prod", default=None, help="Build for production."),
    click.option("--scheme", default=None, help="iOS scheme (default: App)."),
    click.option("--type", "package_type", default=None,
                 help="iOS package type: development, enterprise, adhoc, appstore."),
    click.option("--verbose-build/--no-verbose-build", "verbose_build", default=None,
                 help="Pass --verbose to the Capacitor CLI."),
    click.option("--team-id", default=None, help="iOS development team ID."),
    click.option("--provisioning-profile", default=None,
                 help="iOS provisioning profile GUID."),
    click.option("--app-identifier", default=None,
                 help="Bundle id used to find a sigh/match provisioning profile."),
    click.option("--android-package-type", default=None, help="apk or bundle."),
    click.option("--keystore-path", default=None, help="Android keystore path."),
    click.option("--keystore-password", default=None, help="Android keystore password."),
    click.option("--key-password", default=None,
                 help="Android key password (default: keystore password)."),
    click.option("--keystore-alias", default=None, help="Android keystore alias."),
    click.option("--build-number", default=None,
                 help="iOS CFBundleVersion / Android versionCode."),
    click.option("--browserify/--no-browserify", default=None, help="Browserify the build."),
    click.option("--capacitor-prepare/--no-capacitor-prepare", default=None,
                 help="Prepare the native project before building."),
    click.option("--min-sdk-version", default=None, help="Override Android minSdkVersion."),
    click.option("--no-fetch/--fetch", "capacitor_no_fetch", default=None,
                 help="Pass --nofetch to platform add."),
    click.option("--no-resources/--resources", "capacitor_no_resources", default=None,
                 help="Pass --no-resources to platform add."),
    click.option("--build-flag", "build_flag", multiple=True,
                 help="Xcode build flag (repeatable)."),
    click.option("--build-config", "capacitor_build_config_file", default=None,
                 help="Build config file passed as --buildConfig."),
]

_RENAMED = {
    "package_type": "type",
    "verbose_build": "verbose",
}


def build_option_flags(func: Callable) -> Callable:
    """Attach every build option flag to a command."""
    for decorator in reversed(_OPTION_FLAGS):
        func = decorator(func)
    return func


def _overrides(flags: dict[str, Any]) -> dict[str, Any]:
    """Click keyword arguments → option overrides (unset flags dropped)."""
    values: dict[str, Any] = {}
    for key, value in flags.items():
        if value is None or value == ():
            continue
        values[_RENAMED.get(key, key)] = list(value) if isinstance(value, tuple) else value
    return values


def _fail(message: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _load_options(ctx: click.Context, flags: dict[str, Any]):
    from capbuild.core.config.loader import load_options

    config_path: Path | None = ctx.obj.get("config_path")
    return load_options(config_path=config_path, overrides=_overrides(flags))


# ── Build ───────────────────────────────────────────────────────


@click.command()
@build_option_flags
@click.option("--dry-run", is_flag=True, help="Validate and print commands without running them.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append KEY=value lines with the artifact paths to this file.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    dry_run: bool,
    mock: bool,
    env_file: str | None,
    as_json: bool,
    **flags: Any,
) -> None:
    """Build the app for the selected platform.

    Examples:

        capbuild build --platform android --android-package-type bundle

        capbuild build --platform ios --type adhoc --build-number 42
    """
    from capbuild.adapters.registry import default_registry
    from capbuild.core.engine.builder import run_build

    try:
        opts = _load_options(ctx, flags)
        registry = default_registry(mock_mode=mock, dry_run=dry_run)
        result = run_build(opts, registry=registry, project_root=ctx.obj["project_root"])
    except CapbuildError as e:
        _fail(str(e), as_json)
        return

    assert result.artifacts is not None

    if env_file:
        from capbuild.core.services.artifacts import ANDROID_PATH_ENV, IOS_PATH_ENV

        with open(env_file, "a", encoding="utf-8") as fh:
            fh.write(f"{ANDROID_PATH_ENV}={result.artifacts.android}\n")
            fh.write(f"{IOS_PATH_ENV}={result.artifacts.ios}\n")

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if ctx.obj.get("quiet"):
        return

    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    click.secho(f"\n⚡ {mode_label}build {opts.platform or '(no platform)'}", fg="cyan", bold=True)
    assert result.plan is not None
    statuses = {r.action_id: r.status for r in result.receipts}
    for action in result.plan.actions:
        if statuses.get(action.id) == "skipped":
            click.secho("   ⊘ ", fg="yellow", nl=False)
        else:
            click.secho("   ✓ ", fg="green", nl=False)
        click.echo(action.describe())

    click.echo()
    click.secho("   Artifacts:", fg="white", bold=True)
    click.echo(f"     android → {result.artifacts.android}")
    click.echo(f"     ios     → {result.artifacts.ios}")
    click.echo()


# ── Plan ────────────────────────────────────────────────────────


@click.command()
@build_option_flags
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool, **flags: Any) -> None:
    """Show the commands a build would run, without probing or running anything."""
    from capbuild.core.engine.builder import plan_build

    try:
        opts = _load_options(ctx, flags)
        build_plan = plan_build(opts, ctx.obj["project_root"])
    except CapbuildError as e:
        _fail(str(e), as_json)
        return

    if as_json:
        click.echo(json.dumps(build_plan.to_dict(), indent=2))
        return

    click.secho(f"\n📋 Plan: {build_plan.platform or '(no platform)'}", fg="cyan", bold=True)
    for i, command in enumerate(build_plan.commands, 1):
        click.echo(f"   {i}. {command}")
    click.secho("   (+ capacitor-assets generate, if @capacitor/assets is installed)", dim=True)
    click.echo()


# ── Paths ───────────────────────────────────────────────────────


@click.command()
@build_option_flags
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def paths(ctx: click.Context, as_json: bool, **flags: Any) -> None:
    """Print the artifact paths a build with these options produces."""
    from capbuild.core.services.artifacts import (
        ANDROID_PATH_ENV,
        IOS_PATH_ENV,
        compute_artifact_paths,
    )

    try:
        opts = _load_options(ctx, flags)
    except CapbuildError as e:
        _fail(str(e), as_json)
        return

    artifacts = compute_artifact_paths(opts)
    if as_json:
        click.echo(json.dumps(artifacts.to_dict(), indent=2))
        return

    click.echo(f"{ANDROID_PATH_ENV}={artifacts.android}")
    click.echo(f"{IOS_PATH_ENV}={artifacts.ios}")


# ── Options ─────────────────────────────────────────────────────


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def options(as_json: bool) -> None:
    """List every build option, its environment variable and default."""
    from capbuild.core.models.options import OPTIONS

    if as_json:
        data = [
            {
                "name": spec.name,
                "env_name": spec.env_name,
                "kind": spec.kind,
                "default": list(spec.default) if isinstance(spec.default, tuple) else spec.default,
                "choices": list(spec.choices) if spec.choices else None,
                "description": spec.description,
            }
            for spec in OPTIONS
        ]
        click.echo(json.dumps(data, indent=2))
        return

    click.secho("\n🔧 Build options:", fg="cyan", bold=True)
    for spec in OPTIONS:
        default = "" if spec.default in ("", None, ()) else f" (default: {spec.default})"
        click.secho(f"   {spec.name:<28}", fg="white", bold=True, nl=False)
        click.echo(f" {spec.env_name}{default}")
        click.echo(f"      {spec.description}")
    click.echo()
