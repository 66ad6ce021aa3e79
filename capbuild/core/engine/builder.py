"""
Build orchestration — from options to native artifacts.

Flow:
    ensure platform → derive flags → signing corrections → map platform args
    → Info.plist build version (iOS) → asset generation
    → ionic capacitor build → xcodebuild | gradle → artifact paths

Every command goes through the adapter registry. The first fatal
failure raises ``CommandFailedError`` and nothing after it runs.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path

from capbuild.adapters.registry import AdapterRegistry, default_registry
from capbuild.core.config.loader import read_app_name
from capbuild.core.context import resolve_project_root
from capbuild.core.models.action import Action, Receipt
from capbuild.core.models.options import BuildOptions
from capbuild.core.services.args_mapper import ANDROID_ARGS_MAP, IOS_ARGS_MAP, map_args
from capbuild.core.services.artifacts import (
    ArtifactPaths,
    compute_artifact_paths,
    export_artifact_paths,
)
from capbuild.core.services.assets import maybe_generate_assets
from capbuild.core.services.commands import run_action, shell_action
from capbuild.core.services.platform_ops import ensure_platform, plan_platform
from capbuild.core.services.signing import apply_android_signing, apply_ios_signing

logger = logging.getLogger(__name__)


@dataclass
class BuildPlan:
    """Everything a build will run, computed before anything runs.

    Asset generation is not listed: whether it happens depends on
    probing the installed tools at run time.
    """

    platform: str = ""
    options: BuildOptions = field(default_factory=BuildOptions)
    generic_flags: list[str] = field(default_factory=list)
    platform_args: str = ""
    actions: list[Action] = field(default_factory=list)

    @property
    def commands(self) -> list[str]:
        return [action.describe() for action in self.actions]

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "generic_flags": self.generic_flags,
            "platform_args": self.platform_args,
            "commands": self.commands,
        }


@dataclass
class BuildResult:
    """Outcome of a build run."""

    plan: BuildPlan | None = None
    receipts: list[Receipt] = field(default_factory=list)
    artifacts: ArtifactPaths | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.plan:
            result["plan"] = self.plan.to_dict()
        result["receipts"] = [r.model_dump(mode="json") for r in self.receipts]
        if self.artifacts:
            result["artifacts"] = self.artifacts.to_dict()
        return result


# ── Flags and command lines ─────────────────────────────────────


def generic_flags(options: BuildOptions) -> list[str]:
    """Flags passed to ``ionic capacitor build`` for every platform."""
    flags = ["--prod" if options.release else "--debug"]
    if options.device:
        flags.append("--device")
    if options.prod:
        flags.append("--prod")
    if options.browserify:
        flags.append("--browserify")
    if options.verbose:
        flags.append("--verbose")
    if options.capacitor_build_config_file:
        flags.append(f"--buildConfig={shlex.quote(options.capacitor_build_config_file)}")
    return flags


def correct_options(
    options: BuildOptions,
    environ: Mapping[str, str],
    project_root: Path | None = None,
) -> BuildOptions:
    """Apply the signing corrections for the selected platform."""
    if options.is_android:
        return apply_android_signing(options)
    if options.is_ios:
        return apply_ios_signing(options, environ, project_root)
    return options


def platform_args(options: BuildOptions) -> str:
    """Mapped platform arguments; empty when no platform is selected."""
    if options.is_android:
        return map_args(options, ANDROID_ARGS_MAP)
    if options.is_ios:
        return map_args(options, IOS_ARGS_MAP)
    return ""


def capacitor_build_command(options: BuildOptions, flags: list[str], args: str) -> str:
    """``ionic capacitor build`` for the selected platform.

    iOS arguments follow one ``--`` separator, Android arguments two:
    the extra one forwards them through the Capacitor CLI to Gradle.
    """
    separator = "-- --" if options.is_android else "--"
    parts = [
        f"ionic capacitor build {options.platform} --no-open --no-interactive",
        *flags,
        separator,
    ]
    if args:
        parts.append(args)
    return " ".join(parts)


def xcodebuild_command(options: BuildOptions) -> str:
    # Configuration is always "debug", independent of the release flag.
    return (
        "xcodebuild -configuration debug -workspace ios/*.xcworkspace "
        f"-scheme {shlex.quote(options.scheme)} build"
    )


def gradle_command(options: BuildOptions) -> str:
    """Gradle bundle/assemble task, signed when a keystore is given."""
    task = "bundleRelease" if options.android_package_type == "bundle" else "assembleRelease"
    parts = [f"./android/gradlew --project-dir android app:{task}"]
    if options.is_signed:
        signing = (
            ("store.file", options.keystore_path),
            ("store.password", options.keystore_password),
            ("key.alias", options.keystore_alias),
            ("key.password", options.key_password),
        )
        parts.extend(
            f"-Pandroid.injected.signing.{prop}={shlex.quote(value)}"
            for prop, value in signing
        )
    return " ".join(parts)


def info_plist_action(options: BuildOptions, project_root: Path) -> Action | None:
    """Action setting CFBundleVersion for iOS builds with a build number."""
    if not options.is_ios or not options.build_number:
        return None
    app_name = read_app_name(project_root)
    return Action(
        id="info-plist",
        name=f"Set CFBundleVersion to {options.build_number}",
        adapter="plist",
        params={
            "path": f"ios/{app_name}/{app_name}-Info.plist",
            "values": {"CFBundleVersion": options.build_number},
        },
    )


def native_build_actions(options: BuildOptions, flags: list[str], args: str) -> list[Action]:
    """The Capacitor build plus the native compile/assemble step."""
    if not options.platform:
        return []
    actions = [shell_action("capacitor-build", capacitor_build_command(options, flags, args))]
    if options.is_ios:
        actions.append(shell_action("xcodebuild", xcodebuild_command(options)))
    elif options.is_android:
        actions.append(shell_action("gradle", gradle_command(options)))
    return actions


# ── Planning and running ────────────────────────────────────────


def plan_build(
    options: BuildOptions,
    project_root: Path,
    environ: Mapping[str, str] | None = None,
) -> BuildPlan:
    """Compute every flag and command of a build without running anything."""
    env = os.environ if environ is None else environ

    flags = generic_flags(options)
    corrected = correct_options(options, env, project_root)
    args = platform_args(corrected)

    actions: list[Action] = []
    platform_action = plan_platform(options, project_root)
    if platform_action is not None:
        actions.append(platform_action)
    plist_action = info_plist_action(corrected, project_root)
    if plist_action is not None:
        actions.append(plist_action)
    actions.extend(native_build_actions(corrected, flags, args))

    return BuildPlan(
        platform=options.platform,
        options=corrected,
        generic_flags=flags,
        platform_args=args,
        actions=actions,
    )


def build(
    options: BuildOptions,
    registry: AdapterRegistry,
    project_root: Path,
    environ: Mapping[str, str] | None = None,
    receipts: list[Receipt] | None = None,
) -> BuildPlan:
    """Run the build steps for the selected platform.

    Assumes the platform directory already exists (see ``ensure_platform``).

    Raises:
        CommandFailedError: If any fatal command fails.
        ConfigError: If the iOS build number is set but ionic.config.json
            can't be read.
    """
    env = os.environ if environ is None else environ

    flags = generic_flags(options)
    corrected = correct_options(options, env, project_root)
    args = platform_args(corrected)
    plan = BuildPlan(
        platform=options.platform,
        options=corrected,
        generic_flags=flags,
        platform_args=args,
    )

    plist_action = info_plist_action(corrected, project_root)
    if plist_action is not None:
        plan.actions.append(plist_action)
        run_action(registry, plist_action, project_root, receipts)

    assets_action = maybe_generate_assets(registry, project_root, env, receipts)
    if assets_action is not None:
        plan.actions.append(assets_action)

    if not options.platform:
        logger.warning("No platform selected, nothing to build")
    for action in native_build_actions(corrected, flags, args):
        plan.actions.append(action)
        run_action(registry, action, project_root, receipts)

    return plan


def run_build(
    options: BuildOptions,
    registry: AdapterRegistry | None = None,
    project_root: Path | None = None,
    environ: MutableMapping[str, str] | None = None,
    export: bool = True,
) -> BuildResult:
    """Prepare the platform, build, and record artifact paths.

    Args:
        options: Validated build options.
        registry: Adapter registry (default: shell + plist adapters).
        project_root: Ionic project directory (default: the registered
            project root, else cwd).
        environ: Environment read for signing lookups and written with
            the artifact paths (default: ``os.environ``).
        export: Write the artifact paths into ``environ``.

    Returns:
        BuildResult with the executed plan, receipts and artifact paths.

    Raises:
        CommandFailedError: If any fatal command fails.
    """
    root = resolve_project_root(project_root)
    env = os.environ if environ is None else environ
    registry = registry or default_registry()
    result = BuildResult()

    logger.info("Building %s in %s", options.platform or "(no platform)", root)

    platform_action = ensure_platform(options, registry, root, result.receipts)

    plan = build(options, registry, root, env, result.receipts)
    if platform_action is not None:
        plan.actions.insert(0, platform_action)
    result.plan = plan

    result.artifacts = compute_artifact_paths(options, options.release)
    if export:
        export_artifact_paths(result.artifacts, env)
    logger.info("Android artifact: %s", result.artifacts.android)
    logger.info("iOS artifact: %s", result.artifacts.ios)

    return result
