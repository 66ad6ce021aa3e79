"""
Tests for build orchestration — flags, command lines and step order.

Shell commands go to a MockAdapter; Info.plist edits hit a real file.
"""

import plistlib
import shlex
from pathlib import Path

import pytest

from capbuild.adapters.files.plist import PlistAdapter
from capbuild.adapters.mock import MockAdapter
from capbuild.adapters.registry import AdapterRegistry
from capbuild.core.engine.builder import (
    build,
    capacitor_build_command,
    generic_flags,
    gradle_command,
    plan_build,
    run_build,
    xcodebuild_command,
)
from capbuild.core.errors import CommandFailedError, ConfigError
from capbuild.core.models.options import build_options
from capbuild.core.services.artifacts import ANDROID_PATH_ENV, IOS_PATH_ENV

_PROBES = ["which bunx", "npm list @capacitor/assets"]


def _read_plist(project: Path) -> dict:
    with (project / "ios" / "MyApp" / "MyApp-Info.plist").open("rb") as fh:
        return plistlib.load(fh)


# ═══════════════════════════════════════════════════════════════════
#  Flags and command lines
# ═══════════════════════════════════════════════════════════════════


class TestGenericFlags:
    def test_defaults(self):
        assert generic_flags(build_options()) == ["--prod", "--device"]

    def test_debug_without_device(self):
        opts = build_options({"release": False, "device": False})
        assert generic_flags(opts) == ["--debug"]

    def test_everything(self):
        opts = build_options({
            "prod": True,
            "browserify": True,
            "verbose": True,
            "capacitor_build_config_file": "build config.json",
        })
        assert generic_flags(opts) == [
            "--prod",
            "--device",
            "--prod",
            "--browserify",
            "--verbose",
            "--buildConfig='build config.json'",
        ]


class TestCommandLines:
    def test_ios_single_separator(self):
        opts = build_options({"platform": "ios"})
        assert capacitor_build_command(opts, ["--prod"], "--scheme=App") == (
            "ionic capacitor build ios --no-open --no-interactive --prod -- --scheme=App"
        )

    def test_android_double_separator(self):
        opts = build_options({"platform": "android"})
        assert capacitor_build_command(opts, ["--prod"], "--packageType=apk") == (
            "ionic capacitor build android --no-open --no-interactive --prod -- -- --packageType=apk"
        )

    def test_xcodebuild_always_debug(self):
        for release in (True, False):
            opts = build_options({"platform": "ios", "release": release, "scheme": "Main"})
            assert xcodebuild_command(opts) == (
                "xcodebuild -configuration debug -workspace ios/*.xcworkspace -scheme Main build"
            )

    def test_gradle_unsigned(self):
        opts = build_options({"platform": "android", "keystore_password": "s3cret"})
        command = gradle_command(opts)
        assert command == "./android/gradlew --project-dir android app:assembleRelease"
        assert "signing" not in command

    def test_gradle_unsigned_bundle(self):
        opts = build_options({"platform": "android", "android_package_type": "bundle"})
        assert gradle_command(opts) == "./android/gradlew --project-dir android app:bundleRelease"

    def test_gradle_signed_escapes_values(self):
        opts = build_options({
            "platform": "android",
            "keystore_path": "keys/my release.jks",
            "keystore_password": "pa$$",
            "keystore_alias": "upload",
            "key_password": "k3y",
        })
        tokens = shlex.split(gradle_command(opts))
        signing = [t for t in tokens if t.startswith("-Pandroid.injected.signing.")]
        assert signing == [
            "-Pandroid.injected.signing.store.file=keys/my release.jks",
            "-Pandroid.injected.signing.store.password=pa$$",
            "-Pandroid.injected.signing.key.alias=upload",
            "-Pandroid.injected.signing.key.password=k3y",
        ]


# ═══════════════════════════════════════════════════════════════════
#  Android builds
# ═══════════════════════════════════════════════════════════════════


class TestAndroidBuild:
    def test_unsigned_apk(self, ionic_project: Path, registry, shell_mock):
        opts = build_options({"platform": "android", "keystore_password": "s3cret"})
        result = run_build(opts, registry, ionic_project, environ={})
        assert shell_mock.commands == _PROBES + [
            "ionic capacitor build android --no-open --no-interactive --prod --device "
            "-- -- --storePassword=s3cret --password=s3cret --packageType=apk",
            "./android/gradlew --project-dir android app:assembleRelease",
        ]
        assert result.plan is not None
        assert result.plan.options.key_password == "s3cret"

    def test_signed_bundle(self, ionic_project: Path, registry, shell_mock):
        opts = build_options({
            "platform": "android",
            "android_package_type": "bundle",
            "keystore_path": "ks.jks",
            "keystore_password": "s3cret",
            "keystore_alias": "upload",
        })
        result = run_build(opts, registry, ionic_project, environ={})
        assert shell_mock.commands[-2] == (
            "ionic capacitor build android --no-open --no-interactive --prod --device -- -- "
            "--keystore=ks.jks --storePassword=s3cret --password=s3cret --alias=upload "
            "--packageType=bundle"
        )
        assert shell_mock.commands[-1] == (
            "./android/gradlew --project-dir android app:bundleRelease "
            "-Pandroid.injected.signing.store.file=ks.jks "
            "-Pandroid.injected.signing.store.password=s3cret "
            "-Pandroid.injected.signing.key.alias=upload "
            "-Pandroid.injected.signing.key.password=s3cret"
        )
        assert result.artifacts is not None
        assert result.artifacts.android == "./android/app/build/outputs/bundle/release/app-release.aab"

    def test_adds_platform_first(self, tmp_path: Path, registry, shell_mock):
        opts = build_options({"platform": "android"})
        result = run_build(opts, registry, tmp_path, environ={})
        assert shell_mock.commands[0] == "ionic capacitor platform add android --no-interactive"
        assert result.plan is not None
        assert result.plan.actions[0].id == "platform-add"

    def test_build_failure_stops_gradle(self, ionic_project: Path, registry, shell_mock):
        shell_mock.fail_command("ionic capacitor build", error="tsc failed")
        env: dict[str, str] = {}
        with pytest.raises(CommandFailedError, match="tsc failed"):
            run_build(build_options({"platform": "android"}), registry, ionic_project, environ=env)
        assert not any(c.startswith("./android/gradlew") for c in shell_mock.commands)
        assert ANDROID_PATH_ENV not in env


# ═══════════════════════════════════════════════════════════════════
#  iOS builds
# ═══════════════════════════════════════════════════════════════════


class TestIosBuild:
    def test_default_ios(self, ionic_project: Path, registry, shell_mock):
        run_build(build_options({"platform": "ios"}), registry, ionic_project, environ={})
        assert shell_mock.commands == _PROBES + [
            "ionic capacitor build ios --no-open --no-interactive --prod --device "
            "-- --scheme=App --packageType=app-store",
            "xcodebuild -configuration debug -workspace ios/*.xcworkspace -scheme App build",
        ]

    def test_provisioning_profile_from_sigh(self, ionic_project: Path, registry, shell_mock):
        opts = build_options({"platform": "ios", "type": "adhoc", "team_id": "TEAM1"})
        run_build(opts, registry, ionic_project, environ={"SIGH_UUID": "abcd-1234"})
        assert shell_mock.commands[-2].endswith(
            "-- --scheme=App --packageType=ad-hoc --developmentTeam=TEAM1 "
            "--provisioningProfile=abcd-1234"
        )

    def test_build_flags(self, ionic_project: Path, registry, shell_mock):
        opts = build_options({
            "platform": "ios",
            "build_flag": ["-quiet", "-UseModernBuildSystem=YES"],
        })
        run_build(opts, registry, ionic_project, environ={})
        assert shell_mock.commands[-2].endswith(
            "--buildFlag=-quiet --buildFlag=-UseModernBuildSystem=YES"
        )

    def test_build_number_sets_bundle_version(self, ionic_project: Path, registry, shell_mock):
        opts = build_options({"platform": "ios", "build_number": 42})
        result = run_build(opts, registry, ionic_project, environ={})
        plist = _read_plist(ionic_project)
        assert plist["CFBundleVersion"] == "42"
        assert plist["CFBundleShortVersionString"] == "1.0"
        assert result.plan is not None
        ids = [a.id for a in result.plan.actions]
        assert ids.index("info-plist") < ids.index("capacitor-build")

    def test_build_number_ignored_for_android(self, ionic_project: Path, registry):
        run_build(
            build_options({"platform": "android", "build_number": "7"}),
            registry,
            ionic_project,
            environ={},
        )
        assert _read_plist(ionic_project)["CFBundleVersion"] == "1"

    def test_build_number_needs_ionic_config(self, ionic_project: Path, registry):
        (ionic_project / "ionic.config.json").unlink()
        with pytest.raises(ConfigError, match="ionic.config.json"):
            run_build(
                build_options({"platform": "ios", "build_number": "3"}),
                registry,
                ionic_project,
                environ={},
            )

    def test_missing_plist_is_fatal(self, ionic_project: Path, registry, shell_mock):
        (ionic_project / "ios" / "MyApp" / "MyApp-Info.plist").unlink()
        with pytest.raises(CommandFailedError, match="File not found"):
            run_build(
                build_options({"platform": "ios", "build_number": "3"}),
                registry,
                ionic_project,
                environ={},
            )
        assert shell_mock.call_count == 0


# ═══════════════════════════════════════════════════════════════════
#  Run-level behavior
# ═══════════════════════════════════════════════════════════════════


class TestRunBuild:
    def test_exports_artifact_paths(self, ionic_project: Path, registry):
        env = {ANDROID_PATH_ENV: "stale"}
        result = run_build(build_options({"platform": "android"}), registry, ionic_project, environ=env)
        assert env[ANDROID_PATH_ENV] == "./android/app/build/outputs/apk/release/app-release-unsigned.apk"
        assert env[IOS_PATH_ENV] == "./ios/build/device/app.ipa"
        assert result.to_dict()["artifacts"]["ios"] == "./ios/build/device/app.ipa"

    def test_export_disabled(self, ionic_project: Path, registry):
        env: dict[str, str] = {}
        run_build(build_options({"platform": "ios"}), registry, ionic_project, environ=env, export=False)
        assert env == {}

    def test_no_platform_only_probes(self, ionic_project: Path, registry, shell_mock):
        result = run_build(build_options(), registry, ionic_project, environ={})
        assert shell_mock.commands == _PROBES
        assert result.artifacts is not None

    def test_assets_generated_before_build(self, ionic_project: Path, registry, shell_mock):
        shell_mock.set_output("npm list", "└── @capacitor/assets@3.0.5")
        run_build(build_options({"platform": "ios"}), registry, ionic_project, environ={})
        commands = shell_mock.commands
        assert commands.index("npx capacitor-assets generate") < commands.index(
            next(c for c in commands if c.startswith("ionic capacitor build"))
        )

    def test_dry_run_skips_commands_but_runs_probes(self, ionic_project: Path):
        mock = MockAdapter(adapter_name="shell")
        registry = AdapterRegistry(dry_run=True)
        registry.register(mock)
        registry.register(PlistAdapter())
        result = run_build(
            build_options({"platform": "ios", "build_number": "9"}),
            registry,
            ionic_project,
            environ={},
        )
        assert mock.commands == _PROBES
        statuses = {r.action_id: r.status for r in result.receipts}
        assert statuses["capacitor-build"] == "skipped"
        assert statuses["xcodebuild"] == "skipped"
        assert statuses["info-plist"] == "skipped"
        assert _read_plist(ionic_project)["CFBundleVersion"] == "1"

    def test_build_does_not_add_platform(self, tmp_path: Path, registry, shell_mock):
        build(build_options({"platform": "android"}), registry, tmp_path, environ={})
        assert not any("platform add" in c for c in shell_mock.commands)


class TestPlanBuild:
    def test_runs_nothing(self, ionic_project: Path, shell_mock):
        plan = plan_build(build_options({"platform": "ios", "build_number": "5"}), ionic_project, {})
        assert shell_mock.call_count == 0
        assert [a.id for a in plan.actions] == ["info-plist", "capacitor-build", "xcodebuild"]
        assert plan.platform_args == "--scheme=App --packageType=app-store"

    def test_includes_platform_add(self, tmp_path: Path):
        plan = plan_build(build_options({"platform": "android"}), tmp_path, {})
        assert plan.commands[0] == "ionic capacitor platform add android --no-interactive"
        assert plan.to_dict()["generic_flags"] == ["--prod", "--device"]

    def test_options_not_mutated(self, ionic_project: Path):
        opts = build_options({"platform": "android", "keystore_password": "pw"})
        plan = plan_build(opts, ionic_project, {})
        assert opts.key_password == ""
        assert plan.options.key_password == "pw"

    def test_uses_registered_project_root(self, ionic_project: Path, registry, monkeypatch):
        from capbuild.core import context

        monkeypatch.setattr(context, "_project_root", None)
        context.set_project_root(ionic_project)
        assert context.get_project_root() == ionic_project
        result = run_build(build_options({"platform": "android"}), registry, environ={})
        assert result.plan is not None
        assert [a.id for a in result.plan.actions][-2:] == ["capacitor-build", "gradle"]
        assert "platform-add" not in [a.id for a in result.plan.actions]
