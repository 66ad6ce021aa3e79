"""
Artifact paths — where the finished builds land.

The paths are computed from the options, returned to the caller and,
at the outer boundary only, exported as environment variables for
later steps of a deployment pipeline.
"""

from __future__ import annotations

import os
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass

from capbuild.core.models.options import BuildOptions

ANDROID_PATH_ENV = "CAPACITOR_ANDROID_RELEASE_BUILD_PATH"
IOS_PATH_ENV = "CAPACITOR_IOS_RELEASE_BUILD_PATH"

IOS_ARTIFACT_PATH = "./ios/build/device/app.ipa"


@dataclass(frozen=True)
class ArtifactPaths:
    android: str
    ios: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def android_artifact_path(options: BuildOptions, is_release: bool) -> str:
    package_type = options.android_package_type or "apk"
    build_type = "release" if is_release else "debug"
    signed = "" if options.is_signed else "-unsigned"
    extension = ".aab" if package_type == "bundle" else ".apk"
    return (
        f"./android/app/build/outputs/{package_type}/{build_type}/"
        f"app-{build_type}{signed}{extension}"
    )


def compute_artifact_paths(options: BuildOptions, is_release: bool | None = None) -> ArtifactPaths:
    """Expected artifact paths for a build with ``options``.

    The iOS path is fixed; it does not depend on the release flag or
    the scheme.
    """
    release = options.release if is_release is None else is_release
    return ArtifactPaths(
        android=android_artifact_path(options, release),
        ios=IOS_ARTIFACT_PATH,
    )


def export_artifact_paths(
    paths: ArtifactPaths,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Publish both paths as environment variables, overwriting old values."""
    env = os.environ if environ is None else environ
    env[ANDROID_PATH_ENV] = paths.android
    env[IOS_PATH_ENV] = paths.ios
