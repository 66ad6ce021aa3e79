"""
Argument mapping — turn build options into platform CLI flags.

Each platform has a fixed, ordered table of ``(option, flag)`` pairs.
``map_args`` walks the table in order and emits ``--flag=value`` for
every option that carries a value. Values are shell-quoted so a value
with spaces or quotes reaches the build tool as a single argument.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Any

from capbuild.core.models.options import BuildOptions

ArgsMap = tuple[tuple[str, str], ...]

ANDROID_ARGS_MAP: ArgsMap = (
    ("keystore_path", "keystore"),
    ("keystore_password", "storePassword"),
    ("key_password", "password"),
    ("keystore_alias", "alias"),
    ("build_number", "versionCode"),
    ("min_sdk_version", "gradleArg=-PcdvMinSdkVersion"),
    ("capacitor_no_fetch", "capacitorNoFetch"),
    ("android_package_type", "packageType"),
)

IOS_ARGS_MAP: ArgsMap = (
    ("scheme", "scheme"),
    ("type", "packageType"),
    ("team_id", "developmentTeam"),
    ("provisioning_profile", "provisioningProfile"),
    ("build_flag", "buildFlag"),
)


# ── Option values ───────────────────────────────────────────────


@dataclass(frozen=True)
class TextArg:
    value: str


@dataclass(frozen=True)
class FlagArg:
    value: bool


@dataclass(frozen=True)
class ListArg:
    values: tuple[str, ...]


@dataclass(frozen=True)
class NoArg:
    pass


ArgValue = TextArg | FlagArg | ListArg | NoArg


def classify(value: Any) -> ArgValue:
    """Sort a raw option value into exactly one ArgValue variant."""
    if isinstance(value, bool):
        return FlagArg(value)
    if isinstance(value, (list, tuple)):
        return ListArg(tuple(str(item) for item in value))
    if isinstance(value, str) and value:
        return TextArg(value)
    return NoArg()


def render_flag(flag: str, value: ArgValue) -> list[str]:
    """Tokens emitted for one table entry."""
    if isinstance(value, ListArg):
        return [f"--{flag}={shlex.quote(item)}" for item in value.values]
    if isinstance(value, TextArg):
        return [f"--{flag}={shlex.quote(value.value)}"]
    # booleans and empty values carry nothing to forward
    return []


def map_args(options: BuildOptions, args_map: ArgsMap) -> str:
    """Map options to a space-joined flag string, in table order."""
    tokens: list[str] = []
    for option, flag in args_map:
        tokens.extend(render_flag(flag, classify(getattr(options, option))))
    return " ".join(tokens)
