"""
Build options — the catalogue of every recognized option and the typed
model they are validated into.

Each option has an environment variable binding, a description, a value
kind, a default and an optional set of allowed values. Validation
happens once, when options are ingested; nothing downstream re-checks.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from capbuild.core.errors import OptionValidationError

OptionKind = Literal["string", "bool", "list", "text"]

_TRUE_WORDS = {"1", "true", "yes", "on", "y"}
_FALSE_WORDS = {"0", "false", "no", "off", "n", ""}

PLATFORMS = ("", "android", "ios")
IOS_PACKAGE_TYPES = ("development", "enterprise", "adhoc", "appstore", "ad-hoc", "app-store")
ANDROID_PACKAGE_TYPES = ("apk", "bundle")


@dataclass(frozen=True)
class OptionSpec:
    """Declaration of one build option.

    ``kind`` is the expected value type: ``string``, ``bool``, ``list``
    (of strings) or ``text`` (a string that may also be given as a
    number, e.g. a build number read from YAML).
    """

    name: str
    env_name: str
    description: str
    kind: OptionKind = "string"
    default: Any = ""
    choices: tuple[str, ...] | None = None
    choices_error: str = ""
    env_fallbacks: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").capitalize()

    def from_env(self, raw: str) -> Any:
        """Convert an environment variable string into this option's kind."""
        if self.kind == "bool":
            word = raw.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            raise OptionValidationError(
                self.name,
                f"{self.label} should be boolean (got {raw!r} from {self.env_name})",
            )
        if self.kind == "list":
            return [part.strip() for part in raw.split(",") if part.strip()]
        return raw

    def normalize(self, value: Any) -> Any:
        """Check ``value`` against this option and return its normalized form.

        Raises:
            OptionValidationError: If the value has the wrong type or is
                not one of the allowed choices.
        """
        if value is None:
            return self.default

        if self.kind == "bool":
            if not isinstance(value, bool):
                raise OptionValidationError(self.name, f"{self.label} should be boolean")
            return value

        if self.kind == "list":
            if isinstance(value, str):
                return self.from_env(value)
            if not isinstance(value, (list, tuple)) or not all(
                isinstance(item, str) for item in value
            ):
                raise OptionValidationError(
                    self.name, f"{self.label} should be a list of strings"
                )
            return list(value)

        if self.kind == "text":
            if isinstance(value, bool) or not isinstance(value, (str, int)):
                raise OptionValidationError(
                    self.name, f"{self.label} should be a string or an integer"
                )
            return str(value)

        if not isinstance(value, str):
            raise OptionValidationError(self.name, f"{self.label} should be a string")
        if self.choices is not None and value not in self.choices:
            raise OptionValidationError(self.name, self.choices_error)
        return value


OPTIONS: tuple[OptionSpec, ...] = (
    OptionSpec(
        name="platform",
        env_name="CAPACITOR_PLATFORM",
        description="Platform to build on. Should be either android or ios",
        choices=PLATFORMS,
        choices_error="Platform should be either android or ios",
    ),
    OptionSpec(
        name="release",
        env_name="CAPACITOR_RELEASE",
        description="Build for release if true, or for debug if false",
        kind="bool",
        default=True,
    ),
    OptionSpec(
        name="device",
        env_name="CAPACITOR_DEVICE",
        description="Build for device",
        kind="bool",
        default=True,
    ),
    OptionSpec(
        name="prod",
        env_name="IONIC_PROD",
        description="Build for production",
        kind="bool",
        default=False,
    ),
    OptionSpec(
        name="scheme",
        env_name="CAPACITOR_IOS_SCHEME",
        description="The scheme to use when building the app",
        default="App",
    ),
    OptionSpec(
        name="type",
        env_name="CAPACITOR_IOS_PACKAGE_TYPE",
        description=(
            "This will determine what type of build is generated by Xcode. "
            "Valid options are development, enterprise, adhoc, and appstore"
        ),
        default="appstore",
        choices=IOS_PACKAGE_TYPES,
        choices_error="Valid options are development, enterprise, adhoc, and appstore.",
    ),
    OptionSpec(
        name="verbose",
        env_name="CAPACITOR_VERBOSE",
        description="Pipe out more verbose output to the shell",
        kind="bool",
        default=False,
    ),
    OptionSpec(
        name="team_id",
        env_name="CAPACITOR_IOS_TEAM_ID",
        description="The development team (Team ID) to use for code signing",
        env_fallbacks=("FASTLANE_TEAM_ID",),
    ),
    OptionSpec(
        name="provisioning_profile",
        env_name="CAPACITOR_IOS_PROVISIONING_PROFILE",
        description="GUID of the provisioning profile to be used for signing",
    ),
    OptionSpec(
        name="app_identifier",
        env_name="CAPACITOR_APP_IDENTIFIER",
        description=(
            "Bundle identifier used to look up a provisioning profile "
            "(default: appId from capacitor.config.json)"
        ),
    ),
    OptionSpec(
        name="android_package_type",
        env_name="CAPACITOR_ANDROID_PACKAGE_TYPE",
        description=(
            "This will determine what type of Android build is generated. "
            "Valid options are apk or bundle"
        ),
        default="apk",
        choices=ANDROID_PACKAGE_TYPES,
        choices_error="Valid options are apk or bundle.",
    ),
    OptionSpec(
        name="keystore_path",
        env_name="CAPACITOR_ANDROID_KEYSTORE_PATH",
        description="Path to the Keystore for Android",
    ),
    OptionSpec(
        name="keystore_password",
        env_name="CAPACITOR_ANDROID_KEYSTORE_PASSWORD",
        description="Android Keystore password",
    ),
    OptionSpec(
        name="key_password",
        env_name="CAPACITOR_ANDROID_KEY_PASSWORD",
        description="Android Key password (default is keystore password)",
    ),
    OptionSpec(
        name="keystore_alias",
        env_name="CAPACITOR_ANDROID_KEYSTORE_ALIAS",
        description="Android Keystore alias",
    ),
    OptionSpec(
        name="build_number",
        env_name="CAPACITOR_BUILD_NUMBER",
        description="Sets the build number for iOS and version code for Android",
        kind="text",
        default=None,
    ),
    OptionSpec(
        name="browserify",
        env_name="CAPACITOR_BROWSERIFY",
        description="Specifies whether to browserify build or not",
        kind="bool",
        default=False,
    ),
    OptionSpec(
        name="capacitor_prepare",
        env_name="CAPACITOR_PREPARE",
        description="Specifies whether to run `ionic capacitor prepare` before building",
        kind="bool",
        default=True,
    ),
    OptionSpec(
        name="min_sdk_version",
        env_name="CAPACITOR_ANDROID_MIN_SDK_VERSION",
        description="Overrides the value of minSdkVersion set in AndroidManifest.xml",
        kind="text",
    ),
    OptionSpec(
        name="capacitor_no_fetch",
        env_name="CAPACITOR_NO_FETCH",
        description="Call `capacitor platform add` with `--nofetch` parameter",
        kind="bool",
        default=False,
    ),
    OptionSpec(
        name="capacitor_no_resources",
        env_name="CAPACITOR_NO_RESOURCES",
        description="Call `capacitor platform add` with `--no-resources` parameter",
        kind="bool",
        default=False,
    ),
    OptionSpec(
        name="build_flag",
        env_name="CAPACITOR_IOS_BUILD_FLAG",
        description="An array of Xcode buildFlag. Will be appended on compile command",
        kind="list",
        default=(),
    ),
    OptionSpec(
        name="capacitor_build_config_file",
        env_name="CAPACITOR_BUILD_CONFIG_FILE",
        description=(
            "Call `ionic capacitor compile` with `--buildConfig=<ConfigFile>` "
            "to specify build config file path"
        ),
    ),
)

OPTIONS_BY_NAME: dict[str, OptionSpec] = {spec.name: spec for spec in OPTIONS}


def get_option(name: str) -> OptionSpec:
    """Look up an option declaration by name."""
    try:
        return OPTIONS_BY_NAME[name]
    except KeyError:
        raise OptionValidationError(name, f"Unknown option '{name}'") from None


class BuildOptions(BaseModel):
    """A validated, fully-populated set of build options.

    Instances are frozen. The pipeline's corrections (Android key
    password, iOS provisioning profile and package type) produce a new
    instance with ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    platform: Literal["", "android", "ios"] = ""
    release: bool = True
    device: bool = True
    prod: bool = False
    scheme: str = "App"
    type: Literal[
        "development", "enterprise", "adhoc", "appstore", "ad-hoc", "app-store"
    ] = "appstore"
    verbose: bool = False
    team_id: str = ""
    provisioning_profile: str = ""
    app_identifier: str = ""
    android_package_type: Literal["apk", "bundle"] = "apk"
    keystore_path: str = ""
    keystore_password: str = ""
    key_password: str = ""
    keystore_alias: str = ""
    build_number: str | None = None
    browserify: bool = False
    capacitor_prepare: bool = True
    min_sdk_version: str = ""
    capacitor_no_fetch: bool = False
    capacitor_no_resources: bool = False
    build_flag: list[str] = Field(default_factory=list)
    capacitor_build_config_file: str = ""

    @property
    def is_android(self) -> bool:
        return self.platform == "android"

    @property
    def is_ios(self) -> bool:
        return self.platform == "ios"

    @property
    def is_signed(self) -> bool:
        """Whether an Android keystore was supplied."""
        return bool(self.keystore_path)

    def to_dict(self) -> dict[str, Any]:
        """Options as a plain dict with secrets masked."""
        data = self.model_dump(mode="json")
        for key in ("keystore_password", "key_password"):
            if data.get(key):
                data[key] = "***"
        return data


def build_options(values: Mapping[str, Any] | None = None) -> BuildOptions:
    """Validate raw option values and fill in defaults.

    Args:
        values: Option name → value. Unknown names are rejected, ``None``
            values fall back to the declared default.

    Returns:
        A frozen BuildOptions instance.

    Raises:
        OptionValidationError: On the first option that violates its
            declaration.
    """
    normalized: dict[str, Any] = {}
    for name, value in (values or {}).items():
        spec = get_option(name)
        normalized[name] = spec.normalize(value)

    for spec in OPTIONS:
        if spec.name not in normalized:
            default = spec.default
            normalized[spec.name] = list(default) if isinstance(default, tuple) else default

    try:
        return BuildOptions.model_validate(normalized)
    except ValidationError as e:
        first = e.errors()[0]
        name = str(first["loc"][0]) if first.get("loc") else "?"
        raise OptionValidationError(name, f"Invalid value for '{name}': {first['msg']}") from e
