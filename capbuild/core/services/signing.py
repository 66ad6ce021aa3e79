"""
Signing corrections applied to options before argument mapping.

Android: the key password defaults to the keystore password.
iOS: a missing provisioning profile is picked up from what ``match`` or
``sigh`` exported in a previous step, and package type aliases are
normalized to the names the Capacitor CLI expects.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from capbuild.core.config.loader import read_app_identifier
from capbuild.core.models.options import BuildOptions

logger = logging.getLogger(__name__)

_PACKAGE_TYPE_ALIASES = {
    "adhoc": "ad-hoc",
    "appstore": "app-store",
}


def normalize_package_type(package_type: str) -> str:
    """Map ``adhoc``/``appstore`` to their hyphenated names; others pass through."""
    return _PACKAGE_TYPE_ALIASES.get(package_type, package_type)


def apply_android_signing(options: BuildOptions) -> BuildOptions:
    """Default ``key_password`` to ``keystore_password`` when not given."""
    if options.key_password:
        return options
    return options.model_copy(update={"key_password": options.keystore_password})


def resolve_provisioning_profile(
    app_identifier: str,
    package_type: str,
    environ: Mapping[str, str],
) -> str:
    """Find a provisioning profile UUID exported by ``sigh``/``match``.

    Checks ``SIGH_UUID`` first, then ``sigh_<app id>_<type>`` with the
    first hyphen of the type removed (``ad-hoc`` → ``adhoc``).
    Returns an empty string when neither is set.
    """
    uuid = environ.get("SIGH_UUID")
    if uuid:
        return uuid
    key = f"sigh_{app_identifier}_{package_type.replace('-', '', 1)}"
    return environ.get(key, "")


def apply_ios_signing(
    options: BuildOptions,
    environ: Mapping[str, str],
    project_root: Path | None = None,
) -> BuildOptions:
    """Fill in the provisioning profile and normalize the package type."""
    update: dict[str, str] = {}

    if not options.provisioning_profile:
        app_identifier = options.app_identifier
        if not app_identifier and project_root is not None:
            app_identifier = read_app_identifier(project_root) or ""
        profile = resolve_provisioning_profile(app_identifier, options.type, environ)
        if profile:
            logger.info("Using provisioning profile %s", profile)
            update["provisioning_profile"] = profile

    package_type = normalize_package_type(options.type)
    if package_type != options.type:
        update["type"] = package_type

    return options.model_copy(update=update) if update else options
