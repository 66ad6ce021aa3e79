"""
Platform preparation — make sure the native project directory exists.

``ionic capacitor platform add`` creates ``./android`` or ``./ios``; it
is only run when that directory is missing.
"""

from __future__ import annotations

import logging
from pathlib import Path

from capbuild.adapters.registry import AdapterRegistry
from capbuild.core.models.action import Action, Receipt
from capbuild.core.models.options import BuildOptions
from capbuild.core.services.commands import run_action, shell_action

logger = logging.getLogger(__name__)


def platform_add_command(options: BuildOptions) -> str:
    """The ``platform add`` command line for the selected platform."""
    args = []
    if options.capacitor_no_fetch:
        args.append("--nofetch")
    if options.capacitor_no_resources:
        args.append("--no-resources")
    command = f"ionic capacitor platform add {options.platform} --no-interactive"
    return " ".join([command, *args])


def plan_platform(options: BuildOptions, project_root: Path) -> Action | None:
    """The action that adds the platform, or None if nothing is needed."""
    if not options.platform:
        return None
    if (project_root / options.platform).is_dir():
        logger.debug("Platform directory ./%s already exists", options.platform)
        return None
    return shell_action("platform-add", platform_add_command(options))


def ensure_platform(
    options: BuildOptions,
    registry: AdapterRegistry,
    project_root: Path,
    receipts: list[Receipt] | None = None,
) -> Action | None:
    """Add the native platform if its directory is missing.

    Returns:
        The ``platform add`` action that was run, or None when nothing
        was needed. Its receipt is appended to ``receipts``.

    Raises:
        CommandFailedError: If ``platform add`` fails.
    """
    action = plan_platform(options, project_root)
    if action is None:
        return None
    logger.info("Adding platform %s", options.platform)
    run_action(registry, action, project_root, receipts)
    return action
