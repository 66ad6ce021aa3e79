"""
App asset generation — run ``capacitor-assets generate`` when installed.

Prefers bun (``bunx``) when it is on the PATH, otherwise npm (``npx``).
The only platform difference is how bunx is looked up: ``which`` on
POSIX shells, PowerShell's ``gcm`` on Windows. A missing tool or a
missing ``@capacitor/assets`` package is not an error; the step is
simply skipped.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from capbuild.adapters.registry import AdapterRegistry
from capbuild.core.models.action import Action, Receipt
from capbuild.core.services.commands import probe_action, run_action, shell_action

logger = logging.getLogger(__name__)

ASSETS_PACKAGE = "@capacitor/assets"


class ToolProbe(ABC):
    """Looks up whether an executable is on the PATH via the shell."""

    @abstractmethod
    def lookup_command(self, tool: str) -> str:
        """Shell command that prints the tool's path when it exists."""

    def has_tool(
        self,
        tool: str,
        registry: AdapterRegistry,
        project_root: Path,
        receipts: list[Receipt] | None = None,
    ) -> bool:
        action = probe_action(f"probe-{tool}", self.lookup_command(tool))
        receipt = run_action(registry, action, project_root, receipts)
        return receipt.ok and bool(receipt.output.strip())


class PosixToolProbe(ToolProbe):
    def lookup_command(self, tool: str) -> str:
        return f"which {tool}"


class WindowsToolProbe(ToolProbe):
    def lookup_command(self, tool: str) -> str:
        return f'powershell -Command "(gcm {tool}).Path"'


def select_probe(environ: Mapping[str, str] | None = None) -> ToolProbe:
    """Windows probe when ``OS`` is ``Windows_NT``, POSIX otherwise."""
    env = os.environ if environ is None else environ
    if env.get("OS") == "Windows_NT":
        return WindowsToolProbe()
    return PosixToolProbe()


def _package_listed(
    command: str,
    registry: AdapterRegistry,
    project_root: Path,
    receipts: list[Receipt] | None,
) -> bool:
    # npm list exits non-zero when the package is missing, so only the
    # output is trusted
    action_id = f"list-{command.split()[0]}"
    receipt = run_action(registry, probe_action(action_id, command), project_root, receipts)
    return not receipt.skipped and ASSETS_PACKAGE in receipt.output


def plan_assets(
    registry: AdapterRegistry,
    project_root: Path,
    environ: Mapping[str, str] | None = None,
    receipts: list[Receipt] | None = None,
) -> Action | None:
    """Probe for bunx/npx and ``@capacitor/assets``; return the generate action.

    Returns None when the assets package isn't installed under the
    selected package runner.
    """
    probe = select_probe(environ)

    if probe.has_tool("bunx", registry, project_root, receipts):
        if _package_listed("bun pm ls", registry, project_root, receipts):
            return shell_action("assets-generate", "bunx capacitor-assets generate")
        logger.debug("%s not listed by bun, skipping asset generation", ASSETS_PACKAGE)
        return None

    if _package_listed(f"npm list {ASSETS_PACKAGE}", registry, project_root, receipts):
        return shell_action("assets-generate", "npx capacitor-assets generate")

    logger.debug("%s not installed, skipping asset generation", ASSETS_PACKAGE)
    return None


def maybe_generate_assets(
    registry: AdapterRegistry,
    project_root: Path,
    environ: Mapping[str, str] | None = None,
    receipts: list[Receipt] | None = None,
) -> Action | None:
    """Generate app icons and splash screens if ``@capacitor/assets`` is installed.

    Returns:
        The generate action that was run, or None when the step was
        skipped. Probe and generate receipts are appended to ``receipts``.

    Raises:
        CommandFailedError: If the generate command itself fails.
    """
    action = plan_assets(registry, project_root, environ, receipts)
    if action is None:
        return None
    run_action(registry, action, project_root, receipts)
    return action
