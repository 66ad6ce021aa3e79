"""
Command dispatch helpers shared by the build steps.

Every external invocation goes through ``run_action``: it logs the
command, dispatches it through the adapter registry and turns a failed
receipt of a fatal action into ``CommandFailedError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from capbuild.adapters.registry import AdapterRegistry
from capbuild.core.errors import CommandFailedError
from capbuild.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


def shell_action(action_id: str, command: str, **params: Any) -> Action:
    """Build a shell Action for ``command``."""
    return Action(
        id=action_id,
        name=action_id.replace("-", " "),
        adapter="shell",
        params={"command": command, **params},
    )


def probe_action(action_id: str, command: str) -> Action:
    """Build a read-only, non-fatal shell Action whose output is inspected."""
    return Action(
        id=action_id,
        name=action_id.replace("-", " "),
        adapter="shell",
        params={"command": command, "capture": True, "probe": True},
        fatal=False,
    )


def run_action(
    registry: AdapterRegistry,
    action: Action,
    project_root: Path | str = ".",
    receipts: list[Receipt] | None = None,
) -> Receipt:
    """Execute ``action`` and return its receipt.

    Args:
        registry: Adapter registry to dispatch through.
        action: The action to run.
        project_root: Working directory for the command.
        receipts: Optional list every receipt is appended to.

    Raises:
        CommandFailedError: If a fatal action fails.
    """
    if action.params.get("probe"):
        logger.debug("$ %s", action.describe())
    else:
        logger.info("$ %s", action.describe())

    receipt = registry.execute_action(action, project_root=str(project_root))
    if receipts is not None:
        receipts.append(receipt)

    if receipt.failed:
        if action.fatal:
            logger.error("✗ %s failed: %s", action.id, receipt.error)
            raise CommandFailedError(
                action.describe(),
                error=receipt.error,
                return_code=receipt.return_code,
            )
        logger.debug("Non-fatal %s failed: %s", action.id, receipt.error)

    return receipt
