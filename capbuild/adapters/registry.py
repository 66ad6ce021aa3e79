"""
Adapter registry — central dispatch for all adapter operations.

The registry is the single point of adapter management. It handles
registration, lookup, mock mode, dry-run and action execution. The
builder never talks to adapters directly, always through the registry.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from capbuild.adapters.base import Adapter, ExecutionContext
from capbuild.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    Features:
        - Register/unregister adapters by name
        - Mock mode: route every action to a mock adapter
        - Dry-run: validate but don't execute (read-only probes still run)
    """

    def __init__(self, mock_mode: bool = False, dry_run: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None
        self._dry_run = dry_run

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Enable or disable mock mode.

        Args:
            enabled: Whether to use mock mode.
            mock_adapter: Optional custom mock adapter. If None, every
                action succeeds with empty output.
        """
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        """Register an adapter."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an adapter from the registry."""
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        """Look up an adapter by name."""
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Get availability status of all registered adapters."""
        status = {}
        for name, adapter in self._adapters.items():
            status[name] = {
                "name": name,
                "available": adapter.is_available(),
                "type": adapter.__class__.__name__,
            }
        return status

    def execute_action(
        self,
        action: Action,
        project_root: str = ".",
        env: dict[str, str] | None = None,
    ) -> Receipt:
        """Execute an action through the appropriate adapter.

        1. Resolves the adapter (or mock)
        2. Builds the execution context
        3. Validates the action
        4. Executes (or dry-runs)
        5. Returns a Receipt (never raises)

        Actions with ``params["probe"]`` set are read-only queries and
        still execute in dry-run mode.
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            action=action,
            project_root=project_root,
            dry_run=self._dry_run,
            env=env,
            params=action.params,
        )

        adapter: Adapter | None
        if self._mock_mode and self._mock_adapter:
            adapter = self._mock_adapter
        elif self._mock_mode:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                return_code=0,
                metadata={"mock": True, "dry_run": self._dry_run},
            )
        else:
            adapter = self._adapters.get(action.adapter)

        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        is_valid, error_msg = adapter.validate(context)
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        if self._dry_run and not action.params.get("probe"):
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {action.describe()}",
                metadata={"dry_run": True},
            )

        receipt = adapter.execute(context)
        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt


def default_registry(mock_mode: bool = False, dry_run: bool = False) -> AdapterRegistry:
    """Registry with the shell and plist adapters registered."""
    from capbuild.adapters.files.plist import PlistAdapter
    from capbuild.adapters.shell.command import ShellCommandAdapter

    registry = AdapterRegistry(mock_mode=mock_mode, dry_run=dry_run)
    registry.register(ShellCommandAdapter())
    registry.register(PlistAdapter())
    return registry
