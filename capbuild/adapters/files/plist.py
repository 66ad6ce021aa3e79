"""
Info.plist adapter — set keys in a property list file.

Used to stamp ``CFBundleVersion`` into the generated iOS project before
the native build runs. Returns receipts like every other adapter, so the
edit shows up in plans and can be dry-run.
"""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path

from capbuild.adapters.base import Adapter, ExecutionContext
from capbuild.core.models.action import Receipt

logger = logging.getLogger(__name__)


class PlistAdapter(Adapter):
    """Update values in a plist file.

    Action params:
        path (str): Plist path (relative to working_dir or absolute).
        values (dict[str, str]): Keys to set and their new values.
    """

    @property
    def name(self) -> str:
        return "plist"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        path = context.action.params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"

        values = context.action.params.get("values")
        if not values or not isinstance(values, dict):
            return False, "Missing required param: 'values'"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        target = Path(context.action.params["path"])
        if not target.is_absolute():
            target = Path(context.working_dir) / target
        values: dict[str, str] = context.action.params["values"]

        if not target.is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"File not found: {target}",
                metadata={"path": str(target)},
            )

        try:
            with target.open("rb") as fh:
                data = plistlib.load(fh)
            data.update(values)
            with target.open("wb") as fh:
                plistlib.dump(data, fh)
        except (OSError, plistlib.InvalidFileException, ValueError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Plist error: {e}",
                metadata={"path": str(target)},
            )

        logger.debug("Updated %s in %s", ", ".join(values), target)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Updated {', '.join(f'{k}={v}' for k, v in values.items())} in {target}",
            metadata={"path": str(target), "values": values},
        )
