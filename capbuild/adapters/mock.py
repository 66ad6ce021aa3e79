"""
Mock adapter — test double for every external command.

Records each action it receives and returns success unless told
otherwise. Responses can be keyed by action ID or by command prefix,
so a test can make ``which bunx`` print a path or make the Gradle step
fail without caring about the exact flags.
"""

from __future__ import annotations

from capbuild.adapters.base import Adapter, ExecutionContext
from capbuild.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success with empty output for everything.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._outputs: list[tuple[str, str]] = []
        self._failures: list[tuple[str, str]] = []
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Command lines received, in order (non-shell actions use their ID)."""
        return [ctx.action.describe() for ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Set a custom response for a specific action ID."""
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Configure a specific action to fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
            return_code=1,
        )

    def set_output(self, command_prefix: str, output: str) -> None:
        """Make any command starting with ``command_prefix`` print ``output``."""
        self._outputs.append((command_prefix, output))

    def fail_command(self, command_prefix: str, error: str = "Mock failure") -> None:
        """Make any command starting with ``command_prefix`` fail."""
        self._failures.append((command_prefix, error))

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action = context.action

        if action.id in self._responses:
            return self._responses[action.id]

        command = action.command
        for prefix, error in self._failures:
            if command.startswith(prefix):
                return Receipt.failure(
                    adapter=self._name,
                    action_id=action.id,
                    error=error,
                    return_code=1,
                    metadata={"mock": True, "command": command},
                )

        output = self._default_output
        for prefix, text in self._outputs:
            if command.startswith(prefix):
                output = text
                break

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=output,
            return_code=0,
            metadata={"mock": True, "command": command},
        )

    def reset(self) -> None:
        """Clear call log and configured responses."""
        self._call_log.clear()
        self._responses.clear()
        self._outputs.clear()
        self._failures.clear()
