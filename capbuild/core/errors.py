"""
Error types raised by the build pipeline.

Adapters never raise. These are raised by the core when a run must stop:
bad options before anything executes, unreadable configuration, or a
fatal external command that exited non-zero.
"""

from __future__ import annotations


class CapbuildError(Exception):
    """Base class for all capbuild errors."""


class OptionValidationError(CapbuildError):
    """A build option failed its declared constraint."""

    def __init__(self, option: str, message: str):
        super().__init__(message)
        self.option = option
        self.message = message


class ConfigError(CapbuildError):
    """Raised when a config file or project metadata is invalid or missing."""


class CommandFailedError(CapbuildError):
    """A fatal external command failed."""

    def __init__(
        self,
        command: str,
        error: str | None = None,
        return_code: int | None = None,
    ):
        self.command = command
        self.error = error or ""
        self.return_code = return_code
        detail = f" (exit {return_code})" if return_code is not None else ""
        message = f"Command failed{detail}: {command}"
        if self.error:
            message = f"{message}\n{self.error}"
        super().__init__(message)
