"""
Project context — which Ionic project directory the build runs in.

Set once at startup by the CLI (``--project-dir`` or the config file's
directory). Tests set it to ``tmp_path``. Every relative path the build
touches (``./android``, ``./ios``, ``ionic.config.json``) is resolved
against this root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


_project_root: Optional[Path] = None


def set_project_root(root: Path) -> None:
    """Register the project root for the current process."""
    global _project_root
    _project_root = root


def get_project_root() -> Optional[Path]:
    """Return the current project root, or None if not yet set."""
    return _project_root


def resolve_project_root(root: Path | None = None) -> Path:
    """An explicit root, else the registered one, else the cwd."""
    return (root or _project_root or Path.cwd()).resolve()
