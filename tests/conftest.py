"""
Shared test fixtures and configuration.
"""

import json
import plistlib
from pathlib import Path

import pytest

from capbuild.adapters.files.plist import PlistAdapter
from capbuild.adapters.mock import MockAdapter
from capbuild.adapters.registry import AdapterRegistry


@pytest.fixture
def shell_mock() -> MockAdapter:
    """Mock standing in for the shell adapter; records every command."""
    return MockAdapter(adapter_name="shell")


@pytest.fixture
def registry(shell_mock: MockAdapter) -> AdapterRegistry:
    """Registry whose shell commands hit the mock; plist edits are real."""
    reg = AdapterRegistry()
    reg.register(shell_mock)
    reg.register(PlistAdapter())
    return reg


@pytest.fixture
def ionic_project(tmp_path: Path) -> Path:
    """A minimal Ionic project with both native platforms already added."""
    (tmp_path / "ionic.config.json").write_text(
        json.dumps({"name": "MyApp", "integrations": {"capacitor": {}}})
    )
    (tmp_path / "capacitor.config.json").write_text(
        json.dumps({"appId": "com.example.myapp", "appName": "MyApp"})
    )
    (tmp_path / "android").mkdir()
    plist_dir = tmp_path / "ios" / "MyApp"
    plist_dir.mkdir(parents=True)
    with (plist_dir / "MyApp-Info.plist").open("wb") as fh:
        plistlib.dump({"CFBundleVersion": "1", "CFBundleShortVersionString": "1.0"}, fh)
    return tmp_path
