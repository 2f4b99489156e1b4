"""
Pytest configuration and shared fixtures for the cfgswitch test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the cfgswitch project.
"""

import json
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict

import pytest
import toml

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cfgswitch.config import SettingsManager
from cfgswitch.monitoring import FileWatcher
from cfgswitch.profiles import ProfileStore


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def live_config() -> Dict[str, Any]:
    """Live configuration used by most profile tests."""
    return {
        "model": "opus",
        "theme": "dark",
        "env": {"API_URL": "https://example.invalid", "TIMEOUT": 30},
        "permissions": {"allow": ["Read", "Write"]},
    }


@pytest.fixture
def profile_contents(live_config) -> Dict[str, Dict[str, Any]]:
    """Profile contents keyed by profile name."""
    partial = dict(live_config, model="sonnet")
    other = dict(live_config, theme="light")
    return {
        "home": partial,
        "work": dict(live_config),
        "zeta": other,
    }


@pytest.fixture
def config_dir(temp_dir, live_config, profile_contents):
    """Configuration directory with a live file and three profiles."""
    directory = temp_dir / "claude"
    directory.mkdir()
    (directory / "settings.json").write_text(json.dumps(live_config, indent=2), encoding="utf-8")
    for name, content in profile_contents.items():
        (directory / f"{name}.settings.json").write_text(
            json.dumps(content, indent=2), encoding="utf-8"
        )
    # Files that must not be picked up as profiles.
    (directory / "notes.txt").write_text("not a profile", encoding="utf-8")
    (directory / ".settings.json").write_text("{}", encoding="utf-8")
    return directory


@pytest.fixture
def watcher():
    """Watcher with a short interval; stopped after the test."""
    fw = FileWatcher(interval_minutes=1, max_scan_errors=3, cache_size_limit=100)
    yield fw
    fw.stop()


@pytest.fixture
def store(config_dir, watcher):
    """Scanned profile store wired to the watcher fixture."""
    profile_store = ProfileStore(config_dir, watcher=watcher)
    profile_store.scan()
    return profile_store


@pytest.fixture
def settings_file(temp_dir):
    """Write a settings file and return its path."""

    def _write(data: Dict[str, Any]) -> Path:
        path = temp_dir / "cfgswitch" / "settings.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            toml.dump(data, f)
        return path

    return _write


@pytest.fixture
def settings_manager(temp_dir):
    """Loaded settings manager backed by a file in the temp directory."""
    manager = SettingsManager(temp_dir / "cfgswitch" / "settings.toml")
    manager.load()
    return manager


# ============================================================================
# Test Utilities
# ============================================================================


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def write_json(path: Path, data: Any) -> str:
        text = json.dumps(data, indent=2)
        path.write_text(text, encoding="utf-8")
        return text

    @staticmethod
    def bump_mtime(path: Path, delta_ns: int = 2_000_000_000) -> None:
        """Move the file's modification time forward without touching its bytes."""
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + delta_ns))


@pytest.fixture
def test_utils():
    """Provide test utilities."""
    return TestUtils
