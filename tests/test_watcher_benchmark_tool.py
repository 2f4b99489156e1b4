"""
Tests for the standalone watcher benchmark tool (`tools/watcher_benchmark.py`).

The tool is executed as a subprocess, the way it is used from the command
line, with a short duration so every modification is made and detected.
"""

import subprocess
import sys
from pathlib import Path

import pytest

TOOL = Path(__file__).parent.parent / "tools" / "watcher_benchmark.py"


@pytest.mark.integration
@pytest.mark.slow
class TestWatcherBenchmarkTool:
    """Test cases for running the benchmark tool."""

    def test_short_run_detects_every_modification(self):
        result = subprocess.run(
            [
                sys.executable, str(TOOL),
                "--duration", "1.5",
                "--files", "3",
                "--size", "256",
                "--modify-every", "0.3",
                "--tick", "0.05",
            ],
            capture_output=True,
            text=True,
            timeout=60,
        )

        assert result.returncode == 0, result.stdout + result.stderr
        assert "All modifications detected exactly once" in result.stdout
        assert "created events: 0" in result.stdout

    def test_rejects_invalid_arguments(self):
        result = subprocess.run(
            [sys.executable, str(TOOL), "--files", "0", "--duration", "1"],
            capture_output=True,
            text=True,
            timeout=60,
        )
        assert result.returncode == 2
