"""
Pytest configuration and shared fixtures for the peakwatch test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the peakwatch project.
"""

import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List
from unittest.mock import Mock, patch

import pytest

# Add src to Python path for testing
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from peakwatch.models import WatchdogConfig  # noqa: E402
from peakwatch.validation import TargetVanishedError  # noqa: E402

FAKE_ALLOCATOR_PATH = Path(__file__).parent / "fake_allocator.py"


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
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
def sample_config_data():
    """Sample configuration data, as parsed from config.toml."""
    return {
        "watchdog": {
            "sampling": {
                "interval_seconds": 0.02,
                "metric_type": "rss_psutil",
            },
            "handshake": {
                "timeout_seconds": 3.0,
                "poll_interval_seconds": 0.005,
                "artifact_dir": "",
            },
            "teardown": {
                "report_timeout_seconds": 1.5,
                "kill_timeout_seconds": 1.0,
            },
            "workload": {
                "collect_garbage": True,
                "trace_allocations": False,
            },
        },
        "logging": {"level": "DEBUG"},
    }


@pytest.fixture
def fast_config(temp_dir):
    """
    A WatchdogConfig suited to tests that spawn real sampler processes.

    The handshake timeout is generous because interpreter startup on a
    loaded CI machine can be slow.
    """
    return WatchdogConfig(
        interval_seconds=0.01,
        metric_type="rss_psutil",
        handshake_timeout=15.0,
        handshake_poll_interval=0.005,
        artifact_dir=temp_dir,
        report_timeout=5.0,
        kill_timeout=2.0,
        collect_garbage=True,
        trace_allocations=False,
    )


@pytest.fixture
def subprocess_env():
    """Environment that lets a child interpreter import peakwatch from src/."""
    env = os.environ.copy()
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(SRC_DIR) + (os.pathsep + existing if existing else "")
    return env


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_psutil():
    """Mock psutil.Process for testing without touching real processes."""
    with patch("psutil.Process") as mock_process_class:
        mock_process = Mock()
        mock_process.pid = 12345
        mock_process.name.return_value = "target"
        mock_process.memory_info.return_value = Mock(rss=1024 * 1024, vms=2048 * 1024)
        mock_process.is_running.return_value = True

        mock_process_class.return_value = mock_process

        yield {
            "Process": mock_process_class,
            "process_instance": mock_process,
        }


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary config.toml for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {
        "config": config_file,
        "dir": temp_dir,
    }


# ============================================================================
# Test Utilities
# ============================================================================


class ScriptedProbe:
    """
    Probe double that replays a list of readings.

    After the readings run out it either raises TargetVanishedError
    (``vanish_at_end=True``) or keeps returning the last value.
    """

    def __init__(self, readings: List[int], vanish_at_end: bool = True, on_read=None):
        self.pid = 4242
        self.readings = list(readings)
        self.vanish_at_end = vanish_at_end
        self.on_read = on_read
        self.reads = 0
        self.resolved = False

    def resolve(self) -> None:
        self.resolved = True

    def read_kb(self) -> int:
        if self.reads >= len(self.readings):
            if self.vanish_at_end:
                raise TargetVanishedError(self.pid)
            value = self.readings[-1]
        else:
            value = self.readings[self.reads]
        self.reads += 1
        if self.on_read is not None:
            self.on_read(self.reads)
        return value

    def get_metric_field(self) -> str:
        return "RSS_KB"


class TestUtils:
    """Utility functions for testing."""

    ScriptedProbe = ScriptedProbe

    @staticmethod
    def start_fake_allocator(*args: str, env=None) -> subprocess.Popen:
        """
        Start tests/fake_allocator.py and wait for its 'ready' line.
        """
        proc = subprocess.Popen(
            [sys.executable, str(FAKE_ALLOCATOR_PATH), *args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            text=True,
            env=env,
        )
        line = proc.stdout.readline().strip()
        assert line == "ready", f"fake allocator did not start: {line!r}"
        return proc

    @staticmethod
    def wait_for_line(proc: subprocess.Popen, expected: str) -> None:
        line = proc.stdout.readline().strip()
        assert line == expected, f"expected {expected!r}, got {line!r}"

    @staticmethod
    def stop_process(proc: subprocess.Popen) -> None:
        if proc.poll() is None:
            proc.kill()
        proc.wait(timeout=5)
        for stream in (proc.stdin, proc.stdout):
            if stream is not None:
                stream.close()

    @staticmethod
    def dead_pid() -> int:
        """Return the pid of a process that has already exited and been reaped."""
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        proc.wait()
        return proc.pid


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test(monkeypatch):
    """Isolate every test from the user's configuration and from each other."""
    from peakwatch.config import clear_config_cache, set_config_path

    monkeypatch.delenv("PEAKWATCH_CONFIG", raising=False)

    yield

    clear_config_cache()
    set_config_path(None)
