"""
Pytest configuration for qwen-cli-companion tests.
"""

import pytest
from unittest.mock import AsyncMock

from qwen_companion.context import CliContextManager
from qwen_companion.detector import CliDetector
from qwen_companion.types import DetectionResult
from qwen_companion.version_manager import CliVersionManager

# Note: With pytest-asyncio in auto mode, no event_loop fixture needed


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Give every test fresh process-wide instances and default settings."""
    for name in ("QWEN_CLI_PATH", "QWEN_CLI_PROBE_TIMEOUT", "QWEN_CLI_CACHE_TTL"):
        monkeypatch.delenv(name, raising=False)
    CliVersionManager.reset_instance()
    CliContextManager.reset_instance()
    yield
    CliVersionManager.reset_instance()
    CliContextManager.reset_instance()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def installed_result():
    """Detection result for a CLI new enough for session methods."""
    return DetectionResult(
        is_installed=True,
        version="1.0.0",
        cli_path="/usr/local/bin/qwen",
    )


@pytest.fixture
def mock_probe(installed_result):
    """Probe returning an installed 1.0.0 CLI."""
    return AsyncMock(return_value=installed_result)


@pytest.fixture
def detector(mock_probe, clock):
    return CliDetector(probe=mock_probe, clock=clock)


@pytest.fixture
def manager(detector, clock):
    return CliVersionManager(detector=detector, clock=clock)


@pytest.fixture
def mock_notifier():
    """Notifier whose user picks nothing unless a test says otherwise."""
    notifier = AsyncMock()
    notifier.show_choice = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def mock_terminal():
    return AsyncMock()
