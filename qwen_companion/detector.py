"""
Qwen Code CLI detection.

Wraps a probe (by default `qwen_companion._core.probe.probe_cli`) and caches
its result so repeated checks within the cache window do not relaunch the
CLI.

Usage:
    detector = CliDetector()
    result = await detector.detect()
    if not result.is_installed:
        instructions = CliDetector.get_installation_instructions()
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

from qwen_companion._core.probe import CLI_PATH_ENV, DEFAULT_PROBE_TIMEOUT, probe_cli
from qwen_companion._core.settings import DEFAULT_CACHE_TTL, cache_ttl_from_env, env_float
from qwen_companion._core.version import (
    CLI_BINARY_NAME,
    DOCUMENTATION_URL,
    get_install_command,
)
from qwen_companion.errors import CompanionConfigError
from qwen_companion.types import DetectionResult, InstallationInstructions

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[DetectionResult]]

PROBE_TIMEOUT_ENV = "QWEN_CLI_PROBE_TIMEOUT"


@dataclass
class DetectorConfig:
    """
    Configuration for CliDetector.

    Attributes:
        cli_name: Executable name to look for
        cli_path: Explicit binary path (skips the search)
        probe_timeout: Seconds to wait for `qwen --version`
        cache_ttl: Seconds a detection result stays fresh (0 disables caching)
    """
    cli_name: str = CLI_BINARY_NAME
    cli_path: Optional[str] = None
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    cache_ttl: float = DEFAULT_CACHE_TTL

    def __post_init__(self) -> None:
        """Validate configuration on creation."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.cli_name:
            raise CompanionConfigError("cli_name must not be empty")
        if self.probe_timeout <= 0:
            raise CompanionConfigError(
                f"probe_timeout must be positive, got {self.probe_timeout}"
            )
        if self.cache_ttl < 0:
            raise CompanionConfigError(
                f"cache_ttl must not be negative, got {self.cache_ttl}"
            )

    @classmethod
    def from_env(cls) -> "DetectorConfig":
        """
        Build configuration from environment variables.

        Environment Variables:
            QWEN_CLI_PATH: Path to the CLI binary
            QWEN_CLI_PROBE_TIMEOUT: Seconds to wait for `qwen --version`
            QWEN_CLI_CACHE_TTL: Seconds a detection result stays fresh
        """
        return cls(
            cli_path=os.environ.get(CLI_PATH_ENV) or None,
            probe_timeout=env_float(PROBE_TIMEOUT_ENV, DEFAULT_PROBE_TIMEOUT),
            cache_ttl=cache_ttl_from_env(),
        )


class CliDetector:
    """
    Detects the Qwen Code CLI and caches the result.

    The probe is injectable; failures it raises propagate to the caller.
    Callers that must not fail (the version manager) recover from them.
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        probe: Optional[Probe] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or DetectorConfig.from_env()
        self._probe = probe or self._default_probe
        self._clock = clock
        self._cached: Optional[Tuple[DetectionResult, float]] = None
        self._generation = 0
        self._issued = 0
        self._written = 0

    async def _default_probe(self) -> DetectionResult:
        return await probe_cli(
            cli_name=self.config.cli_name,
            cli_path=self.config.cli_path,
            timeout=self.config.probe_timeout,
        )

    async def detect(self, force_refresh: bool = False) -> DetectionResult:
        """
        Detect the CLI, reusing a fresh cached result when possible.

        Args:
            force_refresh: Skip the cache and probe again

        Returns:
            DetectionResult from the probe

        Raises:
            Exception: Whatever the probe raises (e.g. CliProbeError)
        """
        if not force_refresh and self._cached is not None:
            result, timestamp = self._cached
            if self._clock() - timestamp < self.config.cache_ttl:
                logger.debug("Using cached CLI detection result")
                return result

        generation = self._generation
        self._issued += 1
        sequence = self._issued
        result = await self._probe()
        # Drop the result if clear_cache() ran or a later-started probe was cached
        if generation == self._generation and sequence > self._written:
            self._cached = (result, self._clock())
            self._written = sequence
        logger.debug(
            f"CLI detection: installed={result.is_installed}, "
            f"version={result.version}, path={result.cli_path}"
        )
        return result

    def clear_cache(self) -> None:
        """Drop the cached detection result; the next detect() probes."""
        self._cached = None
        self._generation += 1

    @staticmethod
    def get_installation_instructions() -> InstallationInstructions:
        """Installation instructions shown when the CLI is missing."""
        return InstallationInstructions(
            title="Qwen Code CLI is not installed",
            steps=(
                "Install Node.js 20 or later from https://nodejs.org",
                f"Run: {get_install_command()}",
                "Verify the installation with: qwen --version",
                "Reload the editor window",
            ),
            documentation_url=DOCUMENTATION_URL,
        )
