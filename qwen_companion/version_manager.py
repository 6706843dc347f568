"""
Version-gated capability resolution for the Qwen Code CLI.

Resolves the installed CLI version into a VersionInfo snapshot (support
status plus feature flags) and caches it for a short window.

Usage:
    # Process-wide instance
    manager = CliVersionManager.get_instance()
    info = await manager.resolve()
    if info.features.supports_session_list:
        ...

    # Host-owned instance with an injected detector
    manager = CliVersionManager(detector=CliDetector(DetectorConfig(cli_path="/opt/qwen")))
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, Tuple

from qwen_companion._core import version as _version
from qwen_companion._core.settings import DEFAULT_CACHE_TTL, cache_ttl_from_env
from qwen_companion.detector import CliDetector
from qwen_companion.errors import CliNotInstalledError, CompanionConfigError
from qwen_companion.types import DetectionResult, FeatureFlags, VersionInfo

logger = logging.getLogger(__name__)


@dataclass
class VersionManagerConfig:
    """
    Configuration for CliVersionManager.

    Attributes:
        cache_ttl: Seconds a resolved VersionInfo stays fresh (0 disables caching)
    """
    cache_ttl: float = DEFAULT_CACHE_TTL

    def __post_init__(self) -> None:
        """Validate configuration on creation."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if self.cache_ttl < 0:
            raise CompanionConfigError(
                f"cache_ttl must not be negative, got {self.cache_ttl}"
            )

    @classmethod
    def from_env(cls) -> "VersionManagerConfig":
        """Build configuration from QWEN_CLI_CACHE_TTL."""
        return cls(cache_ttl=cache_ttl_from_env())


class CliVersionManager:
    """
    Resolves and caches the CLI version and the features it unlocks.

    Detection failures never propagate: they resolve to
    VersionInfo.unavailable(). Concurrent cache misses within one event
    loop share a single probe; force_refresh always probes again.
    """

    _instance: ClassVar[Optional["CliVersionManager"]] = None

    def __init__(
        self,
        detector: Optional[CliDetector] = None,
        config: Optional[VersionManagerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.detector = detector or CliDetector()
        self.config = config or VersionManagerConfig.from_env()
        self._clock = clock
        # (value, timestamp), swapped as a whole
        self._cache: Optional[Tuple[VersionInfo, float]] = None
        self._generation = 0
        self._issued = 0
        self._written = 0
        self._pending: Optional["asyncio.Task[VersionInfo]"] = None

    @classmethod
    def get_instance(cls) -> "CliVersionManager":
        """Get or lazily create the process-wide instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide instance (for testing)."""
        cls._instance = None

    # -------------------------------------------------------------------------
    # Pure helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def is_version_supported(version: Optional[str], minimum: str) -> bool:
        """True if version >= minimum; False if absent or malformed."""
        return _version.is_version_supported(version, minimum)

    @staticmethod
    def get_feature_flags(version: Optional[str]) -> FeatureFlags:
        """Feature flags unlocked by a CLI version."""
        return _version.get_feature_flags(version)

    @classmethod
    def build_version_info(cls, detection_result: DetectionResult) -> VersionInfo:
        """Assemble a VersionInfo snapshot from a detection result."""
        version = detection_result.version
        return VersionInfo(
            version=version,
            is_supported=cls.is_version_supported(
                version, _version.MIN_CLI_VERSION_FOR_SESSION_METHODS
            ),
            features=cls.get_feature_flags(version),
            detection_result=detection_result,
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _fresh_cached(self) -> Optional[VersionInfo]:
        if self._cache is None:
            return None
        value, timestamp = self._cache
        if self._clock() - timestamp < self.config.cache_ttl:
            return value
        return None

    async def resolve(self, force_refresh: bool = False) -> VersionInfo:
        """
        Resolve the CLI version and feature flags.

        Args:
            force_refresh: Ignore the cache and probe the CLI again

        Returns:
            VersionInfo snapshot (never raises on detection failure)
        """
        if not force_refresh:
            cached = self._fresh_cached()
            if cached is not None:
                logger.debug("Using cached CLI version info")
                return cached

            pending = self._pending
            if (
                pending is not None
                and not pending.done()
                and pending.get_loop() is asyncio.get_running_loop()
            ):
                logger.debug("Joining in-flight CLI detection")
                return await asyncio.shield(pending)

        self._issued += 1
        task = asyncio.get_running_loop().create_task(
            self._detect_and_cache(force_refresh, self._generation, self._issued)
        )
        self._pending = task
        return await asyncio.shield(task)

    async def _detect_and_cache(
        self, force_refresh: bool, generation: int, sequence: int
    ) -> VersionInfo:
        try:
            detection_result = await self.detector.detect(force_refresh=force_refresh)
        except Exception as e:
            logger.warning(f"CLI detection failed, treating CLI as unavailable: {e}")
            info = VersionInfo.unavailable()
        else:
            info = self.build_version_info(detection_result)
            if generation != self._generation:
                # The detector may have cached this result after the clear
                logger.debug("Cache cleared during detection; not caching result")
                self.detector.clear_cache()
            elif sequence < self._written:
                logger.debug("Newer CLI detection already cached; dropping stale result")
            else:
                self._cache = (info, self._clock())
                self._written = sequence
        return info

    def clear_cache(self) -> None:
        """
        Drop the cached VersionInfo; the next resolve() probes the CLI.

        The detector's own cache is cleared too, and a detection already in
        flight will not repopulate the cache.
        """
        self._cache = None
        self._generation += 1
        self._pending = None
        self.detector.clear_cache()

    # -------------------------------------------------------------------------
    # Feature shortcuts
    # -------------------------------------------------------------------------

    async def supports_session_list(self) -> bool:
        """Whether the installed CLI supports session/list."""
        return (await self.resolve()).features.supports_session_list

    async def supports_session_load(self) -> bool:
        """Whether the installed CLI supports session/load."""
        return (await self.resolve()).features.supports_session_load

    async def supports_session_save(self) -> bool:
        """Whether the installed CLI supports session/save."""
        return (await self.resolve()).features.supports_session_save


async def require_cli(
    manager: Optional[CliVersionManager] = None,
    force_refresh: bool = False,
) -> VersionInfo:
    """
    Resolve the CLI version, failing if the CLI is not installed.

    Args:
        manager: Version manager (default: process-wide instance)
        force_refresh: Probe the CLI even if a cached result is fresh

    Returns:
        VersionInfo for the installed CLI

    Raises:
        CliNotInstalledError: If the CLI is missing or could not be probed
    """
    effective_manager = manager or CliVersionManager.get_instance()
    info = await effective_manager.resolve(force_refresh=force_refresh)
    if not info.detection_result.is_installed:
        detail = info.detection_result.error or "Qwen Code CLI is not installed"
        raise CliNotInstalledError(
            f"{detail}. Install it with: {_version.get_install_command()}"
        )
    return info
