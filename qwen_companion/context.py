"""
Published CLI capability snapshot.

The version manager resolves asynchronously; call sites that need a quick
synchronous answer ("can I call session/list?") read the last published
snapshot from here instead of probing again.

Usage:
    info = await refresh_cli_context()
    ...
    if CliContextManager.get_instance().supports_session_list():
        ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import ClassVar, Optional

from qwen_companion.types import FeatureFlags, VersionInfo
from qwen_companion.version_manager import CliVersionManager

logger = logging.getLogger(__name__)


class CliContextManager:
    """
    Holds the most recently published VersionInfo.

    Performs no probing and no expiry; freshness is the version manager's
    job. With no snapshot every query returns its "not available" default.
    """

    _instance: ClassVar[Optional["CliContextManager"]] = None

    def __init__(self) -> None:
        self._current: Optional[VersionInfo] = None

    @classmethod
    def get_instance(cls) -> "CliContextManager":
        """Get or lazily create the process-wide instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide instance (for testing)."""
        cls._instance = None

    def set_current_version_info(self, info: Optional[VersionInfo]) -> None:
        """Replace the published snapshot; None behaves like never set."""
        self._current = info
        if info is not None:
            logger.debug(
                f"Published CLI context: version={info.version}, "
                f"supported={info.is_supported}"
            )

    def get_current_version_info(self) -> Optional[VersionInfo]:
        return self._current

    def get_current_features(self) -> FeatureFlags:
        if self._current is None:
            return FeatureFlags()
        return self._current.features

    def supports_session_list(self) -> bool:
        return self.get_current_features().supports_session_list

    def supports_session_load(self) -> bool:
        return self.get_current_features().supports_session_load

    def supports_session_save(self) -> bool:
        return self.get_current_features().supports_session_save

    def is_cli_installed(self) -> bool:
        if self._current is None:
            return False
        return self._current.detection_result.is_installed

    def get_cli_version(self) -> Optional[str]:
        if self._current is None:
            return None
        return self._current.version

    def is_cli_version_supported(self) -> bool:
        if self._current is None:
            return False
        return self._current.is_supported

    def clear_context(self) -> None:
        """Return to the "no snapshot" state."""
        self._current = None


async def refresh_cli_context(
    force_refresh: bool = False,
    manager: Optional[CliVersionManager] = None,
    context: Optional[CliContextManager] = None,
) -> VersionInfo:
    """
    Resolve the CLI version and publish it to the context store.

    Args:
        force_refresh: Probe the CLI even if a cached result is fresh
        manager: Version manager (default: process-wide instance)
        context: Context store (default: process-wide instance)

    Returns:
        The published VersionInfo
    """
    effective_manager = manager or CliVersionManager.get_instance()
    effective_context = context or CliContextManager.get_instance()

    info = await effective_manager.resolve(force_refresh=force_refresh)
    effective_context.set_current_version_info(info)
    return info


def refresh_cli_context_sync(
    force_refresh: bool = False,
    manager: Optional[CliVersionManager] = None,
    context: Optional[CliContextManager] = None,
) -> VersionInfo:
    """
    Sync wrapper for refresh_cli_context.

    Must not be called from a running event loop; await
    refresh_cli_context() there instead.

    Raises:
        RuntimeError: If called while an event loop is running
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(refresh_cli_context(force_refresh, manager, context))
    raise RuntimeError(
        "refresh_cli_context_sync() cannot run inside an event loop; "
        "use 'await refresh_cli_context()' instead"
    )

