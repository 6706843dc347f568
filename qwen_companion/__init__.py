"""
qwen-cli-companion: Qwen Code CLI detection and capability gating.

This package provides:
- CliDetector for locating the `qwen` CLI and reading its version
- CliVersionManager for turning that version into cached feature flags
- CliContextManager for synchronous reads of the last published snapshot
- CliInstaller for the "CLI missing" prompt and install dispatch

Installation:
    pip install qwen-cli-companion

Quickstart:
    from qwen_companion import CliContextManager, refresh_cli_context

    info = await refresh_cli_context()
    print(f"qwen {info.version} supported={info.is_supported}")

    # Later, anywhere, without awaiting:
    if CliContextManager.get_instance().supports_session_load():
        ...
"""

from qwen_companion.types import (
    DetectionResult,
    FeatureFlags,
    VersionInfo,
    InstallationInstructions,
    InstallChoice,
    InstallerState,
)
from qwen_companion.errors import (
    QwenCompanionError,
    CliProbeError,
    CliNotInstalledError,
    CompanionConfigError,
    InstallationError,
)
from qwen_companion.detector import (
    CliDetector,
    DetectorConfig,
)
from qwen_companion.version_manager import (
    CliVersionManager,
    VersionManagerConfig,
    require_cli,
)
from qwen_companion.context import (
    CliContextManager,
    refresh_cli_context,
    refresh_cli_context_sync,
)
from qwen_companion.installer import (
    CliInstaller,
    Notifier,
    Terminal,
)
from qwen_companion._core.version import (
    COMPANION_VERSION,
    MIN_CLI_VERSION_FOR_SESSION_METHODS,
    CLI_PACKAGE_NAME,
    DOCUMENTATION_URL,
)

__version__ = COMPANION_VERSION

__all__ = [
    # Version
    "__version__",
    "COMPANION_VERSION",
    "MIN_CLI_VERSION_FOR_SESSION_METHODS",
    "CLI_PACKAGE_NAME",
    "DOCUMENTATION_URL",
    # Types
    "DetectionResult",
    "FeatureFlags",
    "VersionInfo",
    "InstallationInstructions",
    "InstallChoice",
    "InstallerState",
    # Errors
    "QwenCompanionError",
    "CliProbeError",
    "CliNotInstalledError",
    "CompanionConfigError",
    "InstallationError",
    # Detection
    "CliDetector",
    "DetectorConfig",
    # Version resolution
    "CliVersionManager",
    "VersionManagerConfig",
    "require_cli",
    # Context
    "CliContextManager",
    "refresh_cli_context",
    "refresh_cli_context_sync",
    # Installer
    "CliInstaller",
    "Notifier",
    "Terminal",
]
