"""
Version constants and capability gating for the Qwen Code CLI.

qwen-cli-companion versions independently from the CLI it inspects:
- COMPANION_VERSION: User-facing package version
- MIN_CLI_VERSION_FOR_SESSION_METHODS: First CLI release with session/list and session/load
- CLI_PACKAGE_NAME: npm package the CLI is published under
"""

from __future__ import annotations

from itertools import zip_longest
from typing import Optional, Tuple

from qwen_companion.types import FeatureFlags

# qwen-cli-companion version (user-facing)
COMPANION_VERSION = "0.1.0"

# session/list and session/load arrived in this CLI release (inclusive)
MIN_CLI_VERSION_FOR_SESSION_METHODS = "0.2.4"

# session/save has not shipped in any CLI release yet
SESSION_SAVE_ENABLED = False

# npm distribution of the CLI
CLI_PACKAGE_NAME = "@qwen-code/qwen-code"
CLI_BINARY_NAME = "qwen"
DOCUMENTATION_URL = "https://github.com/QwenLM/qwen-code#installation"


def get_install_command() -> str:
    """Command line that installs (or upgrades) the CLI globally via npm."""
    return f"npm install -g {CLI_PACKAGE_NAME}@latest"


def parse_version_components(version: str) -> Tuple[int, ...]:
    """
    Split a dotted version string into integer components.
    
    Only plain dotted non-negative integers are accepted ("0.2.4", "1.0",
    "0.2.4.1"). Pre-release or build suffixes are not understood.
    
    Args:
        version: Version string like "0.2.4"
        
    Returns:
        Tuple of integer components
        
    Raises:
        ValueError: If any component is not a non-negative integer
    """
    parts = version.split(".")
    components = []
    for part in parts:
        # int() would accept "+1", " 1" and "1_0"
        if not part.isascii() or not part.isdigit():
            raise ValueError(f"Invalid version string: {version!r}")
        components.append(int(part))
    return tuple(components)


def compare_versions(left: str, right: str) -> int:
    """
    Compare two dotted versions, zero-padding the shorter one.
    
    Returns:
        -1 if left < right, 0 if equal, 1 if left > right
        
    Raises:
        ValueError: If either version is malformed
    """
    for a, b in zip_longest(
        parse_version_components(left),
        parse_version_components(right),
        fillvalue=0,
    ):
        if a != b:
            return 1 if a > b else -1
    return 0


def is_version_supported(version: Optional[str], minimum: str) -> bool:
    """
    Check whether a CLI version meets a minimum (inclusive).
    
    Absent or malformed versions are treated as unsupported rather than
    raising.
    
    Args:
        version: Version reported by the CLI, or None if unknown
        minimum: Minimum required version (e.g., "0.2.4")
        
    Returns:
        True if version >= minimum, False otherwise
    """
    if not version:
        return False
    try:
        return compare_versions(version, minimum) >= 0
    except ValueError:
        return False


def get_feature_flags(version: Optional[str]) -> FeatureFlags:
    """
    Derive the feature flags a CLI version supports.
    
    Args:
        version: Version reported by the CLI, or None if unknown
        
    Returns:
        FeatureFlags for that version
    """
    session_methods = is_version_supported(
        version, MIN_CLI_VERSION_FOR_SESSION_METHODS
    )
    return FeatureFlags(
        supports_session_list=session_methods,
        supports_session_load=session_methods,
        supports_session_save=SESSION_SAVE_ENABLED,
    )
