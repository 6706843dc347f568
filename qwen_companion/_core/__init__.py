"""
Core CLI inspection for qwen-cli-companion.

This module handles:
- Locating and probing the `qwen` binary
- Version parsing, comparison and feature gating
- Environment overrides
"""

from qwen_companion._core.version import (
    COMPANION_VERSION,
    MIN_CLI_VERSION_FOR_SESSION_METHODS,
    CLI_PACKAGE_NAME,
    DOCUMENTATION_URL,
    parse_version_components,
    compare_versions,
    is_version_supported,
    get_feature_flags,
    get_install_command,
)
from qwen_companion._core.probe import (
    find_cli,
    parse_version_output,
    probe_cli,
)

__all__ = [
    # Version
    "COMPANION_VERSION",
    "MIN_CLI_VERSION_FOR_SESSION_METHODS",
    "CLI_PACKAGE_NAME",
    "DOCUMENTATION_URL",
    "parse_version_components",
    "compare_versions",
    "is_version_supported",
    "get_feature_flags",
    "get_install_command",
    # Probe
    "find_cli",
    "parse_version_output",
    "probe_cli",
]
