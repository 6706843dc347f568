"""
Exception types for qwen-cli-companion.

Provides typed exceptions for:
- CLI probe failures
- Configuration errors
- Installation dispatch errors
"""

from __future__ import annotations

from typing import Optional


class QwenCompanionError(Exception):
    """Base exception for all qwen-cli-companion errors."""
    pass


# =============================================================================
# Probe Errors
# =============================================================================


class CliProbeError(QwenCompanionError):
    """
    Raised when the CLI cannot be located or queried.

    This includes:
    - `qwen --version` timing out
    - OS errors while launching the binary

    Version resolution never lets this escape to its callers: the
    version manager degrades to a "not installed, unsupported" snapshot.
    """

    def __init__(self, message: str, cli_path: Optional[str] = None):
        self.cli_path = cli_path
        super().__init__(message)


class CliNotInstalledError(CliProbeError):
    """
    Raised by helpers that need an installed CLI when none was found.

    Example:
        try:
            info = await require_cli()
        except CliNotInstalledError as e:
            logger.warning(f"Qwen Code CLI missing: {e}")
    """
    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class CompanionConfigError(QwenCompanionError):
    """
    Raised when detector or version manager configuration is invalid.

    This includes:
    - Non-positive probe timeouts
    - Negative cache TTLs
    - Unparsable environment overrides
    """
    pass


# =============================================================================
# Installer Errors
# =============================================================================


class InstallationError(QwenCompanionError):
    """
    Raised when the install command could not be dispatched.

    Only dispatch is covered; whether the install itself succeeded is
    confirmed by a later detection pass.
    """

    def __init__(self, message: str, command_line: Optional[str] = None):
        self.command_line = command_line
        super().__init__(message)
