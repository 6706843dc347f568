"""
Type definitions for qwen-cli-companion.

Defines enums and dataclasses used across the package for:
- CLI detection results and installation instructions
- Version-derived feature flags and resolved version snapshots
- Installer prompt choices and interaction states
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# =============================================================================
# Detection
# =============================================================================


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome of a single probe for the CLI.

    A new probe always produces a new value; results are never mutated.
    """
    is_installed: bool
    version: Optional[str] = None
    cli_path: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isInstalled": self.is_installed,
            "cliPath": self.cli_path,
            "version": self.version,
            "error": self.error,
        }


@dataclass(frozen=True)
class InstallationInstructions:
    """Human-readable steps for installing the CLI."""
    title: str
    steps: Tuple[str, ...]
    documentation_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "steps": list(self.steps),
            "documentationUrl": self.documentation_url,
        }


# =============================================================================
# Version Resolution
# =============================================================================


@dataclass(frozen=True)
class FeatureFlags:
    """
    Capabilities unlocked by a CLI version.

    Always derived from a version string; all flags default to off.
    """
    supports_session_list: bool = False
    supports_session_load: bool = False
    supports_session_save: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "supportsSessionList": self.supports_session_list,
            "supportsSessionLoad": self.supports_session_load,
            "supportsSessionSave": self.supports_session_save,
        }


@dataclass(frozen=True)
class VersionInfo:
    """
    Resolved CLI snapshot: version, support status and feature flags.

    Attributes:
        version: Version reported by the CLI (None if unknown)
        is_supported: Whether the version meets the session-methods minimum
        features: Feature flags derived from the version
        detection_result: The probe result this snapshot was built from
    """
    version: Optional[str]
    is_supported: bool
    features: FeatureFlags = field(default_factory=FeatureFlags)
    detection_result: DetectionResult = field(
        default_factory=lambda: DetectionResult(is_installed=False)
    )

    @classmethod
    def unavailable(cls) -> "VersionInfo":
        """Snapshot used when the CLI could not be probed at all."""
        return cls(
            version=None,
            is_supported=False,
            features=FeatureFlags(),
            detection_result=DetectionResult(is_installed=False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "isSupported": self.is_supported,
            "features": self.features.to_dict(),
            "detectionResult": self.detection_result.to_dict(),
        }


# =============================================================================
# Installer
# =============================================================================


class InstallChoice(str, Enum):
    """
    Options offered when the CLI is missing.

    Values are the labels shown to the user, in display order.
    """
    INSTALL_NOW = "Install Now"
    VIEW_DOCUMENTATION = "View Documentation"
    REMIND_ME_LATER = "Remind Me Later"


class InstallerState(str, Enum):
    """
    States of a single installer interaction.

    IDLE -> CHECKING -> INSTALLED | NOT_INSTALLED
    NOT_INSTALLED -> PROMPTING -> INSTALLING | OPENING_DOCS | DISMISSED
    """
    IDLE = "idle"
    CHECKING = "checking"
    INSTALLED = "installed"
    NOT_INSTALLED = "not_installed"
    PROMPTING = "prompting"
    INSTALLING = "installing"
    OPENING_DOCS = "opening_docs"
    DISMISSED = "dismissed"
