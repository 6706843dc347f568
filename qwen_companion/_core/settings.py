"""
Environment overrides shared by the detector and version manager.
"""

from __future__ import annotations

import os
from typing import Optional

from qwen_companion.errors import CompanionConfigError

# Seconds a detection or resolution stays fresh
DEFAULT_CACHE_TTL = 30.0

CACHE_TTL_ENV = "QWEN_CLI_CACHE_TTL"


def env_float(name: str, default: float) -> float:
    """
    Read a float from the environment.

    Raises:
        CompanionConfigError: If the variable is set but not a number
    """
    raw: Optional[str] = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise CompanionConfigError(f"{name} must be a number, got {raw!r}") from e


def cache_ttl_from_env() -> float:
    """Cache TTL from QWEN_CLI_CACHE_TTL, or the default."""
    return env_float(CACHE_TTL_ENV, DEFAULT_CACHE_TTL)
