"""
Default probe for the Qwen Code CLI.

Handles:
- Platform detection
- Locating the `qwen` binary (override, PATH, global npm bin dirs)
- Running `qwen --version` and parsing its output
"""

from __future__ import annotations

import asyncio
import logging
import os
import platform
import re
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from platformdirs import user_data_dir

from qwen_companion._core.version import CLI_BINARY_NAME
from qwen_companion.errors import CliProbeError
from qwen_companion.types import DetectionResult

logger = logging.getLogger(__name__)

CLI_PATH_ENV = "QWEN_CLI_PATH"
DEFAULT_PROBE_TIMEOUT = 10.0

_VERSION_PATTERN = re.compile(r"v?(\d+(?:\.\d+)+)")


def get_os_name() -> str:
    """
    Determine the operating system.

    Returns:
        One of "darwin", "linux", "windows", or the lowercased system name
    """
    system = platform.system().lower()
    if system.startswith(("cygwin", "msys", "mingw")):
        return "windows"
    return system


def get_executable_names(cli_name: str, os_name: str) -> List[str]:
    """Executable file names the CLI may be installed under."""
    if os_name == "windows":
        return [f"{cli_name}.cmd", f"{cli_name}.exe", cli_name]
    return [cli_name]


def get_candidate_dirs(os_name: str) -> List[Path]:
    """
    Global package manager bin directories that are often missing from PATH.

    Editors launched from a desktop session frequently inherit a PATH
    without the user's npm prefix, so these are searched as a fallback.
    """
    home = Path.home()
    if os_name == "windows":
        return [Path(user_data_dir(appname=None, appauthor=False, roaming=True)) / "npm"]

    dirs = [
        home / ".npm-global" / "bin",
        home / ".local" / "bin",
        Path("/usr/local/bin"),
    ]
    if os_name == "darwin":
        dirs.append(Path("/opt/homebrew/bin"))
    return dirs


def find_cli(
    cli_name: str = CLI_BINARY_NAME,
    cli_path: Optional[str] = None,
) -> Optional[Path]:
    """
    Locate the CLI binary.

    Search order: explicit path, QWEN_CLI_PATH, PATH, global npm bin dirs.

    Environment Variables:
        QWEN_CLI_PATH: Path to a local binary (skips the search)

    Args:
        cli_name: Executable name (default: "qwen")
        cli_path: Explicit path from configuration

    Returns:
        Path to the binary, or None if not found
    """
    override = cli_path or os.environ.get(CLI_PATH_ENV)
    if override:
        override_path = Path(override).expanduser()
        if override_path.is_file():
            logger.debug(f"Using CLI override: {override_path}")
            return override_path
        logger.warning(f"CLI path override set but file not found: {override_path}")

    on_path = shutil.which(cli_name)
    if on_path:
        return Path(on_path)

    os_name = get_os_name()
    names = get_executable_names(cli_name, os_name)
    for directory in get_candidate_dirs(os_name):
        for name in names:
            candidate = directory / name
            if candidate.is_file() and os.access(candidate, os.X_OK):
                logger.debug(f"Found CLI outside PATH at {candidate}")
                return candidate

    return None


def parse_version_output(output: str) -> Optional[str]:
    """
    Extract the first dotted version number from `--version` output.

    Args:
        output: Raw stdout, e.g. "0.2.4" or "qwen v0.2.4"

    Returns:
        Version string without a "v" prefix, or None if none found
    """
    match = _VERSION_PATTERN.search(output)
    return match.group(1) if match else None


async def run_version_command(
    binary_path: Path,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> Tuple[int, str, str]:
    """
    Run `<binary> --version`.

    Args:
        binary_path: Path to the CLI
        timeout: Seconds to wait before giving up

    Returns:
        Tuple of (return_code, stdout, stderr)

    Raises:
        CliProbeError: If the process cannot be started or times out
    """
    cmd = [str(binary_path), "--version"]
    # npm shims on Windows are batch files
    if binary_path.suffix.lower() in (".cmd", ".bat"):
        cmd = ["cmd", "/c", *cmd]

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CliProbeError(
            f"Failed to run {binary_path}: {e}", cli_path=str(binary_path)
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise CliProbeError(
            f"{binary_path} --version did not finish within {timeout}s",
            cli_path=str(binary_path),
        ) from e

    return (
        process.returncode if process.returncode is not None else -1,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


async def probe_cli(
    cli_name: str = CLI_BINARY_NAME,
    cli_path: Optional[str] = None,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> DetectionResult:
    """
    Probe the environment for the CLI and its version.

    Args:
        cli_name: Executable name (default: "qwen")
        cli_path: Explicit path from configuration
        timeout: Seconds to wait for `--version`

    Returns:
        DetectionResult for this probe

    Raises:
        CliProbeError: If the binary was found but could not be queried
    """
    binary = find_cli(cli_name, cli_path)
    if binary is None:
        return DetectionResult(
            is_installed=False,
            error=f"Qwen Code CLI not found: '{cli_name}' is not on PATH",
        )

    return_code, stdout, stderr = await run_version_command(binary, timeout)

    if return_code != 0:
        detail = stderr.strip() or f"exit code {return_code}"
        logger.debug(f"{binary} --version failed: {detail}")
        return DetectionResult(
            is_installed=True,
            cli_path=str(binary),
            error=f"Failed to read CLI version: {detail}",
        )

    version = parse_version_output(stdout)
    logger.debug(f"Detected Qwen Code CLI {version} at {binary}")
    return DetectionResult(
        is_installed=True,
        version=version,
        cli_path=str(binary),
        error=None if version else f"Unrecognized version output: {stdout.strip()!r}",
    )
