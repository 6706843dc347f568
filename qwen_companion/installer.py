"""
Install prompt flow for the Qwen Code CLI.

Drives check -> notify -> (install | open docs | dismiss) for one user
interaction. The UI and terminal are supplied by the host:

    class EditorNotifier:
        async def show_choice(self, message, options): ...
        async def open_link(self, url): ...
        async def show_progress(self, message): ...

    installer = CliInstaller(notifier=EditorNotifier(), terminal=EditorTerminal())
    await installer.check_installation(webview.post_message)
    if installer.state == InstallerState.NOT_INSTALLED:
        await installer.prompt_installation()

The installer only dispatches the install command; run another detection
afterwards to confirm the result.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

from qwen_companion._core.version import DOCUMENTATION_URL, get_install_command
from qwen_companion.detector import CliDetector
from qwen_companion.errors import CliProbeError, InstallationError
from qwen_companion.types import InstallChoice, InstallerState

logger = logging.getLogger(__name__)

DETECTION_MESSAGE_TYPE = "cliDetectionResult"

PROMPT_MESSAGE = (
    "Qwen Code CLI is not installed. You can browse conversation history, "
    "but cannot send new messages."
)

Publish = Callable[[Dict[str, Any]], None]


class Notifier(Protocol):
    """User-facing notification surface."""

    async def show_choice(self, message: str, options: Sequence[str]) -> Optional[str]:
        """Show a message with choices; return the picked label or None."""
        ...

    async def open_link(self, url: str) -> None:
        ...

    async def show_progress(self, message: str) -> None:
        ...


class Terminal(Protocol):
    """Launches commands in a user-visible terminal."""

    async def run_install_command(self, command_line: str) -> None:
        ...


class CliInstaller:
    """
    Runs the check/prompt/install interaction.

    Attributes:
        state: Current InstallerState
        last_error: Last failure swallowed or raised by this installer
    """

    def __init__(
        self,
        notifier: Notifier,
        terminal: Terminal,
        detector: Optional[CliDetector] = None,
    ) -> None:
        self.notifier = notifier
        self.terminal = terminal
        self.detector = detector or CliDetector()
        self.state = InstallerState.IDLE
        self.last_error: Optional[Exception] = None

    async def check_installation(
        self,
        publish: Publish,
        force_refresh: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Detect the CLI and publish the result to the UI transport.

        A failed detection is logged and not published.

        Args:
            publish: Transport callback receiving the detection message
            force_refresh: Skip the detector cache

        Returns:
            The published message, or None if detection failed
        """
        self.state = InstallerState.CHECKING
        try:
            result = await self.detector.detect(force_refresh=force_refresh)
        except Exception as e:
            self._record_check_failure(e)
            return None

        self.last_error = None
        self.state = (
            InstallerState.INSTALLED if result.is_installed else InstallerState.NOT_INSTALLED
        )

        data = result.to_dict()
        data["installInstructions"] = (
            None
            if result.is_installed
            else CliDetector.get_installation_instructions().to_dict()
        )
        message = {"type": DETECTION_MESSAGE_TYPE, "data": data}
        publish(message)
        return message

    def _record_check_failure(self, error: Exception) -> None:
        """Classify a failed check; failures stay on this side of publish."""
        self.last_error = error
        self.state = InstallerState.IDLE
        if isinstance(error, CliProbeError):
            logger.warning(f"CLI installation check failed: {error}")
        else:
            logger.error(f"Unexpected error checking CLI installation: {error}", exc_info=True)

    async def prompt_installation(self) -> Optional[InstallChoice]:
        """
        Ask the user what to do about the missing CLI.

        Exactly one of install, open documentation, or nothing happens.

        Returns:
            The user's choice, or None if the prompt was dismissed

        Raises:
            InstallationError: If "Install Now" was chosen and dispatch failed
        """
        self.state = InstallerState.PROMPTING
        selection = await self.notifier.show_choice(
            PROMPT_MESSAGE,
            [choice.value for choice in InstallChoice],
        )

        try:
            choice = InstallChoice(selection) if selection is not None else None
        except ValueError:
            logger.warning(f"Ignoring unknown install prompt selection: {selection!r}")
            choice = None

        if choice == InstallChoice.INSTALL_NOW:
            await self.install()
        elif choice == InstallChoice.VIEW_DOCUMENTATION:
            self.state = InstallerState.OPENING_DOCS
            await self.notifier.open_link(DOCUMENTATION_URL)
        else:
            self.state = InstallerState.DISMISSED
            logger.debug("Install prompt dismissed")

        return choice

    async def install(self) -> None:
        """
        Dispatch the npm install command to the terminal.

        Raises:
            InstallationError: If the terminal could not run the command
        """
        self.state = InstallerState.INSTALLING
        command_line = get_install_command()

        await self.notifier.show_progress("Installing Qwen Code CLI...")
        logger.info(f"Running CLI install command: {command_line}")

        try:
            await self.terminal.run_install_command(command_line)
        except Exception as e:
            self.state = InstallerState.IDLE
            self.last_error = InstallationError(
                f"Failed to start CLI installation: {e}", command_line=command_line
            )
            raise self.last_error from e
