"""Console output and confirmation prompts."""

from collections.abc import Callable

import typer
from rich.console import Console

from railtube.core.logging import ActionLog

Confirm = Callable[[str], bool]


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal, defaulting to no.

    Args:
        prompt: Question to ask

    Returns:
        True if the user answered yes
    """
    return typer.confirm(prompt, default=False)


class Reporter:
    """Progress output for the user, mirrored to the action log.

    Attributes:
        console: Console for progress messages
        err_console: Console for warnings and errors
        action_log: Append-only record of actions
    """

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
        action_log: ActionLog | None = None,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)
        self.action_log = action_log or ActionLog(None)

    def info(self, message: str, record: bool = False) -> None:
        """Print a progress message.

        Args:
            message: Message text
            record: Also append the message to the action log
        """
        self.console.print(message, markup=False)
        if record:
            self.action_log.write(message)

    def preview(self, command: str) -> None:
        """Print a command that a dry run would execute."""
        self.console.print(f"Would run: {command}", markup=False)

    def warning(self, message: str) -> None:
        self.err_console.print(f"Warning: {message}", style="yellow", markup=False)
        self.action_log.write(f"Warning: {message}")

    def error(self, message: str) -> None:
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)
        self.action_log.write(f"Error: {message}")
