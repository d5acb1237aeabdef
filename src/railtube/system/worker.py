"""Worker protocol for system operations."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from railtube.system.command import Command, CommandOutcome


@runtime_checkable
class Worker(Protocol):
    """Protocol for a system that can execute commands and fetch files.

    This protocol defines the interface that all system implementations must follow,
    allowing for both real system operations and fake implementations for testing.
    """

    async def run(self, cmd: Command) -> CommandOutcome:
        """Execute a command that is expected to succeed.

        Args:
            cmd: Command to execute

        Returns:
            Outcome with captured output

        Raises:
            CommandError: If the command exits non-zero or cannot be spawned
        """
        ...

    async def probe(self, cmd: Command) -> CommandOutcome:
        """Execute a read-only query whose exit status is the answer.

        Args:
            cmd: Command to execute

        Returns:
            Outcome with captured output; returncode is None if the
            command could not be spawned. Never raises CommandError.
        """
        ...

    async def run_shell(self, script: str) -> CommandOutcome:
        """Execute a command line through the user's shell.

        Args:
            script: Opaque shell command line

        Returns:
            Outcome with captured output

        Raises:
            CommandError: If the command fails
        """
        ...

    async def download(self, url: str, dest: Path) -> Path:
        """Download a remote file.

        Args:
            url: HTTP(S) URL
            dest: Destination path

        Returns:
            The destination path

        Raises:
            FetchError: If the download fails
        """
        ...
