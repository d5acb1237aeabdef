"""Command models for system execution."""

import shlex
from dataclasses import dataclass, field
from shutil import which

from railtube.core.errors import RailtubeError


@dataclass
class Command:
    """Represents a command to be executed by railtube.

    Attributes:
        executable: The command to execute
        args: Arguments to pass to the executable
        sudo: Whether the command needs elevated privileges
    """

    executable: str
    args: list[str] = field(default_factory=list)
    sudo: bool = False

    @property
    def argv(self) -> list[str]:
        """The command as the user would type it.

        Returns:
            List of command components, with a sudo prefix if needed
        """
        cmd = ["sudo"] if self.sudo else []
        cmd.append(self.executable)
        cmd.extend(self.args)
        return cmd

    @property
    def full_command(self) -> list[str]:
        """Build the command to spawn, with the executable resolved on PATH.

        Returns:
            List of command components
        """
        # Resolve executable path (falls back to the bare name).
        executable_path = which(self.executable) or self.executable

        cmd: list[str] = []
        if self.sudo:
            cmd.append(which("sudo") or "sudo")

        cmd.append(executable_path)
        cmd.extend(self.args)

        return cmd

    @property
    def command_string(self) -> str:
        """Build the command as a properly escaped shell string.

        Returns:
            Shell-escaped command string
        """
        return shlex.join(self.argv)


@dataclass
class CommandOutcome:
    """Result of an external command invocation.

    Attributes:
        command: The command line that was run
        returncode: Exit status, or None if the process never started
        stdout: Captured standard output
        stderr: Captured standard error
    """

    command: str
    returncode: int | None
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Whether the command exited successfully."""
        return self.returncode == 0


class CommandError(RailtubeError):
    """Raised when a command execution fails.

    Attributes:
        command: The command that failed
        returncode: Exit code from the command, or None if it could not be spawned
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(
        self,
        command: str,
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Initialize CommandError.

        Args:
            command: The command that failed
            returncode: Exit code from the command
            stdout: Captured standard output
            stderr: Captured standard error
        """
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if returncode is None:
            message = f"Command could not be executed: {command}"
        else:
            message = f"Command failed with exit code {returncode}: {command}"
        super().__init__(message)

    @property
    def output(self) -> str:
        """Combined stdout/stderr output."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    @classmethod
    def from_outcome(cls, outcome: CommandOutcome) -> "CommandError":
        """Build an error from a failed command outcome."""
        return cls(outcome.command, outcome.returncode, outcome.stdout, outcome.stderr)
