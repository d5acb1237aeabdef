"""System command runner implementation."""

import asyncio
import os
import shlex
import shutil
from pathlib import Path

from railtube.core.logging import ActionLog, get_logger
from railtube.system import fetch
from railtube.system.command import Command, CommandError, CommandOutcome

logger = get_logger(__name__)


def _get_shell_path() -> str:
    """Get path to the shell to use for script execution.

    Returns:
        Path to shell executable

    Raises:
        RuntimeError: If no shell can be found
    """
    shell = os.getenv("SHELL")
    if shell:
        return shell

    for candidate in ["bash", "/bin/bash", "sh", "/bin/sh"]:
        if Path(candidate).exists():
            return candidate
        path = shutil.which(candidate)
        if path:
            return path

    raise RuntimeError("Could not find path to a shell")


class System:
    """System implementation that executes commands on the local machine.

    This class implements the Worker protocol. Every invocation is
    recorded in the action log together with its captured output.
    """

    def __init__(self, action_log: ActionLog | None = None, trace: bool = False) -> None:
        """Initialize the System.

        Args:
            action_log: Sink for executed commands and their output
            trace: Print every command and its output
        """
        self._trace = trace
        self._log = action_log or ActionLog(None)

    async def run(self, cmd: Command) -> CommandOutcome:
        """Execute a command and return its outcome.

        Args:
            cmd: Command to execute

        Returns:
            Outcome with captured output

        Raises:
            CommandError: If the command fails
        """
        self._log.write(f"Executing: {cmd.command_string}")
        outcome = await self._spawn(cmd.command_string, cmd.full_command)

        if not outcome.ok:
            self._log.write(
                f"Command failed with exit code {outcome.returncode}: {outcome.command}"
            )
            raise CommandError.from_outcome(outcome)

        return outcome

    async def probe(self, cmd: Command) -> CommandOutcome:
        """Execute a query command without raising on failure.

        Args:
            cmd: Command to execute

        Returns:
            Outcome with captured output
        """
        return await self._spawn(cmd.command_string, cmd.full_command, record=False)

    async def run_shell(self, script: str) -> CommandOutcome:
        """Execute a command line through the user's shell.

        Args:
            script: Shell command line

        Returns:
            Outcome with captured output

        Raises:
            CommandError: If the command fails
        """
        shell = _get_shell_path()
        command_string = shlex.join([shell, "-c", script])
        self._log.write(f"Executing: {command_string}")

        outcome = await self._spawn(command_string, [shell, "-c", script])
        if not outcome.ok:
            raise CommandError.from_outcome(outcome)

        return outcome

    async def download(self, url: str, dest: Path) -> Path:
        """Download a remote file.

        Args:
            url: HTTP(S) URL
            dest: Destination path

        Returns:
            The destination path
        """
        self._log.write(f"Downloading: {url} -> {dest}")
        return await fetch.download(url, dest)

    async def _spawn(
        self, command_string: str, argv: list[str], record: bool = True
    ) -> CommandOutcome:
        """Spawn a process and capture its output.

        Args:
            command_string: Human-readable form of the command
            argv: Arguments to execute
            record: Write captured output to the action log

        Returns:
            Outcome of the process; returncode is None on spawn failure
        """
        logger.debug("Starting command", command=command_string)

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug("Failed to start command", command=command_string, error=str(e))
            message = f"Error executing command '{command_string}': {e}"
            if record:
                self._log.write(message)
            return CommandOutcome(command_string, None, "", message)

        stdout, stderr = await process.communicate()

        outcome = CommandOutcome(
            command=command_string,
            returncode=process.returncode if process.returncode is not None else 1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

        if record:
            if outcome.stdout:
                self._log.write(f"Stdout:\n{outcome.stdout}")
            if outcome.stderr:
                self._log.write(f"Stderr:\n{outcome.stderr}")

        if self._trace:
            self._print_trace(outcome)

        logger.debug("Finished command", command=command_string, returncode=outcome.returncode)

        return outcome

    def _print_trace(self, outcome: CommandOutcome) -> None:
        """Print trace output for a command.

        Args:
            outcome: The finished command
        """
        print(f"\n\033[1;32;4mCommand:\033[0m \033[1m{outcome.command}\033[0m")
        output = "\n".join(part for part in (outcome.stdout, outcome.stderr) if part)
        if output:
            print(f"\033[1;32mOutput:\033[0m\n{output}")
