"""Shared fixtures for unit tests."""

import asyncio
import io
from pathlib import Path

import pytest
from rich.console import Console

from railtube.core.interaction import Reporter
from railtube.core.logging import ActionLog
from railtube.system.command import Command, CommandError, CommandOutcome


class FakeSystem:
    """In-memory Worker that records commands instead of running them.

    Query responses are registered per command line; unregistered
    queries exit 1. Mutating commands succeed unless their command line
    contains one of the registered failure markers.
    """

    def __init__(self) -> None:
        self.responses: dict[str, CommandOutcome] = {}
        self.failures: set[str] = set()
        self.delays: dict[str, float] = {}
        self.runs: list[str] = []
        self.probes: list[str] = []
        self.shell_runs: list[str] = []
        self.downloads: list[tuple[str, Path]] = []

    def respond(self, command: str, stdout: str = "", returncode: int | None = 0) -> None:
        self.responses[command] = CommandOutcome(command, returncode, stdout, "")

    def fail_on(self, marker: str) -> None:
        self.failures.add(marker)

    def delay_on(self, marker: str, seconds: float) -> None:
        self.delays[marker] = seconds

    async def run(self, cmd: Command) -> CommandOutcome:
        line = " ".join(cmd.argv)
        self.runs.append(line)
        for marker, seconds in self.delays.items():
            if marker in line:
                await asyncio.sleep(seconds)
        if any(marker in line for marker in self.failures):
            raise CommandError(line, 1, "", "simulated failure")
        return CommandOutcome(line, 0)

    async def probe(self, cmd: Command) -> CommandOutcome:
        line = " ".join(cmd.argv)
        self.probes.append(line)
        return self.responses.get(line, CommandOutcome(line, 1))

    async def run_shell(self, script: str) -> CommandOutcome:
        self.shell_runs.append(script)
        if any(marker in script for marker in self.failures):
            raise CommandError(script, 1, "", "simulated failure")
        return CommandOutcome(script, 0, "script output\n")

    async def download(self, url: str, dest: Path) -> Path:
        self.downloads.append((url, dest))
        dest.write_bytes(b"!<arch>\n")
        return dest


class Prompts:
    """Scripted confirmation prompt that records the questions asked."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.asked: list[str] = []

    def __call__(self, prompt: str) -> bool:
        self.asked.append(prompt)
        return self.answer


@pytest.fixture
def system() -> FakeSystem:
    return FakeSystem()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(output: io.StringIO) -> Reporter:
    """Reporter writing both streams to one buffer and no action log."""
    console = Console(file=output, width=200, highlight=False)
    return Reporter(console=console, err_console=console, action_log=ActionLog(None))


@pytest.fixture
def accept() -> Prompts:
    return Prompts(answer=True)


@pytest.fixture
def decline() -> Prompts:
    return Prompts(answer=False)
