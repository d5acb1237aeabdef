"""Handler for installing .deb archives by URL."""

import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import urlparse

from railtube.core.logging import get_logger
from railtube.packages.base import ExecutionStrategy
from railtube.system.command import Command, CommandOutcome
from railtube.system.worker import Worker

logger = get_logger(__name__)

DEFAULT_ARCHIVE_NAME = "package.deb"


def archive_name(url: str) -> str:
    """Get the file name to save a downloaded archive under.

    Args:
        url: Archive URL

    Returns:
        Last path segment of the URL, or a default name if it is empty
    """
    segment = urlparse(url).path.rsplit("/", 1)[-1]
    return segment or DEFAULT_ARCHIVE_NAME


class DebHandler:
    """Handler for .deb archives installed with dpkg.

    There is no pre-check: every archive is downloaded and handed to
    dpkg, which decides whether anything changes. A dependency repair
    step runs after each install.
    """

    name = "deb"
    label = "Deb"
    strategy = ExecutionStrategy.SEQUENTIAL

    def __init__(self, system: Worker) -> None:
        """Initialize the DebHandler.

        Args:
            system: System worker for executing commands
        """
        self.system = system

    @contextmanager
    def scratch_dir(self) -> Iterator[Path]:
        """Provide a download directory that is removed on exit.

        Yields:
            Path to an empty temporary directory
        """
        with tempfile.TemporaryDirectory(prefix="railtube-deb-") as tmp:
            logger.debug("Created scratch directory", path=tmp)
            yield Path(tmp)
        logger.debug("Removed scratch directory", path=tmp)

    def archive_path(self, url: str, scratch: Path) -> Path:
        return scratch / archive_name(url)

    async def fetch(self, url: str, scratch: Path) -> Path:
        """Download an archive into the scratch directory.

        Args:
            url: Archive URL
            scratch: Scratch directory

        Returns:
            Path of the downloaded archive

        Raises:
            FetchError: If the download fails
        """
        return await self.system.download(url, self.archive_path(url, scratch))

    def install_commands(self, archive: Path) -> list[Command]:
        """Build the install and repair commands for an archive.

        Args:
            archive: Local archive path

        Returns:
            Commands in execution order
        """
        return [
            Command(executable="dpkg", args=["-i", str(archive)], sudo=True),
            Command(executable="apt", args=["--fix-broken", "install", "-y"], sudo=True),
        ]

    async def install(self, archive: Path, dry_run: bool) -> CommandOutcome:
        """Install an archive and repair broken dependencies.

        Args:
            archive: Local archive path
            dry_run: Describe the commands without running them

        Returns:
            Outcome of the last command

        Raises:
            CommandError: If either command fails
        """
        outcome = CommandOutcome("", 0)
        for cmd in self.install_commands(archive):
            if dry_run:
                outcome = CommandOutcome(cmd.command_string, 0)
            else:
                outcome = await self.system.run(cmd)

        if not dry_run:
            logger.info("Installed deb archive", archive=archive.name)
        return outcome
