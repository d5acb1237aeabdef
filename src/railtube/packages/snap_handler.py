"""Snap package backend."""

from railtube.core.errors import UnsupportedCapability
from railtube.core.logging import get_logger
from railtube.packages.base import ExecutionStrategy, PackageBackend
from railtube.system.command import Command
from railtube.system.models import InstalledState, PackageSpec

logger = get_logger(__name__)


def parse_snap_listing(output: str) -> list[str]:
    """Parse ``snap list`` output.

    Args:
        output: Tabular output with a header row

    Returns:
        Installed snap names
    """
    names = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if parts:
            names.append(parts[0])
    return names


class SnapHandler(PackageBackend):
    """Backend for snap packages.

    Snap specs may carry install flags after the name (for example
    ``code --classic``); only the first token identifies the snap.
    Presence is the only state snapd reports reliably, so no version
    comparison is done.
    """

    name = "snap"
    label = "Snap"
    versioned = False
    strategy = ExecutionStrategy.PARALLEL_WHEN_UNATTENDED

    def parse_spec(self, spec_str: str) -> PackageSpec:
        return PackageSpec.from_flagged(spec_str)

    async def list_installed(self) -> InstalledState:
        """List installed snaps.

        Returns:
            Presence-only installed state

        Raises:
            CommandError: If snap list fails
        """
        outcome = await self._query(Command(executable="snap", args=["list"]))
        return InstalledState.from_names(parse_snap_listing(outcome.stdout))

    async def is_installed(self, name: str) -> bool:
        """Probe a single snap.

        Args:
            name: Snap name

        Returns:
            True if the snap is installed
        """
        return await self._presence_probe(Command(executable="snap", args=["list", name]), name)

    async def installed_version(self, name: str) -> str | None:
        raise UnsupportedCapability("Snap does not support version comparison")

    def install_command(self, spec: PackageSpec) -> Command:
        return Command(executable="snap", args=["install", spec.name, *spec.flags], sudo=True)
