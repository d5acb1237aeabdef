"""Flatpak package backend."""

from railtube.core.errors import UnsupportedCapability
from railtube.packages.base import ExecutionStrategy, PackageBackend
from railtube.system.command import Command
from railtube.system.models import InstalledState, PackageSpec


class FlatpakHandler(PackageBackend):
    """Backend for Flatpak applications, identified by application ID."""

    name = "flatpak"
    label = "Flatpak"
    versioned = False
    strategy = ExecutionStrategy.PARALLEL_WHEN_UNATTENDED

    def parse_spec(self, spec_str: str) -> PackageSpec:
        return PackageSpec(raw=spec_str, name=spec_str)

    async def list_installed(self) -> InstalledState:
        cmd = Command(executable="flatpak", args=["list", "--app", "--columns=application"])
        outcome = await self._query(cmd)
        names = [line.strip() for line in outcome.stdout.splitlines() if line.strip()]
        return InstalledState.from_names(names)

    async def is_installed(self, name: str) -> bool:
        return await self._presence_probe(Command(executable="flatpak", args=["info", name]), name)

    async def installed_version(self, name: str) -> str | None:
        raise UnsupportedCapability("Flatpak does not support version comparison")

    def install_command(self, spec: PackageSpec) -> Command:
        return Command(executable="flatpak", args=["install", "-y", spec.name])
