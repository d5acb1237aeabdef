"""APT package backend."""

from railtube.core.logging import get_logger
from railtube.packages.base import ExecutionStrategy, PackageBackend
from railtube.system.command import Command
from railtube.system.models import InstalledState, PackageSpec

logger = get_logger(__name__)


def parse_dpkg_listing(output: str) -> dict[str, str]:
    """Parse ``dpkg-query -W -f='${Package} ${Version}\\n'`` output.

    Args:
        output: Query output, one "name version" pair per line

    Returns:
        Mapping of package name to version
    """
    versions: dict[str, str] = {}
    for line in output.splitlines():
        name, sep, version = line.strip().partition(" ")
        if name and sep:
            versions[name] = version.strip()
    return versions


class AptHandler(PackageBackend):
    """Backend for Debian packages managed with apt.

    Installed state comes from a single batched dpkg-query call. Specs
    pinned with ``name=version`` are passed to apt verbatim.
    """

    name = "apt"
    label = "APT"
    versioned = True
    strategy = ExecutionStrategy.SEQUENTIAL

    async def list_installed(self) -> InstalledState:
        """List installed packages with their versions.

        Returns:
            Versioned installed state

        Raises:
            CommandError: If dpkg-query fails
        """
        cmd = Command(executable="dpkg-query", args=["-W", "-f=${Package} ${Version}\\n"])
        outcome = await self._query(cmd)
        versions = parse_dpkg_listing(outcome.stdout)

        logger.debug("Listed apt packages", count=len(versions))
        return InstalledState.from_versions(versions)

    async def installed_version(self, name: str) -> str | None:
        """Get the installed version of a single package.

        Args:
            name: Package name

        Returns:
            Installed version, or None if not installed
        """
        cmd = Command(executable="dpkg-query", args=["-W", "-f=${Version}", name])
        outcome = await self.system.probe(cmd)
        if not outcome.ok:
            return None
        return outcome.stdout.strip() or None

    async def is_installed(self, name: str) -> bool:
        return await self.installed_version(name) is not None

    def install_command(self, spec: PackageSpec) -> Command:
        return Command(executable="apt", args=["install", "-y", spec.raw], sudo=True)
