"""Cargo (crates installed with ``cargo install``) backend."""

from railtube.core.logging import get_logger
from railtube.packages.base import ExecutionStrategy, PackageBackend
from railtube.system.command import Command, CommandError
from railtube.system.models import InstalledState, PackageSpec

logger = get_logger(__name__)


def parse_cargo_listing(output: str) -> dict[str, str]:
    """Parse ``cargo install --list`` output.

    Crate lines look like ``ripgrep v14.1.0:`` or
    ``tool v0.1.0 (/path/to/src):``; the indented lines below them name
    the installed binaries and are ignored.

    Args:
        output: Listing output

    Returns:
        Mapping of crate name to version (without the leading 'v')
    """
    versions: dict[str, str] = {}
    for line in output.splitlines():
        if not line or line[0].isspace():
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        name = parts[0].rstrip(":")
        version = parts[1].rstrip(":").removeprefix("v")
        versions[name] = version
    return versions


class CargoHandler(PackageBackend):
    """Backend for Rust crates installed with cargo."""

    name = "cargo"
    label = "Cargo"
    versioned = True
    strategy = ExecutionStrategy.PARALLEL_WHEN_UNATTENDED

    async def list_installed(self) -> InstalledState:
        """List installed crates with their versions.

        Returns:
            Versioned installed state

        Raises:
            CommandError: If cargo fails
        """
        outcome = await self._query(Command(executable="cargo", args=["install", "--list"]))
        versions = parse_cargo_listing(outcome.stdout)

        logger.debug("Listed cargo crates", count=len(versions))
        return InstalledState.from_versions(versions)

    async def installed_version(self, name: str) -> str | None:
        state = await self.list_installed()
        return state.version_of(name)

    async def is_installed(self, name: str) -> bool:
        try:
            return await self.installed_version(name) is not None
        except CommandError as e:
            logger.warning(
                "Could not query package state, assuming not installed",
                backend=self.name,
                package=name,
                error=str(e),
            )
            return False

    def install_command(self, spec: PackageSpec) -> Command:
        args = ["install", "--locked", "--force", spec.name]
        if spec.version is not None:
            args.extend(["--version", spec.version])
        return Command(executable="cargo", args=args)
