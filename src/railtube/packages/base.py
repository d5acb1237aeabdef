"""Backend protocol and execution strategy for package backends."""

from enum import Enum
from typing import Protocol, runtime_checkable

from railtube.config.models import ExecutionMode
from railtube.core.logging import get_logger
from railtube.system.command import Command, CommandError, CommandOutcome
from railtube.system.models import InstalledState, PackageSpec
from railtube.system.worker import Worker

logger = get_logger(__name__)


class ExecutionStrategy(str, Enum):
    """How the items of a section are scheduled."""

    SEQUENTIAL = "sequential"
    PARALLEL_WHEN_UNATTENDED = "parallel-when-unattended"

    def is_parallel(self, mode: ExecutionMode) -> bool:
        """Check whether items may run concurrently under a mode.

        Interactive runs need one blocking confirmation per item and dry
        runs have nothing to overlap, so only unattended runs go parallel.

        Args:
            mode: Active execution mode

        Returns:
            True if the section should be dispatched to a worker pool
        """
        return self is ExecutionStrategy.PARALLEL_WHEN_UNATTENDED and (
            mode is ExecutionMode.UNATTENDED
        )


@runtime_checkable
class Backend(Protocol):
    """Protocol for package-list backends (APT, Snap, Flatpak, Cargo).

    Attributes:
        name: Manifest section name
        label: Human-readable backend name
        versioned: Whether installed versions can be queried
        strategy: Scheduling used when reconciling this backend
    """

    name: str
    label: str
    versioned: bool
    strategy: ExecutionStrategy

    def parse_spec(self, spec_str: str) -> PackageSpec:
        """Parse a manifest entry into a spec."""
        ...

    async def list_installed(self) -> InstalledState:
        """List everything the backend reports as installed.

        Raises:
            CommandError: If the listing command fails
        """
        ...

    async def is_installed(self, name: str) -> bool:
        """Check whether a package is installed.

        Query failures are logged and reported as not installed.
        """
        ...

    async def installed_version(self, name: str) -> str | None:
        """Get the installed version of a package.

        Raises:
            UnsupportedCapability: If the backend has no version information
        """
        ...

    def install_command(self, spec: PackageSpec) -> Command:
        """Build the command that installs a spec."""
        ...

    async def install(self, spec: PackageSpec, dry_run: bool) -> CommandOutcome:
        """Install a spec, or describe the install when dry_run is set.

        Raises:
            CommandError: If the install command fails
        """
        ...


class PackageBackend:
    """Shared behaviour for package-list backends."""

    name = ""
    label = ""
    versioned = False
    strategy = ExecutionStrategy.SEQUENTIAL

    def __init__(self, system: Worker) -> None:
        """Initialize the backend.

        Args:
            system: System worker for executing commands
        """
        self.system = system

    def parse_spec(self, spec_str: str) -> PackageSpec:
        return PackageSpec.from_pinned(spec_str)

    async def install(self, spec: PackageSpec, dry_run: bool) -> CommandOutcome:
        """Install a spec.

        Args:
            spec: Package spec to install
            dry_run: Describe the command without running it

        Returns:
            Outcome of the install (a zero-status placeholder for dry runs)

        Raises:
            CommandError: If the install command fails
        """
        cmd = self.install_command(spec)
        if dry_run:
            return CommandOutcome(cmd.command_string, 0)

        outcome = await self.system.run(cmd)
        logger.info("Installed package", backend=self.name, package=spec.name)
        return outcome

    def install_command(self, spec: PackageSpec) -> Command:
        raise NotImplementedError

    async def _query(self, cmd: Command) -> CommandOutcome:
        """Run a listing command, raising if it fails.

        Args:
            cmd: Read-only query command

        Returns:
            Successful outcome

        Raises:
            CommandError: If the command fails or cannot be spawned
        """
        outcome = await self.system.probe(cmd)
        if not outcome.ok:
            raise CommandError.from_outcome(outcome)
        return outcome

    async def _presence_probe(self, cmd: Command, name: str) -> bool:
        """Check presence by exit status.

        Args:
            cmd: Probe command, exiting zero when the package is installed
            name: Package name (for warnings)

        Returns:
            True if installed; False if absent or the probe could not run
        """
        outcome = await self.system.probe(cmd)
        if outcome.returncode is None:
            logger.warning(
                "Could not query package state, assuming not installed",
                backend=self.name,
                package=name,
                error=outcome.stderr,
            )
            return False
        return outcome.ok
