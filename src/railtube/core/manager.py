"""Manager for orchestrating railtube operations."""

from railtube.config.models import Manifest, RunOptions
from railtube.core.doctor import DoctorReport, run_doctor
from railtube.core.export import export_manifest
from railtube.core.interaction import Confirm, Reporter, confirm
from railtube.core.logging import get_logger
from railtube.core.plan import ItemStatus, Plan, RunSummary
from railtube.core.scripts import run_script
from railtube.packages.factory import create_all_backends
from railtube.system.runner import System
from railtube.system.worker import Worker

logger = get_logger(__name__)


class Manager:
    """Manager coordinates the overall execution of railtube.

    It owns the system worker and output sinks for one invocation and
    hands them to the apply, doctor, export and script paths.
    """

    def __init__(
        self,
        manifest: Manifest | None = None,
        system: Worker | None = None,
        reporter: Reporter | None = None,
        confirm_fn: Confirm = confirm,
        trace: bool = False,
    ) -> None:
        """Initialize the Manager.

        Args:
            manifest: Loaded manifest (not needed for export)
            system: System worker; a local System is created if omitted
            reporter: Output sink for progress messages
            confirm_fn: Yes/no prompt
            trace: Print every command and its output
        """
        self.manifest = manifest or Manifest()
        self.reporter = reporter or Reporter()
        self.system = system or System(action_log=self.reporter.action_log, trace=trace)
        self.confirm = confirm_fn
        self.plan: Plan | None = None

    async def apply(self, options: RunOptions) -> RunSummary:
        """Reconcile the system with the manifest.

        Args:
            options: Execution mode and section selector

        Returns:
            Summary of the run
        """
        logger.debug("Applying manifest", mode=options.mode.value)
        self.reporter.action_log.write(f"Apply started (mode: {options.mode.value})")

        self.plan = Plan(
            self.manifest,
            self.system,
            options,
            reporter=self.reporter,
            confirm_fn=self.confirm,
        )
        summary = await self.plan.execute()

        self.reporter.action_log.write(
            f"Apply finished: {summary.count(ItemStatus.INSTALLED)} installed, "
            f"{summary.count(ItemStatus.FAILED)} failed"
        )
        return summary

    async def doctor(self, options: RunOptions | None = None) -> DoctorReport:
        """Report drift between the manifest and the system.

        Args:
            options: Optional section selector

        Returns:
            Drift report
        """
        return await run_doctor(self.manifest, create_all_backends(self.system), options)

    async def export(self) -> Manifest:
        """Capture the installed state as a manifest.

        Returns:
            Manifest describing the installed packages
        """
        return await export_manifest(create_all_backends(self.system))

    async def run_script(self, name: str, remote_source: bool) -> bool:
        """Run a named script from the manifest.

        Args:
            name: Script name
            remote_source: Whether the manifest came from the network

        Returns:
            True if the script ran, False if the user declined
        """
        return await run_script(
            self.manifest,
            name,
            self.system,
            remote_source,
            reporter=self.reporter,
            confirm_fn=self.confirm,
        )
