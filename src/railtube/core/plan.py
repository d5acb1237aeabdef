"""Reconciliation plan: decide per-item actions and carry them out."""

import asyncio
import os
from dataclasses import dataclass, field
from enum import Enum

from railtube.config.models import ExecutionMode, Manifest, RunOptions
from railtube.core.interaction import Confirm, Reporter, confirm
from railtube.core.logging import get_logger
from railtube.packages.base import ExecutionStrategy, PackageBackend
from railtube.packages.deb_handler import DebHandler
from railtube.packages.factory import create_all_backends
from railtube.packages.system_handler import SystemHandler
from railtube.system.command import CommandError
from railtube.system.models import InstalledState, PackageSpec
from railtube.system.worker import Worker

logger = get_logger(__name__)


class Action(str, Enum):
    """What to do with one manifest entry."""

    SKIP = "skip"
    INSTALL = "install"
    REINSTALL = "reinstall"


class ItemStatus(str, Enum):
    """How one manifest entry ended up after a run."""

    SKIPPED = "skipped"
    PREVIEWED = "previewed"
    INSTALLED = "installed"
    DECLINED = "declined"
    FAILED = "failed"
    NOT_DISPATCHED = "not-dispatched"


def decide_action(
    desired_version: str | None, installed: bool, installed_version: str | None = None
) -> Action:
    """Decide what to do with a package.

    Versions are compared verbatim; no version ordering is implied.

    Args:
        desired_version: Version pinned in the manifest, if any
        installed: Whether the package is present
        installed_version: Version reported by the backend, if known

    Returns:
        Action to take
    """
    if not installed:
        return Action.INSTALL
    if desired_version is None or installed_version == desired_version:
        return Action.SKIP
    return Action.REINSTALL


@dataclass
class PlannedItem:
    """A manifest entry with its decided action."""

    spec: PackageSpec
    action: Action
    installed_version: str | None = None


@dataclass
class ItemResult:
    """Outcome of one manifest entry.

    Attributes:
        subject: Spec, URL or action the result is about
        action: Action that was decided
        status: What happened
        error: Failure description, if any
    """

    subject: str
    action: Action
    status: ItemStatus
    error: str = ""


@dataclass
class SectionResult:
    """Outcome of one manifest section."""

    section: str
    items: list[ItemResult] = field(default_factory=list)
    aborted: bool = False

    @property
    def failed(self) -> bool:
        return any(item.status is ItemStatus.FAILED for item in self.items)

    def count(self, status: ItemStatus) -> int:
        return sum(1 for item in self.items if item.status is status)


@dataclass
class RunSummary:
    """Outcome of an apply run."""

    sections: list[SectionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no item in any section failed."""
        return not any(section.failed for section in self.sections)

    def count(self, status: ItemStatus) -> int:
        return sum(section.count(status) for section in self.sections)

    def section(self, name: str) -> SectionResult | None:
        return next((s for s in self.sections if s.section == name), None)


def describe_decision(label: str, item: PlannedItem) -> str:
    """Describe a decided action for the user.

    Args:
        label: Backend label (e.g., "APT")
        item: Planned item

    Returns:
        Human-readable description
    """
    name = item.spec.name
    version = item.spec.version

    if item.action is Action.REINSTALL:
        return (
            f"{label} package '{name}' installed with version '{item.installed_version}', "
            f"but '{version}' is requested. Reinstalling."
        )
    if item.action is Action.SKIP:
        if version is not None:
            return f"{label} package '{name}' version '{version}' already installed, skipping."
        return f"{label} package '{name}' already installed, skipping."
    if version is not None:
        return f"{label} package '{name}' version '{version}' not installed. Installing."
    return f"{label} package '{name}' not installed. Installing."


class Plan:
    """Plan reconciles a manifest against the package backends.

    Sections are processed in a fixed order (system, apt, snap, flatpak,
    cargo, deb). A failure aborts the rest of its own section only;
    fetch, filesystem and parse errors abort the whole run.
    """

    def __init__(
        self,
        manifest: Manifest,
        system: Worker,
        options: RunOptions,
        reporter: Reporter | None = None,
        confirm_fn: Confirm = confirm,
        max_workers: int | None = None,
    ) -> None:
        """Initialize the Plan.

        Args:
            manifest: Desired state
            system: System worker
            options: Execution mode and section selector
            reporter: Output sink for progress messages
            confirm_fn: Yes/no prompt used in interactive mode
            max_workers: Parallel batch size (defaults to the CPU count)
        """
        self.manifest = manifest
        self.system = system
        self.options = options
        self.reporter = reporter or Reporter()
        self.confirm = confirm_fn
        self.max_workers = max_workers or os.cpu_count() or 1

        self.system_handler = SystemHandler(system)
        self.backends = create_all_backends(system)
        self.deb_handler = DebHandler(system)

    @property
    def mode(self) -> ExecutionMode:
        return self.options.mode

    async def execute(self) -> RunSummary:
        """Reconcile every present and selected section.

        Returns:
            Summary of the run

        Raises:
            FetchError: If a .deb archive cannot be downloaded
            OSError: On local filesystem failures
        """
        summary = RunSummary()

        if self.manifest.system is not None and self.options.selects("system"):
            if self.manifest.system.update:
                summary.sections.append(await self._apply_system())

        for backend in self.backends:
            section = self.manifest.package_section(backend.name)
            if section is None or not self.options.selects(backend.name):
                continue
            specs = [backend.parse_spec(raw) for raw in section.packages]
            summary.sections.append(await self._apply_packages(backend, specs))

        if self.manifest.deb is not None and self.options.selects("deb"):
            summary.sections.append(await self._apply_debs(self.manifest.deb.urls))

        return summary

    async def plan_section(
        self, backend: PackageBackend, specs: list[PackageSpec]
    ) -> list[PlannedItem]:
        """Decide the action for every spec of a section.

        Versioned backends are queried once for their whole installed
        state; presence-only backends are probed per package. Query
        failures count as "not installed".

        Args:
            backend: Backend to consult
            specs: Specs in manifest order

        Returns:
            Planned items in manifest order
        """
        planned: list[PlannedItem] = []

        if backend.versioned:
            try:
                state = await backend.list_installed()
            except CommandError as e:
                self.reporter.warning(
                    f"Error fetching {backend.label} packages: {e}. "
                    f"Proceeding with installation for all {backend.label} packages."
                )
                state = InstalledState.from_versions({})

            for spec in specs:
                installed_version = state.version_of(spec.name)
                action = decide_action(
                    spec.version, installed_version is not None, installed_version
                )
                planned.append(PlannedItem(spec, action, installed_version))
        else:
            for spec in specs:
                installed = await backend.is_installed(spec.name)
                planned.append(PlannedItem(spec, decide_action(None, installed)))

        for item in planned:
            self.reporter.info(describe_decision(backend.label, item))

        return planned

    async def _apply_system(self) -> SectionResult:
        result = SectionResult(section=self.system_handler.name)
        cmd = self.system_handler.update_command()
        self.reporter.info("Updating the system package index", record=True)

        if self.mode is ExecutionMode.DRY_RUN:
            self.reporter.preview(cmd.command_string)
            result.items.append(ItemResult("update", Action.INSTALL, ItemStatus.PREVIEWED))
            return result

        if self.mode is ExecutionMode.INTERACTIVE and not self.confirm(
            f"Do you want to run '{cmd.command_string}'?"
        ):
            self.reporter.info("Update aborted by user.")
            result.items.append(ItemResult("update", Action.INSTALL, ItemStatus.DECLINED))
            return result

        try:
            await self.system_handler.update(dry_run=False)
        except CommandError as e:
            self.reporter.error(str(e))
            result.items.append(ItemResult("update", Action.INSTALL, ItemStatus.FAILED, str(e)))
            result.aborted = True
            return result

        result.items.append(ItemResult("update", Action.INSTALL, ItemStatus.INSTALLED))
        return result

    async def _apply_packages(
        self, backend: PackageBackend, specs: list[PackageSpec]
    ) -> SectionResult:
        result = SectionResult(section=backend.name)
        planned = await self.plan_section(backend, specs)

        pending = []
        for item in planned:
            if item.action is Action.SKIP:
                result.items.append(ItemResult(item.spec.raw, item.action, ItemStatus.SKIPPED))
            else:
                pending.append(item)

        if not pending:
            return result

        if backend.strategy is ExecutionStrategy.PARALLEL_WHEN_UNATTENDED:
            names = ", ".join(item.spec.raw for item in pending)
            self.reporter.info(
                f"Will attempt to install the following {backend.label} packages: {names}"
            )

        if backend.strategy.is_parallel(self.mode):
            items = await self._run_parallel(backend, pending)
            result.items.extend(items)
            result.aborted = any(item.status is ItemStatus.NOT_DISPATCHED for item in items)
            return result

        # Only sequential backends stop on the first failure; the others
        # are already gated by a human decision per item.
        fail_fast = backend.strategy is ExecutionStrategy.SEQUENTIAL

        for index, item in enumerate(pending):
            item_result = await self._run_item(backend, item)
            result.items.append(item_result)

            if item_result.status is ItemStatus.FAILED and fail_fast:
                result.aborted = True
                for skipped in pending[index + 1 :]:
                    result.items.append(
                        ItemResult(skipped.spec.raw, skipped.action, ItemStatus.NOT_DISPATCHED)
                    )
                break

        return result

    async def _run_parallel(
        self, backend: PackageBackend, pending: list[PlannedItem]
    ) -> list[ItemResult]:
        """Install items on a bounded worker pool.

        After the first failure no further items are started; items that
        are already running are left to finish.

        Args:
            backend: Backend to install with
            pending: Items that need installing

        Returns:
            Results in the same order as ``pending``
        """
        semaphore = asyncio.Semaphore(self.max_workers)
        failed = asyncio.Event()

        async def _worker(item: PlannedItem) -> ItemResult:
            async with semaphore:
                if failed.is_set():
                    return ItemResult(item.spec.raw, item.action, ItemStatus.NOT_DISPATCHED)
                item_result = await self._run_item(backend, item)
                if item_result.status is ItemStatus.FAILED:
                    failed.set()
                return item_result

        return list(await asyncio.gather(*(_worker(item) for item in pending)))

    async def _run_item(self, backend: PackageBackend, item: PlannedItem) -> ItemResult:
        spec = item.spec
        self.reporter.info(f"Installing {backend.label} package '{spec.raw}'", record=True)

        if self.mode is ExecutionMode.DRY_RUN:
            outcome = await backend.install(spec, dry_run=True)
            self.reporter.preview(outcome.command)
            return ItemResult(spec.raw, item.action, ItemStatus.PREVIEWED)

        if self.mode is ExecutionMode.INTERACTIVE and not self.confirm(
            f"Do you want to install {backend.label} package '{spec.raw}'?"
        ):
            self.reporter.info("Installation aborted by user.")
            return ItemResult(spec.raw, item.action, ItemStatus.DECLINED)

        try:
            await backend.install(spec, dry_run=False)
        except CommandError as e:
            self.reporter.error(f"Failed to install {backend.label} package '{spec.raw}': {e}")
            return ItemResult(spec.raw, item.action, ItemStatus.FAILED, str(e))

        return ItemResult(spec.raw, item.action, ItemStatus.INSTALLED)

    async def _apply_debs(self, urls: list[str]) -> SectionResult:
        handler = self.deb_handler
        result = SectionResult(section=handler.name)

        with handler.scratch_dir() as scratch:
            for index, url in enumerate(urls):
                archive = handler.archive_path(url, scratch)
                self.reporter.info(f"Installing deb package from '{url}'", record=True)

                if self.mode is ExecutionMode.DRY_RUN:
                    self.reporter.info(f"Would download {url} to {archive}")
                    for cmd in handler.install_commands(archive):
                        self.reporter.preview(cmd.command_string)
                    result.items.append(ItemResult(url, Action.INSTALL, ItemStatus.PREVIEWED))
                    continue

                if self.mode is ExecutionMode.INTERACTIVE and not self.confirm(
                    f"Do you want to install deb package '{url}'?"
                ):
                    self.reporter.info("Installation aborted by user.")
                    result.items.append(ItemResult(url, Action.INSTALL, ItemStatus.DECLINED))
                    continue

                self.reporter.info(f"Downloading {url} to {archive}")
                await handler.fetch(url, scratch)

                self.reporter.info(f"Installing {archive}...")
                try:
                    await handler.install(archive, dry_run=False)
                except CommandError as e:
                    self.reporter.error(f"Failed to install deb package '{url}': {e}")
                    result.items.append(ItemResult(url, Action.INSTALL, ItemStatus.FAILED, str(e)))
                    result.aborted = True
                    for remaining in urls[index + 1 :]:
                        result.items.append(
                            ItemResult(remaining, Action.INSTALL, ItemStatus.NOT_DISPATCHED)
                        )
                    break

                result.items.append(ItemResult(url, Action.INSTALL, ItemStatus.INSTALLED))

        return result
