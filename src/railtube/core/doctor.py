"""Read-only drift report between a manifest and the live system."""

from dataclasses import dataclass, field

from railtube.config.models import Manifest, RunOptions
from railtube.core.logging import get_logger
from railtube.packages.base import PackageBackend
from railtube.system.command import CommandError

logger = get_logger(__name__)


@dataclass
class BackendDrift:
    """Drift for one backend.

    Attributes:
        backend: Section name
        label: Human-readable backend name
        missing: Declared but not installed
        extra: Installed but not declared
        error: Listing failure, if the installed state couldn't be read
    """

    backend: str
    label: str
    missing: set[str] = field(default_factory=set)
    extra: set[str] = field(default_factory=set)
    error: str = ""

    @property
    def clean(self) -> bool:
        return not (self.missing or self.extra or self.error)


@dataclass
class DoctorReport:
    """Drift for every checked backend."""

    backends: list[BackendDrift] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return all(drift.clean for drift in self.backends)

    def get(self, backend: str) -> BackendDrift | None:
        return next((d for d in self.backends if d.backend == backend), None)


def diff_names(declared: set[str], installed: set[str]) -> tuple[set[str], set[str]]:
    """Compare declared and installed package names.

    Args:
        declared: Names listed in the manifest
        installed: Names reported by the backend

    Returns:
        Tuple of (missing, extra)
    """
    return declared - installed, installed - declared


async def check_backend(backend: PackageBackend, specs: list[str]) -> BackendDrift:
    """Compute drift for one backend.

    Only names are compared: version pins in the manifest are stripped.

    Args:
        backend: Backend to query
        specs: Raw manifest entries

    Returns:
        Drift for the backend (with ``error`` set if listing failed)
    """
    drift = BackendDrift(backend=backend.name, label=backend.label)
    declared = {backend.parse_spec(raw).name for raw in specs}

    try:
        state = await backend.list_installed()
    except CommandError as e:
        logger.warning("Failed to list installed packages", backend=backend.name, error=str(e))
        drift.error = str(e)
        return drift

    drift.missing, drift.extra = diff_names(declared, state.installed_names())
    return drift


async def run_doctor(
    manifest: Manifest,
    backends: list[PackageBackend],
    options: RunOptions | None = None,
) -> DoctorReport:
    """Check every present package section against the live system.

    Args:
        manifest: Declared state
        backends: Backends to consult
        options: Optional section selector

    Returns:
        Drift report; nothing on the system is changed
    """
    options = options or RunOptions()
    report = DoctorReport()

    for backend in backends:
        section = manifest.package_section(backend.name)
        if section is None or not options.selects(backend.name):
            continue
        report.backends.append(await check_backend(backend, section.packages))

    return report
