"""Capture the installed state of the system as a manifest."""

from railtube.config.models import Manifest, PackageSection
from railtube.core.logging import get_logger
from railtube.packages.base import PackageBackend

logger = get_logger(__name__)

EXPORT_HEADER = (
    "Exported by railtube.\n"
    "NOTE: the system, deb and scripts sections are not exported. System updates\n"
    "are actions, .deb URLs and scripts are definitions; none of them can be\n"
    "reconstructed from what is installed."
)


async def export_manifest(backends: list[PackageBackend]) -> Manifest:
    """Build a manifest describing what is currently installed.

    Args:
        backends: Backends to query

    Returns:
        Manifest with one package section per backend, names sorted

    Raises:
        CommandError: If any backend cannot list its packages
    """
    sections: dict[str, PackageSection] = {}

    for backend in backends:
        state = await backend.list_installed()
        names = sorted(state.installed_names())
        sections[backend.name] = PackageSection(packages=names)
        logger.info("Exported backend", backend=backend.name, count=len(names))

    return Manifest(**sections)
