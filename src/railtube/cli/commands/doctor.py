"""Doctor command implementation."""

import structlog

from railtube.config.loader import load_manifest
from railtube.core.doctor import DoctorReport
from railtube.core.interaction import Reporter
from railtube.core.manager import Manager

logger = structlog.get_logger()


async def run_doctor_command(source: str, reporter: Reporter | None = None) -> DoctorReport:
    """Execute the doctor command to report drift.

    Args:
        source: Manifest path or URL
        reporter: Output sink

    Returns:
        Drift report
    """
    reporter = reporter or Reporter()
    logger.info("Starting doctor", source=source)

    manifest = await load_manifest(source)
    reporter.info(f"Running railtube doctor for: {source}")

    manager = Manager(manifest, reporter=reporter)
    report = await manager.doctor()

    print_report(report, reporter)
    return report


def print_report(report: DoctorReport, reporter: Reporter) -> None:
    """Print a drift report.

    Args:
        report: Drift report
        reporter: Output sink
    """
    for drift in report.backends:
        if drift.error:
            reporter.warning(f"Failed to list installed {drift.label} packages: {drift.error}")
            continue

        if drift.missing:
            reporter.info(f"\n{drift.label} packages listed in manifest but not installed:")
            for name in sorted(drift.missing):
                reporter.info(f"- {name}")

        if drift.extra:
            reporter.info(f"\n{drift.label} packages installed but not listed in manifest:")
            for name in sorted(drift.extra):
                reporter.info(f"- {name}")

    if report.clean:
        reporter.info("No drift detected.")
