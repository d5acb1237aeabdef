"""Apply command implementation."""

from pathlib import Path

from railtube.config.loader import load_manifest
from railtube.config.models import RunOptions
from railtube.core.interaction import Reporter
from railtube.core.logging import DEFAULT_ACTION_LOG, ActionLog, get_logger
from railtube.core.manager import Manager
from railtube.core.plan import ItemStatus, RunSummary

logger = get_logger(__name__)


async def run_apply(
    source: str,
    options: RunOptions,
    log_file: str = "",
    trace: bool = False,
) -> RunSummary:
    """Execute the apply command to reconcile the host with a manifest.

    Args:
        source: Manifest path or URL
        options: Execution mode and section selector
        log_file: Action log path (defaults to railtube.log)
        trace: Print every command and its output

    Returns:
        Summary of the run
    """
    logger.info("Starting apply", source=source, mode=options.mode.value)

    manifest = await load_manifest(source)

    reporter = Reporter(action_log=ActionLog(Path(log_file) if log_file else DEFAULT_ACTION_LOG))
    manager = Manager(manifest, reporter=reporter, trace=trace)
    summary = await manager.apply(options)

    reporter.info(format_summary(summary))
    return summary


def format_summary(summary: RunSummary) -> str:
    """Build a one-line summary of an apply run.

    Args:
        summary: Run summary

    Returns:
        Summary line
    """
    counts = [
        (ItemStatus.INSTALLED, "installed"),
        (ItemStatus.SKIPPED, "already present"),
        (ItemStatus.PREVIEWED, "previewed"),
        (ItemStatus.DECLINED, "declined"),
        (ItemStatus.FAILED, "failed"),
        (ItemStatus.NOT_DISPATCHED, "not attempted"),
    ]
    parts = [f"{summary.count(status)} {text}" for status, text in counts if summary.count(status)]
    status = "Apply finished" if summary.success else "Apply finished with errors"
    return f"{status}: {', '.join(parts) or 'nothing to do'}."
