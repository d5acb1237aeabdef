"""Run command implementation."""

from pathlib import Path

from railtube.config.loader import load_manifest
from railtube.core.interaction import Reporter
from railtube.core.logging import DEFAULT_ACTION_LOG, ActionLog, get_logger
from railtube.core.manager import Manager
from railtube.system.fetch import is_remote

logger = get_logger(__name__)


async def run_named_script(
    source: str, script_name: str, log_file: str = "", trace: bool = False
) -> bool:
    """Execute a script defined in a manifest.

    Args:
        source: Manifest path or URL
        script_name: Name in the [scripts] section
        log_file: Action log path (defaults to railtube.log)
        trace: Print every command and its output

    Returns:
        True if the script ran, False if the user declined
    """
    manifest = await load_manifest(source)

    reporter = Reporter(action_log=ActionLog(Path(log_file) if log_file else DEFAULT_ACTION_LOG))
    manager = Manager(manifest, reporter=reporter, trace=trace)

    ran = await manager.run_script(script_name, remote_source=is_remote(source))
    logger.info("Run command finished", script=script_name, ran=ran)
    return ran
