"""Run named scripts from the manifest."""

from railtube.config.models import Manifest
from railtube.core.errors import UnknownScriptError
from railtube.core.interaction import Confirm, Reporter, confirm
from railtube.core.logging import get_logger
from railtube.system.worker import Worker

logger = get_logger(__name__)


async def run_script(
    manifest: Manifest,
    name: str,
    system: Worker,
    remote_source: bool,
    reporter: Reporter | None = None,
    confirm_fn: Confirm = confirm,
) -> bool:
    """Run a script from the [scripts] section.

    Scripts from a remote manifest always require confirmation, whatever
    the reconciliation settings are.

    Args:
        manifest: Loaded manifest
        name: Script name
        system: System worker
        remote_source: Whether the manifest was fetched over the network
        reporter: Output sink
        confirm_fn: Yes/no prompt

    Returns:
        True if the script ran, False if the user declined

    Raises:
        UnknownScriptError: If the script is not defined
        CommandError: If the script fails
    """
    reporter = reporter or Reporter()

    if manifest.scripts is None or name not in manifest.scripts.commands:
        raise UnknownScriptError(name)

    command = manifest.scripts.commands[name]
    reporter.info(f"Running script '{name}': {command}", record=True)

    if remote_source:
        reporter.warning(
            "Executing a script from a remote source. It can run arbitrary code on this machine."
        )
        if not confirm_fn("Do you want to proceed?"):
            reporter.info("Script execution aborted by user.")
            return False

    outcome = await system.run_shell(command)
    if outcome.stdout:
        reporter.info(outcome.stdout.rstrip())

    logger.info("Script finished", script=name)
    return True
