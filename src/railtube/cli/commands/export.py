"""Export command implementation."""

from pathlib import Path

import structlog

from railtube.config.loader import write_manifest
from railtube.core.export import EXPORT_HEADER
from railtube.core.manager import Manager

logger = structlog.get_logger()


async def run_export(output: str) -> Path:
    """Write the installed state of the system to a manifest file.

    Args:
        output: Destination path (.toml, or .yaml/.yml for YAML)

    Returns:
        Path of the written manifest
    """
    logger.info("Starting export", output=output)

    manager = Manager()
    manifest = await manager.export()

    path = Path(output)
    write_manifest(manifest, path, header=EXPORT_HEADER)
    manager.reporter.info(f"Environment exported to {path}")

    return path
