"""Logging configuration for railtube using stdlib logging with rich."""

import logging
import sys
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

DEFAULT_ACTION_LOG = Path("railtube.log")


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that formats kwargs as structured context data.

    Context data can be passed as kwargs to logging methods and is
    rendered as a dimmed suffix after the message.

    Example:
        logger = get_logger(__name__)
        logger.info("Installed package", backend="apt", package="git")
        # Output: Installed package [backend=apt package=git]
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Process log message and kwargs to extract context data.

        Args:
            msg: Log message
            kwargs: Keyword arguments including context data

        Returns:
            Tuple of (formatted_message, cleaned_kwargs)
        """
        # Standard library logging kwargs that should not be treated as context
        stdlib_kwargs = {"exc_info", "stack_info", "stacklevel", "extra"}

        context = {k: v for k, v in kwargs.items() if k not in stdlib_kwargs}
        clean_kwargs = {k: v for k, v in kwargs.items() if k in stdlib_kwargs}

        if context:
            context_items = [f"{k}={v}" for k, v in sorted(context.items())]
            context_str = " ".join(context_items)
            msg = f"{msg} [dim][[/dim]{context_str}[dim]][/dim]"

        return msg, clean_kwargs


def setup_logging(verbose: bool = False, trace: bool = False) -> None:
    """Configure structured logging with rich integration.

    Args:
        verbose: Enable debug logging
        trace: Enable trace logging (most verbose)
    """
    log_level = logging.DEBUG if (verbose or trace) else logging.WARNING

    console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=trace,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose or trace,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    # Route structlog loggers through the same handler.
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "") -> StructuredLoggerAdapter:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured logger adapter with structured logging support
    """
    logger = logging.getLogger(name) if name else logging.getLogger(__name__)

    return StructuredLoggerAdapter(logger, {})


class ActionLog:
    """Append-only, line-oriented record of what railtube did.

    A failing sink never aborts the operation being logged; the failure
    is reported once per write on stderr and the line is dropped.
    """

    def __init__(self, path: Path | None = DEFAULT_ACTION_LOG) -> None:
        """Initialize the action log.

        Args:
            path: File to append to, or None to disable the log
        """
        self.path = path

    def write(self, message: str) -> None:
        """Append a message to the log.

        Args:
            message: Human-readable line (may span several lines)
        """
        if self.path is None:
            return

        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(f"{message}\n")
        except OSError as e:
            print(f"Failed to write to action log {self.path}: {e}", file=sys.stderr)
