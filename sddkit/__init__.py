"""Install, track and roll back commandset template bundles in a project."""

import logging

import click

__version__ = "0.1.0"

_debug_enabled = False


def set_debug(enabled: bool):
    """Enable or disable debug mode globally."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


class ClickEchoHandler(logging.Handler):
    """Logging handler that writes records to stderr through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(debug: bool = False) -> None:
    """Route package log records to stderr for CLI use.

    Debug mode shows engine progress messages; otherwise only warnings and
    errors are printed.
    """
    set_debug(debug)
    logger = logging.getLogger(__name__)
    if not any(isinstance(h, ClickEchoHandler) for h in logger.handlers):
        handler = ClickEchoHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)


__all__ = [
    "__version__",
    "set_debug",
    "is_debug",
    "ClickEchoHandler",
    "setup_logging",
]
