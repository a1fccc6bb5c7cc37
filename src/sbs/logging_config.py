"""
Logging configuration for sbs.

All loggers live under the "sbs" namespace so a single setup call controls
the whole package. The TUI owns the terminal, so it logs to a file only;
the CLI logs warnings and above to the console through Rich.

Usage:
    from sbs.logging_config import get_logger, setup_tui_logging

    setup_tui_logging()
    logger = get_logger("tui")
    logger.info("started")
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "sbs"
DEFAULT_LOG_DIR = Path.home() / ".config" / "sbs" / "logs"

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "%(message)s"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the sbs namespace (e.g. "tui" -> "sbs.tui")."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def level_from_name(name: Optional[str], default: int = logging.INFO) -> int:
    """Map a config level name ("debug", "info", ...) to a logging level."""
    if not name:
        return default
    return LEVELS.get(name.lower(), default)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the root sbs logger.

    Existing handlers are removed so repeated calls don't duplicate output.

    Args:
        level: Minimum level for the sbs logger
        log_file: Optional file to append to (parent dirs are created)
        console: Whether to log to stderr
        rich_console: Use Rich formatting for console output

    Returns:
        The root sbs logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    if console:
        if rich_console:
            handler: logging.Handler = RichHandler(
                show_path=False,
                rich_tracebacks=True,
                markup=False,
            )
            handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handler.setLevel(level)
        logger.addHandler(handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


def setup_tui_logging(
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Set up file-only logging for the TUI (the terminal belongs to Textual)."""
    if log_file is None:
        log_file = DEFAULT_LOG_DIR / "tui.log"
    setup_logging(level=level, log_file=log_file, console=False)
    return get_logger("tui")


def setup_cli_logging(
    level: int = logging.WARNING,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up console logging for CLI commands (warnings and above by default)."""
    setup_logging(level=level, log_file=log_file, console=True, rich_console=True)
    return get_logger("cli")


class StructuredLogger:
    """Logger wrapper that appends key=value context to every message.

    Example:
        log = get_structured_logger("log_executor").with_context(session_id="repo-42")
        log.info("AUDIT: script executed", exit_code=0)
        # -> "AUDIT: script executed | session_id=repo-42 exit_code=0"
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context: Dict[str, Any] = dict(context or {})

    def with_context(self, **kwargs: Any) -> "StructuredLogger":
        """Return a new logger with additional context merged in."""
        merged = dict(self._context)
        merged.update(kwargs)
        return StructuredLogger(self._logger, merged)

    def _format(self, message: str, kwargs: Dict[str, Any]) -> str:
        fields = dict(self._context)
        fields.update(kwargs)
        if not fields:
            return message
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{message} | {rendered}"

    def debug(self, message: str, /, **kwargs: Any) -> None:
        self._logger.debug(self._format(message, kwargs))

    def info(self, message: str, /, **kwargs: Any) -> None:
        self._logger.info(self._format(message, kwargs))

    def warning(self, message: str, /, **kwargs: Any) -> None:
        self._logger.warning(self._format(message, kwargs))

    def error(self, message: str, /, **kwargs: Any) -> None:
        self._logger.error(self._format(message, kwargs))

    def exception(self, message: str, /, **kwargs: Any) -> None:
        self._logger.exception(self._format(message, kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a StructuredLogger wrapping get_logger(name)."""
    return StructuredLogger(get_logger(name))
