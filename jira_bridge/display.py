"""
Console and logging setup for the bridge.

Log records go to stderr through rich so that CLI output on stdout (a
resolved email address, for instance) stays machine readable. Two extra
levels sit between INFO and WARNING: NOTICE for noteworthy progress and
SUCCESS for a JIRA connection that answered its probe.
"""

import logging
from pathlib import Path
from typing import Any, Protocol, cast

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

NOTICE = 21
SUCCESS = 25

_EXTRA_LEVELS = {"NOTICE": NOTICE, "SUCCESS": SUCCESS}

FILE_LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"


class ExtendedLogger(Protocol):
    """A ``logging.Logger`` that also has ``notice`` and ``success``."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def notice(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def success(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


console = Console(
    stderr=True,
    theme=Theme(
        {
            "logging.level.debug": "dim",
            "logging.level.info": "blue",
            "logging.level.notice": "cyan",
            "logging.level.success": "bold green",
            "logging.level.warning": "bold yellow",
            "logging.level.error": "bold red",
            "logging.level.critical": "bold red on white",
        },
    ),
)

# Markup stays off: user names and masked addresses such as "john[at]example"
# would otherwise be read as rich tags. ``success`` turns it on per record.
rich_handler = RichHandler(
    console=console,
    markup=False,
    rich_tracebacks=True,
    log_time_format="[%X.%f]",
)


def _success(self: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    if not self.isEnabledFor(SUCCESS):
        return
    extra = dict(kwargs.pop("extra", None) or {})
    extra["markup"] = True
    self._log(SUCCESS, f"[logging.level.success]{escape(msg)}[/]", args, extra=extra, stacklevel=2, **kwargs)


def _notice(self: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(NOTICE):
        self._log(NOTICE, msg, args, stacklevel=2, **kwargs)


def _register_levels() -> None:
    for name, value in _EXTRA_LEVELS.items():
        logging.addLevelName(value, name)
    logging.Logger.success = _success  # type: ignore[attr-defined]
    logging.Logger.notice = _notice  # type: ignore[attr-defined]


def resolve_level(level: str) -> int:
    """Translate a level name, including NOTICE and SUCCESS; unknown names mean INFO."""
    name = level.upper()
    if name in _EXTRA_LEVELS:
        return _EXTRA_LEVELS[name]
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def _file_handler(log_file: str, level: int) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    handler.setLevel(level)
    return handler


def configure_logging(level: str = "INFO", log_file: str | None = None) -> ExtendedLogger:
    """
    (Re)configure the root logger and return the ``jira_bridge`` logger.

    Args:
        level: DEBUG, INFO, NOTICE, SUCCESS, WARNING, ERROR or CRITICAL
        log_file: Also write plain-text records to this file

    Returns:
        The package logger, with ``notice`` and ``success`` available
    """
    _register_levels()
    numeric_level = resolve_level(level)

    handlers: list[logging.Handler] = [rich_handler]
    if log_file:
        handlers.append(_file_handler(log_file, numeric_level))

    logging.basicConfig(level=numeric_level, format="%(message)s", handlers=handlers, force=True)

    logger = logging.getLogger("jira_bridge")
    logger.debug("Logging configured at %s%s", level.upper(), f", file {log_file}" if log_file else "")
    return cast(ExtendedLogger, logger)
