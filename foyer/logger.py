"""
Log handlers and formatters for the ``foyer`` logger hierarchy.

Framework modules log through ``logging.getLogger(__name__)``. ``Logger``
attaches handlers to the ``foyer`` logger so those records are written as
JSON lines or coloured text, to the console and optionally a rotating file.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional

ROOT_LOGGER_NAME = "foyer"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[41m",
}
RESET = "\033[0m"

# Record attributes copied into the context of a log line, with their text label
CONTEXT_FIELDS = (("request_path", "path"), ("handler", "handler"), ("environment", "env"))


def _record_context(record: logging.LogRecord, show_environment: bool) -> Dict[str, str]:
    context = {}
    for attribute, _ in CONTEXT_FIELDS:
        if attribute == "environment" and not show_environment:
            continue
        if hasattr(record, attribute):
            context[attribute] = getattr(record, attribute)
    return context


class JSONFormatter(logging.Formatter):
    """Structured (JSON) log lines, one object per record."""

    def __init__(self, default_context: Optional[Dict[str, str]] = None, show_environment: bool = True):
        super().__init__()
        self.default_context = default_context or {}
        self.show_environment = show_environment

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line = {
            "timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }

        context = {**self.default_context, **_record_context(record, self.show_environment)}
        if context:
            line["context"] = context
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)

        return json.dumps(line)


class TextFormatter(logging.Formatter):
    """Human-readable lines: time, level, logger name, message, then key=value context."""

    def __init__(self, default_context: Optional[Dict[str, str]] = None, show_environment: bool = False, colored: bool = True):
        super().__init__(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.default_context = default_context or {}
        self.show_environment = show_environment
        self.colored = colored

    def format(self, record):
        levelname = record.levelname
        if self.colored and levelname in LEVEL_COLORS:
            record.levelname = f"\033[1m{LEVEL_COLORS[levelname]}{levelname}{RESET}"

        # the record is shared with other handlers
        try:
            base = super().format(record)
        finally:
            record.levelname = levelname

        labels = dict(CONTEXT_FIELDS)
        pairs = [
            f"{labels[key]}={value}"
            for key, value in _record_context(record, self.show_environment).items()
        ]
        pairs.extend(f"{key}={value}" for key, value in self.default_context.items())

        if pairs:
            base += " " + " ".join(pairs)
        return base


class EnvironmentFilter(logging.Filter):
    """Stamps the deployment environment on every record a handler emits."""

    def __init__(self, environment: str):
        super().__init__()
        self.environment = environment

    def filter(self, record):
        if not hasattr(record, "environment"):
            record.environment = self.environment
        return True


class Logger:
    """
    Configures a logger (``foyer`` by default) and returns it.

    Calling it again for the same name replaces the handlers installed by the
    previous call.

    Example:
        Logger(level=logging.DEBUG, json_logs=False, environment="dev")
        Logger(log_file="logs/foyer.log", to_console=False)
    """

    def __new__(
        cls,
        name: str = ROOT_LOGGER_NAME,
        level: int = logging.INFO,
        json_logs: bool = True,
        environment: str = "production",
        log_file: Optional[str] = None,
        max_bytes: int = 5_000_000,
        backup_count: int = 3,
        to_console: bool = True,
        default_context: Optional[Dict[str, str]] = None,
        show_environment: bool = False,
        colored_console: bool = True,
    ) -> logging.Logger:
        if json_logs:
            formatter = JSONFormatter(default_context, show_environment)
        else:
            formatter = TextFormatter(default_context, show_environment, colored_console)

        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        environment_filter = EnvironmentFilter(environment)
        for handler in cls._handlers(log_file, max_bytes, backup_count, to_console):
            handler.setFormatter(formatter)
            handler.addFilter(environment_filter)
            logger.addHandler(handler)

        return logger

    @staticmethod
    def _handlers(
        log_file: Optional[str], max_bytes: int, backup_count: int, to_console: bool
    ) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        if log_file:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            handlers.append(
                RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
            )
        if to_console:
            handlers.append(logging.StreamHandler())
        return handlers
