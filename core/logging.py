"""
Logging for the verifier

Log lines go to stderr so that command output on stdout stays machine
readable. Context bound with ``get_logger(name, **context)`` (package,
record index, task id) is emitted as JSON fields, or appended as
``key=value`` pairs in text mode.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.config import settings

# Extra keys attached by LoggerAdapter; shown by the text formatter when set
CONTEXT_FIELDS = ("domain", "item_index", "task_id")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding app and integration fields"""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["app"] = settings.app_name
        log_record["version"] = settings.app_version
        log_record["source_tag"] = settings.bounceban_source_tag
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class ContextTextFormatter(logging.Formatter):
    """Plain text formatter that appends bound context as key=value"""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{field}={getattr(record, field)}" for field in CONTEXT_FIELDS if hasattr(record, field)
        )
        return f"{line} [{context}]" if context else line


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger

    Args:
        level: Overrides ``LOG_LEVEL``
        log_format: ``json`` or ``text``; overrides ``LOG_FORMAT``
    """
    level = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        handler.setFormatter(
            ContextTextFormatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")
        )
    root_logger.addHandler(handler)

    # Request lines are logged by the gateway itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter merging bound context into every record's extra fields"""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def with_context(self, **context) -> "LoggerAdapter":
        """Child adapter with additional bound context"""
        return LoggerAdapter(self.logger, {**self.extra, **context})


def get_logger(name: str, **context) -> LoggerAdapter:
    """Logger for ``name`` carrying ``context`` on every record"""
    return LoggerAdapter(logging.getLogger(name), context)


setup_logging()
