"""
SolForge - Logging

One "solforge" logger for the whole package. Development output is a short
human-readable line; production output is one JSON object per record so
parse, merge and sandbox events can be filtered by event_type.

Usage:
    from solforge.core.logging_config import logger

    logger.info("[Parser] ...")
    logger.log_parse_event("stream", files=3, directories=2, commands=1)
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List

from solforge.core.config import settings

LOGGER_NAME = "solforge"

DEV_CONSOLE_FORMAT = "%(levelname)-8s | %(message)s"
DEV_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(project_id)s] | "
    "%(module)s.%(funcName)s:%(lineno)d | %(message)s"
)
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "asyncio")

# Request / stream correlation
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
project_id_var: ContextVar[str] = ContextVar('project_id', default='')


def get_request_id() -> str:
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_project_id() -> str:
    return project_id_var.get() or ''


def set_project_id(project_id: str) -> None:
    project_id_var.set(project_id)


def generate_request_id() -> str:
    """Short random id for correlating the log lines of one request"""
    return uuid.uuid4().hex[:8]


def current_context() -> Dict[str, str]:
    """Non-empty context variables"""
    context = {"request_id": get_request_id(), "project_id": get_project_id()}
    return {key: value for key, value in context.items() if value}


# Attributes every LogRecord carries; anything else came in through extra=
_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "request_id", "project_id",
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extra= fields flattened in"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(current_context())

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith('_'):
                payload[key] = value

        return json.dumps(payload, default=str)


class ContextualFormatter(logging.Formatter):
    """Plain-text formatter exposing request_id / project_id to the format string"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.project_id = get_project_id() or '-'
        return super().format(record)


class SolforgeLogger(logging.Logger):
    """Logger with one helper per structured event the engine emits"""

    def log_parse_event(self, source: str, files: int, directories: int,
                        commands: int, **kwargs) -> None:
        self.debug(
            f"Parse {source}: {files} files, {directories} dirs, {commands} commands",
            extra={"event_type": "parse", "parse_source": source, "files": files,
                   "directories": directories, "commands": commands, **kwargs}
        )

    def log_merge_event(self, layers: int, files: int, overridden: int,
                        protected: int = 0, **kwargs) -> None:
        self.debug(
            f"Merge of {layers} layers: {files} files ({overridden} overridden, {protected} protected)",
            extra={"event_type": "merge", "layers": layers, "files": files,
                   "overridden": overridden, "protected": protected, **kwargs}
        )

    def log_sandbox_event(self, event: str, success: bool = True, **kwargs) -> None:
        """Sandbox lifecycle; failures are warnings"""
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Sandbox {event}: {'ok' if success else 'failed'}",
            extra={"event_type": "sandbox", "sandbox_event": event,
                   "sandbox_success": success, **kwargs}
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        self.error(
            f"Error in {context}: {type(error).__name__}: {error}",
            exc_info=True,
            extra={"event_type": "error", "error_type": type(error).__name__,
                   "error_context": context, **kwargs}
        )

    def log_performance(self, operation: str, duration_ms: float,
                        threshold_ms: float = 50, **kwargs) -> None:
        """Timing at debug level, promoted to a warning over the threshold"""
        exceeded = duration_ms > threshold_ms
        message = f"Performance: {operation} took {duration_ms:.2f}ms"
        if exceeded:
            message += f" (threshold: {threshold_ms}ms)"
        self.log(
            logging.WARNING if exceeded else logging.DEBUG,
            message,
            extra={"event_type": "performance", "operation": operation,
                   "duration_ms": duration_ms, "threshold_ms": threshold_ms,
                   "exceeded_threshold": exceeded, **kwargs}
        )


def _build_handlers(json_logs: bool) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.INFO)
    console.setFormatter(JSONFormatter() if json_logs else ContextualFormatter(DEV_CONSOLE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=10 if json_logs else 5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter() if json_logs else ContextualFormatter(DEV_FILE_FORMAT))
        handlers.append(file_handler)

    return handlers


def setup_logging() -> SolforgeLogger:
    """(Re)configure the package logger from settings"""
    logging.setLoggerClass(SolforgeLogger)
    log = logging.getLogger(LOGGER_NAME)
    log.__class__ = SolforgeLogger  # already created before setLoggerClass
    log.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    log.handlers.clear()
    for handler in _build_handlers(json_logs=settings.is_production):
        log.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log.debug(
        "Logging initialized",
        extra={"environment": settings.ENVIRONMENT, "log_level": settings.LOG_LEVEL,
               "json_logging": settings.is_production}
    )
    return log


logger: SolforgeLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'current_context',
    'get_request_id',
    'set_request_id',
    'get_project_id',
    'set_project_id',
    'generate_request_id',
    'SolforgeLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
