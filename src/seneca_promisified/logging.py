"""
Structured logging for seneca-promisified.

Every bridged call produces two DEBUG records sharing a trace id: one when
the call is handed to the wrapped instance and one when its future settles.
Output is JSON or plain text, selected by ``LoggingConfig.format``.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import LoggingConfig


# =============================================================================
# Log Record Types
# =============================================================================


@dataclass
class LogContext:
    """Fields attached to every record emitted while the context is active."""

    trace_id: str | None = None
    operation: str | None = None
    pattern: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in asdict(self).items() if v is not None and k != "extra"}
        d.update(self.extra)
        return d

    def with_update(self, **kwargs) -> LogContext:
        extra = {**self.extra, **kwargs.pop("extra", {})}
        return LogContext(
            trace_id=kwargs.get("trace_id", self.trace_id),
            operation=kwargs.get("operation", self.operation),
            pattern=kwargs.get("pattern", self.pattern),
            extra=extra,
        )


@dataclass
class CallLog:
    """Settlement of one bridged call."""

    operation: str
    success: bool = True
    trace_id: str | None = None
    pattern: str | None = None
    error: str | None = None
    duration_ms: float | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger:
    """
    Thin layer over a stdlib logger that renders records with context fields.

    Example:
        ```python
        logger = get_logger()

        with logger.trace_context(operation="act") as trace_id:
            logger.log_dispatch("act", "cmd:ping")
        ```
    """

    def __init__(
        self,
        name: str = "seneca_promisified",
        level: str = "INFO",
        json_output: bool = False,
    ):
        self.name = name
        self.json_output = json_output
        self._context = LogContext()

        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper()))
        self._install_handler()

    def _install_handler(self) -> None:
        formatter = JSONFormatter() if self.json_output else TextFormatter()
        owned = [h for h in self._logger.handlers if getattr(h, "_seneca_owned", False)]
        if owned:
            for handler in owned:
                handler.setFormatter(formatter)
        elif not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler._seneca_owned = True  # type: ignore[attr-defined]
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    @property
    def context(self) -> LogContext:
        return self._context

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    @contextmanager
    def trace_context(self, trace_id: str | None = None, **kwargs) -> Iterator[str]:
        """Attach a trace id (generated when not given) and extra fields to records logged inside."""
        trace_id = trace_id or generate_trace_id()
        previous = self._context
        self._context = previous.with_update(trace_id=trace_id, **kwargs)
        try:
            yield trace_id
        finally:
            self._context = previous

    def _log(
        self,
        level: int,
        message: str,
        event_type: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return

        record = {"message": message, **self._context.to_dict()}
        if event_type:
            record["event_type"] = event_type
        if data:
            record.update(data)

        if self.json_output:
            self._logger.log(level, json.dumps(record, default=str))
        else:
            fields = " ".join(f"{k}={v}" for k, v in record.items() if k != "message")
            self._logger.log(level, f"{message} {fields}".rstrip())

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, data=kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, data=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, data=kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, data=kwargs)

    def log_dispatch(self, operation: str, pattern: str | None = None) -> None:
        """Record a call handed to the wrapped instance."""
        data = {"operation": operation}
        if pattern:
            data["pattern"] = pattern
        self._log(logging.DEBUG, f"{operation} dispatched", event_type="dispatch", data=data)

    def log_call(self, call: CallLog) -> None:
        """Record the settlement of a bridged call."""
        outcome = "settled" if call.success else "failed"
        message = f"{call.operation} {outcome}"
        if call.duration_ms is not None:
            message += f" ({call.duration_ms:.1f}ms)"
        self._log(logging.DEBUG, message, event_type="settle", data=call.to_dict())

    def log_error(self, error: BaseException, message: str | None = None, **kwargs) -> None:
        """Record an adapter-side failure, including the error code and context of package errors."""
        data = {"error_type": type(error).__name__, "error_message": str(error), **kwargs}
        code = getattr(error, "code", None)
        if code is not None and hasattr(code, "value"):
            data["error_code"] = str(code.value)
        context = getattr(error, "context", None)
        if context is not None and hasattr(context, "to_dict"):
            data["error_context"] = context.to_dict()
        self._log(logging.ERROR, message or f"Error: {error}", event_type="error", data=data)


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Emit one JSON object per record, merging JSON payloads produced by StructuredLogger."""

    def format(self, record: logging.LogRecord) -> str:
        output = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        message = record.getMessage()
        try:
            payload = json.loads(message)
        except (json.JSONDecodeError, TypeError):
            payload = None
        if isinstance(payload, dict):
            output.update(payload)
        else:
            output["message"] = message

        if record.exc_info:
            output["exception"] = self.formatException(record.exc_info)

        return json.dumps(output, default=str)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL message`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        return f"{timestamp} {record.levelname:8} {record.getMessage()}"


# =============================================================================
# Utilities
# =============================================================================


def generate_trace_id() -> str:
    return f"trace_{uuid.uuid4().hex[:16]}"


def truncate_for_log(text: str, max_length: int = 200) -> str:
    """Truncate text for logging."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... ({len(text)} chars total)"


def describe_pattern(pattern: Any) -> str:
    """Render an action pattern compactly for log fields."""
    if isinstance(pattern, str):
        return truncate_for_log(pattern)
    if isinstance(pattern, dict):
        return truncate_for_log(",".join(f"{k}:{v}" for k, v in pattern.items()))
    return truncate_for_log(repr(pattern))


@dataclass
class Timer:
    """Measures the time between creation and ``stop()`` in milliseconds."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    def stop(self) -> float:
        self.end_time = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000


# =============================================================================
# Global Logger
# =============================================================================

_default_logger: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    """Return the package logger, building it from ``get_settings().logging`` on first use."""
    if _default_logger is None:
        from .config import get_settings

        return configure_from_settings(get_settings().logging)
    return _default_logger


def configure_logging(level: str = "INFO", json_output: bool = False) -> StructuredLogger:
    """Replace the package logger."""
    global _default_logger
    _default_logger = StructuredLogger(level=level, json_output=json_output)
    return _default_logger


def configure_from_settings(config: LoggingConfig) -> StructuredLogger:
    """Replace the package logger with one matching a LoggingConfig section."""
    return configure_logging(level=config.level, json_output=config.format == "json")


def reset_logging() -> None:
    """Drop the package logger so the next get_logger() rebuilds it from settings."""
    global _default_logger
    _default_logger = None


__all__ = [
    "LogContext",
    "CallLog",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "Timer",
    "generate_trace_id",
    "truncate_for_log",
    "describe_pattern",
    "get_logger",
    "configure_logging",
    "configure_from_settings",
    "reset_logging",
]
