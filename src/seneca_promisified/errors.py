"""
Error taxonomy for seneca-promisified.

The adapter never re-classifies errors coming from the wrapped framework:
an exception handed to a continuation is raised unchanged from the awaited
future. The classes below only cover failures the adapter itself detects:
- Missing event loop when a future has to be created
- Misuse of handler-only operations such as ``prior``
- Extension registry conflicts
- Invalid configuration
- Error values that are not exceptions (wrapped so they can be raised)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for the adapter."""

    # Adapter errors (1xxx)
    ADAPTER_ERROR = "ERR_1000"
    EVENT_LOOP_UNAVAILABLE = "ERR_1001"
    NOT_IN_ACTION = "ERR_1002"
    INVALID_HANDLER = "ERR_1003"

    # Delegate errors (2xxx)
    DELEGATE_ERROR = "ERR_2000"

    # Extension errors (3xxx)
    EXTENSION_ERROR = "ERR_3000"
    DUPLICATE_EXTENSION = "ERR_3001"
    UNKNOWN_EXTENSION = "ERR_3002"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    operation: str | None = None
    pattern: Any = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "pattern": self.pattern,
            **self.extra,
        }


class SenecaPromisifiedError(Exception):
    """
    Base exception for errors raised by the adapter itself.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.operation:
            parts.append(f"(operation={self.context.operation})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Adapter Errors
# =============================================================================


class EventLoopError(SenecaPromisifiedError, RuntimeError):
    """No usable event loop to settle a future on."""

    code = ErrorCode.EVENT_LOOP_UNAVAILABLE

    def __init__(self, operation: str, message: str | None = None, **kwargs):
        super().__init__(
            message
            or (
                f"{operation}() must be called from a running event loop. "
                "Await it inside a coroutine or use the helpers in seneca_promisified.sync."
            ),
            context=ErrorContext(operation=operation),
            **kwargs,
        )


class NotInActionError(SenecaPromisifiedError):
    """A handler-only operation was used outside of an action handler."""

    code = ErrorCode.NOT_IN_ACTION

    def __init__(self, operation: str = "prior", **kwargs):
        super().__init__(
            f"{operation}() is only available on the context passed to an action handler",
            context=ErrorContext(operation=operation),
            **kwargs,
        )


class InvalidHandlerError(SenecaPromisifiedError, TypeError):
    """The value given as a handler or plugin is not callable."""

    code = ErrorCode.INVALID_HANDLER


# =============================================================================
# Delegate Errors
# =============================================================================


class DelegateError(SenecaPromisifiedError):
    """
    Carries an error value that is not an exception.

    Continuations may report failure with any non-``None`` value; futures can
    only be rejected with exceptions, so such values travel in ``value``.
    """

    code = ErrorCode.DELEGATE_ERROR

    def __init__(self, value: Any, **kwargs):
        super().__init__(f"Delegate reported an error: {value!r}", **kwargs)
        self.value = value


# =============================================================================
# Extension Errors
# =============================================================================


class ExtensionError(SenecaPromisifiedError):
    """Base class for extension registry errors."""

    code = ErrorCode.EXTENSION_ERROR


class DuplicateExtensionError(ExtensionError, ValueError):
    """An extension with the same name is already registered."""

    code = ErrorCode.DUPLICATE_EXTENSION

    def __init__(self, name: str, **kwargs):
        super().__init__(f"Extension '{name}' is already registered", **kwargs)
        self.name = name


class UnknownExtensionError(ExtensionError, AttributeError):
    """Neither an attribute nor a registered extension exists under this name."""

    code = ErrorCode.UNKNOWN_EXTENSION

    def __init__(self, owner: str, name: str, **kwargs):
        super().__init__(f"'{owner}' object has no attribute or extension '{name}'", **kwargs)
        self.name = name


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(SenecaPromisifiedError, ValueError):
    """Invalid configuration value."""

    code = ErrorCode.CONFIG_ERROR


# =============================================================================
# Utilities
# =============================================================================


def as_exception(err: Any) -> BaseException:
    """
    Return ``err`` itself when it is an exception, else wrap it in ``DelegateError``.

    Args:
        err: Error value received from a continuation

    Returns:
        An exception suitable for ``Future.set_exception``
    """
    if isinstance(err, BaseException):
        return err
    return DelegateError(err)


__all__ = [
    # Base
    "ErrorCode",
    "ErrorContext",
    "SenecaPromisifiedError",
    # Adapter errors
    "EventLoopError",
    "NotInActionError",
    "InvalidHandlerError",
    # Delegate errors
    "DelegateError",
    # Extension errors
    "ExtensionError",
    "DuplicateExtensionError",
    "UnknownExtensionError",
    # Config errors
    "ConfigError",
    # Utilities
    "as_exception",
]
