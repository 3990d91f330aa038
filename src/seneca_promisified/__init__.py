"""
Top-level package for seneca-promisified.

Wraps a callback-based Seneca-style instance so that its asynchronous API
returns awaitable futures, and lets handlers and plugins receive a wrapped
context as an argument.
"""
from .bridge import completes_future, promisify
from .config import EntityConfig, LoggingConfig, Settings, configure, get_settings, load_env
from .context import SenecaPromisified, promisify_seneca
from .entity import SenecaEntity
from .entity import install as install_entities
from .errors import (
    ConfigError,
    DelegateError,
    DuplicateExtensionError,
    EventLoopError,
    InvalidHandlerError,
    NotInActionError,
    SenecaPromisifiedError,
    UnknownExtensionError,
)
from .extensions import ExtensionRegistry, default_extensions
from .sync import act_sync, close_sync, ready_sync

__version__ = "0.1.0"

__all__ = [
    "SenecaPromisified",
    "SenecaEntity",
    "promisify_seneca",
    "install_entities",
    "ExtensionRegistry",
    "default_extensions",
    "completes_future",
    "promisify",
    "Settings",
    "EntityConfig",
    "LoggingConfig",
    "configure",
    "get_settings",
    "load_env",
    "SenecaPromisifiedError",
    "EventLoopError",
    "NotInActionError",
    "InvalidHandlerError",
    "DelegateError",
    "DuplicateExtensionError",
    "UnknownExtensionError",
    "ConfigError",
    "act_sync",
    "ready_sync",
    "close_sync",
]
