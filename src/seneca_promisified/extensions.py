"""
Extension registry for context wrappers.

Capabilities such as entity support are added to ``SenecaPromisified``
instances by registering named functions here instead of patching the class.
A registered function receives the context it is looked up on as its first
argument.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import MethodType
from typing import Any

from .errors import DuplicateExtensionError, ExtensionError, InvalidHandlerError

logger = logging.getLogger(__name__)

Extension = Callable[..., Any]


class ExtensionRegistry:
    """Registry of named extension functions.

    Contexts look up attributes they do not define in their registry and
    bind the matching function to themselves. Contexts created from one
    another (handler contexts, delegates, plugin contexts) share a registry.
    """

    def __init__(self):
        self._extensions: dict[str, Extension] = {}

    def register(self, name: str, fn: Extension, *, replace: bool = False) -> ExtensionRegistry:
        """Register an extension.

        Args:
            name: Attribute name the extension is exposed under
            fn: Function called as ``fn(context, *args, **kwargs)``
            replace: Overwrite an existing registration instead of failing

        Returns:
            Self for chaining

        Raises:
            DuplicateExtensionError: If the name is taken and ``replace`` is False
        """
        if not name or name.startswith("_"):
            raise ExtensionError(f"Invalid extension name: {name!r}")
        if not callable(fn):
            raise InvalidHandlerError(f"Extension '{name}' must be callable")
        if name in self._extensions and not replace:
            raise DuplicateExtensionError(name)

        self._extensions[name] = fn
        logger.debug(f"Registered extension: {name}")
        return self

    def unregister(self, name: str) -> bool:
        """Unregister an extension.

        Returns:
            True if the extension was removed, False if not found
        """
        if self._extensions.pop(name, None) is not None:
            logger.debug(f"Unregistered extension: {name}")
            return True
        return False

    def use(self, installer: Callable[[ExtensionRegistry], Any]) -> ExtensionRegistry:
        """Run an installer that registers one or more extensions."""
        installer(self)
        return self

    def get(self, name: str) -> Extension | None:
        return self._extensions.get(name)

    def bind(self, name: str, target: Any) -> Callable[..., Any] | None:
        """Return the extension bound to ``target``, or None."""
        fn = self._extensions.get(name)
        if fn is None:
            return None
        return MethodType(fn, target)

    def names(self) -> list[str]:
        return list(self._extensions)

    def __contains__(self, name: object) -> bool:
        return name in self._extensions

    def __len__(self) -> int:
        return len(self._extensions)


default_extensions = ExtensionRegistry()


__all__ = [
    "Extension",
    "ExtensionRegistry",
    "default_extensions",
]
