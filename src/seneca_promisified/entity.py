"""
Awaitable wrapper around entity records.

``SenecaEntity`` mirrors the data fields of the record made by the wrapped
instance's ``make``. Fields are read and assigned directly on the wrapper;
``save_``, ``load_``, ``list_`` and ``remove_`` return futures resolving to
new wrappers.

Naming conventions (see ``EntityConfig``):
- Members ending with the reserved suffix (``_``) are operations, not data
- Members starting with the private prefix (``_``) are wrapper internals
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Callable

from .bridge import map_future, promisify, running_loop
from .config import EntityConfig, get_settings

if TYPE_CHECKING:
    from .context import SenecaPromisified
    from .extensions import ExtensionRegistry


def _forwarded(name: str) -> Callable[..., Any]:
    def accessor(self: SenecaEntity, *args: Any, **kwargs: Any) -> Any:
        return getattr(self._entity, name)(*args, **kwargs)

    accessor.__name__ = name
    accessor.__qualname__ = f"SenecaEntity.{name}"
    accessor.__doc__ = f"Call ``{name}`` on the wrapped record and return its result."
    return accessor


class SenecaEntity:
    """
    Wraps the record returned by the wrapped instance's ``make``.

    The ``fields_``, ``is_``, ``canon_``, ``native_``, ``data_`` and
    ``clone_`` methods behave exactly like the record's own.

    Example:
        ```python
        person = seneca.make("person")
        person.id = 1
        person.name = "foobar"
        saved = await person.save_()
        ```
    """

    # The record and config live in slots so vars(self) holds data fields only.
    __slots__ = ("_entity", "_config", "__dict__")

    def __init__(self, entity: Any, *, config: EntityConfig | None = None):
        self._entity = entity
        self._config = config if config is not None else get_settings().entity
        self._pull_fields()

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._wrapper_fields())
        return f"{type(self).__name__}({fields})"

    # =========================================================================
    # Field synchronisation
    # =========================================================================

    def _is_reserved(self, name: str) -> bool:
        return name.endswith(self._config.reserved_suffix)

    def _is_private(self, name: str) -> bool:
        return name.startswith(self._config.private_prefix)

    def _wrapper_fields(self) -> Iterator[tuple[str, Any]]:
        for name, value in list(vars(self).items()):
            if not self._is_reserved(name) and not self._is_private(name):
                yield name, value

    def _entity_fields(self) -> Iterator[tuple[str, Any]]:
        entity = self._entity
        if isinstance(entity, Mapping):
            items = list(entity.items())
        else:
            # Private attributes of a record object are its own state.
            items = [(k, v) for k, v in vars(entity).items() if not self._is_private(k)]
        for name, value in items:
            if not self._is_reserved(name):
                yield name, value

    def _clear_entity(self) -> None:
        entity = self._entity
        for name, _ in list(self._entity_fields()):
            if isinstance(entity, MutableMapping):
                del entity[name]
            else:
                delattr(entity, name)

    def _push_fields(self) -> None:
        entity = self._entity
        for name, value in self._wrapper_fields():
            if isinstance(entity, MutableMapping):
                entity[name] = value
            else:
                setattr(entity, name, value)

    def _pull_fields(self) -> None:
        for name, value in self._entity_fields():
            if not self._is_private(name):
                setattr(self, name, value)

    def _sync_entity(self) -> None:
        # Clear first so fields deleted from the wrapper do not survive.
        self._clear_entity()
        self._push_fields()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _wrap(self, record: Any) -> SenecaEntity | None:
        if record is None:
            return None
        return type(self)(record, config=self._config)

    def _wrap_list(self, records: Any) -> Any:
        if not self._config.wrap_list_results:
            return records
        return [self._wrap(record) for record in (records or [])]

    def _call(self, operation: str, opt: Any, transform: Callable[[Any], Any]) -> asyncio.Future:
        running_loop(operation)
        call = promisify(getattr(self._entity, operation), operation=operation)
        if opt is not None:
            return map_future(call(opt), transform)
        self._sync_entity()
        return map_future(call(), transform)

    def save_(self, data: Any = None) -> asyncio.Future:
        """
        Save the record.

        Args:
            data: Optional payload handed to the record's ``save_`` unchanged.
                If not given, the record is first made to hold exactly the
                wrapper's current data fields.

        Returns:
            Future resolving to a new ``SenecaEntity`` for the saved record.
        """
        return self._call("save_", data, self._wrap)

    def load_(self, query: Any = None) -> asyncio.Future:
        """
        Load a record.

        Returns:
            Future resolving to a new ``SenecaEntity``, or ``None`` when the
            record's ``load_`` reports nothing found.

        Example:
            ```python
            funny_joe = await seneca.make("person").load_({"funny": True, "name": "Joe"})
            ```
        """
        return self._call("load_", query, self._wrap)

    def list_(self, query: Any = None) -> asyncio.Future:
        """
        List records matching ``query``.

        The query language depends on the store plugin used by the wrapped
        instance. Each record is wrapped in its own ``SenecaEntity`` unless
        ``EntityConfig.wrap_list_results`` is disabled.

        Example:
            ```python
            all_persons = await seneca.make("person").list_({"all_": True})
            ```
        """
        return self._call("list_", query, self._wrap_list)

    def remove_(self, query: Any = None) -> asyncio.Future:
        """
        Remove records.

        Args:
            query: Query handed to the record's ``remove_``. If not given the
                wrapper's own fields identify the record.

        Returns:
            Future resolving to ``None``.
        """
        return self._call("remove_", query, lambda _: None)

    fields_ = _forwarded("fields_")
    is_ = _forwarded("is_")
    canon_ = _forwarded("canon_")
    native_ = _forwarded("native_")
    data_ = _forwarded("data_")
    clone_ = _forwarded("clone_")


RESERVED_ACCESSORS = ("fields_", "is_", "canon_", "native_", "data_", "clone_")


def make(context: SenecaPromisified, *args: Any) -> SenecaEntity:
    """Create a record through the context's wrapped instance and wrap it."""
    entity = context.seneca.make(*args)
    return SenecaEntity(entity, config=context.settings.entity)


def install(registry: ExtensionRegistry) -> None:
    """Expose ``make`` and ``make_`` on contexts using ``registry``."""
    registry.register("make", make, replace=True)
    registry.register("make_", make, replace=True)


__all__ = [
    "SenecaEntity",
    "RESERVED_ACCESSORS",
    "make",
    "install",
]
