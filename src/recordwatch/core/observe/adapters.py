"""Record adapters - feature detection for observable containers.

``adapt()`` decides whether an object can be observed and returns an
adapter exposing the record capability (ordered keys, value lookup,
extensibility) for it. The engine only ever talks to adapters.

Supported containers, in detection order:
- objects implementing ``ObservableRecord`` themselves (e.g. ``Record``)
- mappings (keys in iteration order)
- sequences other than strings and bytes (keys are indices)
- objects with a ``__dict__`` (public attributes only)
- objects with ``__slots__`` (public slots that are set)
"""

import dataclasses
from collections.abc import Hashable, Mapping, MutableMapping, MutableSequence, Sequence
from numbers import Number
from typing import Any

from recordwatch.core.exceptions import InvalidArgument
from recordwatch.domain.entities.record import ObservableRecord

_SCALAR_TYPES = (str, bytes, bytearray, memoryview, Number, type(None))


class RecordAdapter:
    """Base adapter. Subclasses override the three capability methods."""

    kind = "record"

    def __init__(self, record: Any) -> None:
        self.record = record

    def keys(self) -> list[Hashable]:
        raise NotImplementedError

    def get(self, key: Hashable) -> Any:
        raise NotImplementedError

    def is_extensible(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({type(self.record).__name__})"


class NativeAdapter(RecordAdapter):
    """Delegates to a record that implements the capability itself."""

    kind = "native"

    def keys(self) -> list[Hashable]:
        return list(self.record.keys())

    def get(self, key: Hashable) -> Any:
        return self.record.get(key)

    def is_extensible(self) -> bool:
        return bool(self.record.is_extensible())


class MappingAdapter(RecordAdapter):
    """Plain mappings. Read-only mappings are not extensible."""

    kind = "mapping"

    def keys(self) -> list[Hashable]:
        return list(self.record.keys())

    def get(self, key: Hashable) -> Any:
        return self.record[key]

    def is_extensible(self) -> bool:
        return isinstance(self.record, MutableMapping)


class SequenceAdapter(RecordAdapter):
    """Lists and tuples, indexed by position."""

    kind = "sequence"

    def keys(self) -> list[Hashable]:
        return list(range(len(self.record)))

    def get(self, key: Hashable) -> Any:
        return self.record[key]

    def is_extensible(self) -> bool:
        return isinstance(self.record, MutableSequence)


class AttributeAdapter(RecordAdapter):
    """Plain objects. Underscore-prefixed attributes are not enumerable."""

    kind = "attributes"

    def keys(self) -> list[Hashable]:
        return [name for name in vars(self.record) if not name.startswith("_")]

    def get(self, key: Hashable) -> Any:
        return vars(self.record)[key]

    def is_extensible(self) -> bool:
        record = self.record
        if dataclasses.is_dataclass(record) and not isinstance(record, type):
            return not record.__dataclass_params__.frozen
        return True


class SlotsAdapter(RecordAdapter):
    """Objects with ``__slots__`` and no ``__dict__``. Never extensible."""

    kind = "slots"

    def __init__(self, record: Any) -> None:
        super().__init__(record)
        names: list[str] = []
        for klass in reversed(type(record).__mro__):
            slots = getattr(klass, "__slots__", ())
            if isinstance(slots, str):
                slots = (slots,)
            for name in slots:
                if name not in names and not name.startswith("_"):
                    names.append(name)
        self._slot_names = names

    def keys(self) -> list[Hashable]:
        return [name for name in self._slot_names if hasattr(self.record, name)]

    def get(self, key: Hashable) -> Any:
        return getattr(self.record, key)

    def is_extensible(self) -> bool:
        return False


def is_container(obj: Any) -> bool:
    """Check whether ``obj`` can be observed, without raising."""
    try:
        adapt(obj)
    except InvalidArgument:
        return False
    return True


def adapt(obj: Any) -> RecordAdapter:
    """Return the adapter for an observable container.

    Args:
        obj: Candidate record.

    Returns:
        RecordAdapter bound to ``obj``.

    Raises:
        InvalidArgument: If ``obj`` is a scalar, a class, or has no introspectable keys.
    """
    if isinstance(obj, _SCALAR_TYPES):
        raise InvalidArgument(
            f"expected a container, got {type(obj).__name__}", argument="record"
        )
    if isinstance(obj, type):
        raise InvalidArgument(
            f"expected a container instance, got class {obj.__name__}", argument="record"
        )
    if isinstance(obj, ObservableRecord) and callable(getattr(obj, "is_extensible", None)):
        return NativeAdapter(obj)
    if isinstance(obj, Mapping):
        return MappingAdapter(obj)
    if isinstance(obj, Sequence):
        return SequenceAdapter(obj)
    if hasattr(obj, "__dict__"):
        return AttributeAdapter(obj)
    if hasattr(type(obj), "__slots__"):
        return SlotsAdapter(obj)
    raise InvalidArgument(
        f"{type(obj).__name__} has no introspectable keys", argument="record"
    )
