"""Observable record capability and a reference record implementation.

The engine never depends on a concrete container type. Anything that can
list its keys in order, return the value for a key, and say whether new
keys may still be added can be observed. ``Record`` is a mapping that
implements the capability natively, including the one-way switch to a
non-extensible state.
"""

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any, Hashable, Protocol, runtime_checkable

from recordwatch.core.exceptions import ExtensionsPreventedError


@runtime_checkable
class ObservableRecord(Protocol):
    """Capability the engine needs from an observed container."""

    def keys(self) -> Iterable[Hashable]:
        """Own enumerable keys, in enumeration order."""
        ...

    def get(self, key: Hashable) -> Any:
        """Current value stored under ``key``."""
        ...

    def is_extensible(self) -> bool:
        """Whether new keys may be added."""
        ...


class Record(MutableMapping):
    """Insertion-ordered mapping that can be made non-extensible.

    Existing keys stay writable and deletable after ``prevent_extensions()``;
    only adding a new key is refused.

    Example:
        record = Record(a=1)
        record["b"] = 2
        record.prevent_extensions()
        record["c"] = 3  # raises ExtensionsPreventedError
    """

    def __init__(self, data: Mapping[Hashable, Any] | None = None, **kwargs: Any) -> None:
        self._data: dict[Hashable, Any] = {}
        self._extensible = True
        if data is not None:
            self._data.update(data)
        self._data.update(kwargs)

    def __getitem__(self, key: Hashable) -> Any:
        return self._data[key]

    def __setitem__(self, key: Hashable, value: Any) -> None:
        if not self._extensible and key not in self._data:
            raise ExtensionsPreventedError(key)
        self._data[key] = value

    def __delitem__(self, key: Hashable) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        flag = "" if self._extensible else ", extensible=False"
        return f"Record({self._data!r}{flag})"

    def is_extensible(self) -> bool:
        return self._extensible

    def prevent_extensions(self) -> "Record":
        """Refuse new keys from now on. There is no way back."""
        self._extensible = False
        return self

    def to_dict(self) -> dict[Hashable, Any]:
        return dict(self._data)
