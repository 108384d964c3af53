"""Immutable capture of an observed record at one tick."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Hashable


@dataclass(frozen=True)
class Snapshot:
    """State of a record's own enumerable keys at one instant.

    Snapshots are superseded on every tick, never mutated.

    Attributes:
        record: The observed record (identity, not a copy).
        keys: Keys in enumeration order.
        values: Read-only mapping of key to value.
        extensible: Whether new keys could be added at capture time.
        tick: Scheduler tick the snapshot was captured on (0 = at observe time).
    """

    record: Any = field(repr=False, compare=False)
    keys: tuple[Hashable, ...]
    values: Mapping[Hashable, Any]
    extensible: bool = True
    tick: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __contains__(self, key: Hashable) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.keys)
