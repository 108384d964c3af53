"""Snapshot capture and the diff engine.

The diff reports only the net difference between two snapshots of the same
record, in a fixed phase order that observers can rely on:

1. add/update, in the new snapshot's key order
2. delete, in the old snapshot's key order
3. preventExtensions, when the record stopped being extensible

A key changed and changed back between two snapshots produces nothing.
"""

import math
from numbers import Number
from typing import Any

from recordwatch.core.observe.adapters import RecordAdapter
from recordwatch.core.observe.change_types import ChangeType
from recordwatch.domain.entities.change_record import ChangeRecord
from recordwatch.domain.entities.snapshot import Snapshot

_VALUE_TYPES = (str, bytes)


def same_value(old: Any, new: Any) -> bool:
    """Strict sameness of two property values.

    Identical objects are the same. Immutable scalars (numbers, strings,
    bytes) are the same when they are equal, except that booleans never
    equal numbers and NaN equals NaN. Anything else compares by identity,
    so an equal but distinct list is a different value.
    """
    if old is new:
        return True
    if isinstance(old, bool) or isinstance(new, bool):
        return False
    if isinstance(old, Number) and isinstance(new, Number):
        if isinstance(old, float) and isinstance(new, float):
            if math.isnan(old) and math.isnan(new):
                return True
        return bool(old == new)
    if isinstance(old, _VALUE_TYPES) and type(old) is type(new):
        return old == new
    return False


def capture(adapter: RecordAdapter, tick: int = 0) -> Snapshot:
    """Capture the current state of the adapted record.

    Args:
        adapter: Adapter for the observed record.
        tick: Scheduler tick number to stamp on the snapshot.

    Returns:
        A new immutable Snapshot.
    """
    keys = tuple(adapter.keys())
    return Snapshot(
        record=adapter.record,
        keys=keys,
        values={key: adapter.get(key) for key in keys},
        extensible=adapter.is_extensible(),
        tick=tick,
    )


def diff(old: Snapshot, new: Snapshot) -> list[ChangeRecord]:
    """Compute the ordered change records between two snapshots.

    Args:
        old: Previously stored snapshot.
        new: Freshly captured snapshot of the same record.

    Returns:
        Change records in phase order (add/update, delete, preventExtensions).
    """
    record = new.record
    changes: list[ChangeRecord] = []
    old_values = old.values
    new_values = new.values

    for key in new.keys:
        if key not in old_values:
            changes.append(ChangeRecord(type=ChangeType.ADD, object=record, name=key))
        elif not same_value(old_values[key], new_values[key]):
            changes.append(
                ChangeRecord(
                    type=ChangeType.UPDATE,
                    object=record,
                    name=key,
                    old_value=old_values[key],
                )
            )

    for key in old.keys:
        if key not in new_values:
            changes.append(
                ChangeRecord(
                    type=ChangeType.DELETE,
                    object=record,
                    name=key,
                    old_value=old_values[key],
                )
            )

    if old.extensible and not new.extensible:
        changes.append(ChangeRecord(type=ChangeType.PREVENT_EXTENSIONS, object=record))

    return changes
