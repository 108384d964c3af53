"""recordwatch - change observation for plain Python containers.

Observers register interest in records (dicts, lists, plain objects or
``Record`` instances) and receive batches of change records describing
keys that were added, updated or deleted, and records that stopped being
extensible. Changes are detected by diffing snapshots on a timer.
"""

__version__ = "0.1.0"

from recordwatch.api import (
    deliver_change_records,
    get_engine,
    get_notifier,
    observe,
    reset_engine,
    unobserve,
)
from recordwatch.core.exceptions import InvalidArgument, ObservationError
from recordwatch.core.observe import ChangeType, ManualClock, Notifier, ObservationEngine
from recordwatch.domain.entities import MISSING, ChangeRecord, Record

__all__ = [
    "__version__",
    "observe",
    "unobserve",
    "get_notifier",
    "deliver_change_records",
    "get_engine",
    "reset_engine",
    "ObservationEngine",
    "ManualClock",
    "Notifier",
    "ChangeRecord",
    "ChangeType",
    "Record",
    "MISSING",
    "InvalidArgument",
    "ObservationError",
]
