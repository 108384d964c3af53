"""Domain entities for recordwatch.

This module exports the data structures shared by the observation engine.
"""

from recordwatch.domain.entities.change_record import MISSING, ChangeRecord
from recordwatch.domain.entities.record import ObservableRecord, Record
from recordwatch.domain.entities.snapshot import Snapshot

__all__ = [
    "ChangeRecord",
    "MISSING",
    "ObservableRecord",
    "Record",
    "Snapshot",
]
