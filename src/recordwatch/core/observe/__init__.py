"""Observation engine core module.

Detects mutations of observed records by diffing snapshots on every tick
and delivers the resulting change records to handlers in batches.

Example usage:
    from recordwatch.core.observe import ManualClock, ObservationEngine

    clock = ManualClock()
    engine = ObservationEngine(clock=clock)

    record = {}
    engine.observe(record, print)
    record["a"] = 1
    clock.step()  # prints [ChangeRecord(type='add', name='a')]
"""

from recordwatch.core.observe.adapters import RecordAdapter, adapt, is_container
from recordwatch.core.observe.change_types import ChangeType
from recordwatch.core.observe.clock import AsyncioClock, Clock, ManualClock, TickHandle
from recordwatch.core.observe.decorator import ObserverDecorator
from recordwatch.core.observe.delivery import DeliveryQueues
from recordwatch.core.observe.diff import capture, diff, same_value
from recordwatch.core.observe.engine import ObservationEngine
from recordwatch.core.observe.notifier import Notifier
from recordwatch.core.observe.registry import ObservationRegistry, Registration

__all__ = [
    # Engine
    "ObservationEngine",
    "Notifier",
    "ObserverDecorator",
    # Building blocks
    "ObservationRegistry",
    "Registration",
    "DeliveryQueues",
    "RecordAdapter",
    "adapt",
    "is_container",
    "capture",
    "diff",
    "same_value",
    # Clocks
    "Clock",
    "AsyncioClock",
    "ManualClock",
    "TickHandle",
    # Change types
    "ChangeType",
]
