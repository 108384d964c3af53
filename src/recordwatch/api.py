"""Module-level observation API on a process-wide default engine.

These functions are what most applications use. The default engine is
created on first use with an AsyncioClock, so the first ``observe`` must
happen while an event loop is running. Code that needs isolation (tests,
several independent pipelines) should build its own ObservationEngine.
"""

from functools import lru_cache
from typing import Any, Iterable, Optional

from recordwatch.core.observe.engine import Handler, ObservationEngine
from recordwatch.core.observe.notifier import Notifier
from recordwatch.domain.entities.change_record import ChangeRecord


@lru_cache
def get_engine() -> ObservationEngine:
    """Get the process-wide default engine, creating it on first use."""
    return ObservationEngine()


def reset_engine() -> None:
    """Close the default engine; the next call creates a fresh one."""
    if get_engine.cache_info().currsize:
        get_engine().close()
    get_engine.cache_clear()


def observe(
    record: Any,
    handler: Handler,
    accept_types: Optional[Iterable[str]] = None,
) -> None:
    """Observe ``record`` with ``handler`` on the default engine."""
    get_engine().observe(record, handler, accept_types)


def unobserve(record: Any, handler: Handler) -> None:
    """Stop observing ``record`` with ``handler`` on the default engine."""
    get_engine().unobserve(record, handler)


def get_notifier(record: Any) -> Notifier:
    """Get a notifier for ``record`` on the default engine."""
    return get_engine().get_notifier(record)


def deliver_change_records(handler: Handler) -> list[ChangeRecord]:
    """Drain ``handler``'s pending records on the default engine."""
    return get_engine().deliver_change_records(handler)
