"""Observation registry - which handlers watch which records.

The registry is keyed by record identity. Each observed record has one
entry holding its adapter, its latest snapshot, and its registrations
(one per handler). Re-registering a handler on the same record replaces
its accept-type filter in place.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from recordwatch.core.logging import get_logger
from recordwatch.core.observe.adapters import RecordAdapter
from recordwatch.domain.entities.snapshot import Snapshot

logger = get_logger(__name__)


@dataclass
class Registration:
    """One handler's interest in one record.

    Attributes:
        handler: Callable receiving batches of change records.
        record: The observed record.
        accept_types: Change types the handler accepts, or None for all.
        registration_order: Order in which the pair was first registered.
    """

    handler: Callable
    record: Any = field(repr=False)
    accept_types: Optional[frozenset[str]] = None
    registration_order: int = 0

    def accepts(self, change_type: str) -> bool:
        return self.accept_types is None or change_type in self.accept_types

    def accepts_any(self, change_types: Iterable[str]) -> bool:
        return any(self.accepts(change_type) for change_type in change_types)


@dataclass
class ObservedEntry:
    """Registry entry for one observed record.

    Attributes:
        record: The observed record.
        adapter: Capability adapter used to snapshot the record.
        snapshot: Snapshot the next tick diffs against.
        registrations: Registrations on this record, keyed by handler.
    """

    record: Any = field(repr=False)
    adapter: RecordAdapter
    snapshot: Snapshot
    registrations: dict[Callable, Registration] = field(default_factory=dict)


class ObservationRegistry:
    """Table of observed records and their registrations.

    Example:
        registry = ObservationRegistry()
        registry.register(record, adapter, handler, None, snapshot)
        for entry in registry.entries():
            ...
        registry.unregister(record, handler)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entries: dict[int, ObservedEntry] = {}
        self._handler_counts: dict[Callable, int] = {}
        self._registration_counter: int = 0

    def register(
        self,
        record: Any,
        adapter: RecordAdapter,
        handler: Callable,
        accept_types: Optional[frozenset[str]],
        snapshot: Optional[Snapshot],
    ) -> Registration:
        """Register a handler on a record, or replace its filter.

        Args:
            record: Record to observe.
            adapter: Adapter for the record.
            handler: Handler to register.
            accept_types: Accepted change types, None for all.
            snapshot: Baseline snapshot, used only when the record is new
                      to the registry.

        Returns:
            The new or updated Registration.
        """
        entry = self._entries.get(id(record))
        if entry is None:
            if snapshot is None:
                raise ValueError("A baseline snapshot is required for a new record")
            entry = ObservedEntry(record=record, adapter=adapter, snapshot=snapshot)
            self._entries[id(record)] = entry
            logger.debug(
                "Record tracked",
                record_type=type(record).__name__,
                adapter=adapter.kind,
                keys=len(snapshot.keys),
            )

        existing = entry.registrations.get(handler)
        if existing is not None:
            existing.accept_types = accept_types
            logger.debug(
                "Observer filter replaced",
                handler=describe_handler(handler),
                accept_types=_sorted_types(accept_types),
            )
            return existing

        self._registration_counter += 1
        registration = Registration(
            handler=handler,
            record=record,
            accept_types=accept_types,
            registration_order=self._registration_counter,
        )
        entry.registrations[handler] = registration
        self._handler_counts[handler] = self._handler_counts.get(handler, 0) + 1

        logger.debug(
            "Observer registered",
            handler=describe_handler(handler),
            accept_types=_sorted_types(accept_types),
            record_type=type(record).__name__,
        )
        return registration

    def unregister(self, record: Any, handler: Callable) -> Optional[Registration]:
        """Remove a handler's registration on a record.

        Drops the record entry (and its snapshot) when it was the last one.

        Returns:
            The removed Registration, or None if there was none.
        """
        entry = self._entries.get(id(record))
        if entry is None or entry.record is not record:
            return None

        registration = entry.registrations.pop(handler, None)
        if registration is None:
            return None

        remaining = self._handler_counts.get(handler, 1) - 1
        if remaining > 0:
            self._handler_counts[handler] = remaining
        else:
            self._handler_counts.pop(handler, None)

        if not entry.registrations:
            del self._entries[id(record)]
            logger.debug("Record untracked", record_type=type(record).__name__)

        logger.debug("Observer unregistered", handler=describe_handler(handler))
        return registration

    def get(self, record: Any) -> Optional[ObservedEntry]:
        """Get the entry for a record, or None if it is not observed."""
        entry = self._entries.get(id(record))
        if entry is None or entry.record is not record:
            return None
        return entry

    def is_tracked(self, record: Any) -> bool:
        return self.get(record) is not None

    def entries(self) -> list[ObservedEntry]:
        """Copy of all entries in the order records were first observed."""
        return list(self._entries.values())

    def registrations_for(self, record: Any) -> list[Registration]:
        """Registrations on a record, in registration order."""
        entry = self.get(record)
        if entry is None:
            return []
        return sorted(entry.registrations.values(), key=lambda r: r.registration_order)

    def has_handler(self, handler: Callable) -> bool:
        """Check whether a handler is registered on any record."""
        return handler in self._handler_counts

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of registrations removed.
        """
        count = sum(len(entry.registrations) for entry in self._entries.values())
        self._entries.clear()
        self._handler_counts.clear()
        logger.debug("Registry cleared", count=count)
        return count

    def __len__(self) -> int:
        return len(self._entries)


def describe_handler(handler: Callable) -> str:
    """Readable handler name for log entries."""
    return getattr(handler, "__qualname__", None) or repr(handler)


def _sorted_types(accept_types: Optional[frozenset[str]]) -> list[str] | str:
    return "all" if accept_types is None else sorted(accept_types)
