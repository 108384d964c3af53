"""Observation engine - snapshot polling, routing and batched delivery.

The engine is the context object composing the registry, the delivery
queues and a clock. Nothing here is process-global: every engine is
independent, which is what lets tests run several side by side.

Lifecycle of a change:
1. Every tick, each observed record is snapshotted and diffed against
   its stored snapshot (``tick``).
2. Each change record is appended to the queue of every registration on
   that record whose filter accepts its type.
3. A flush is requested through the clock. The flush hands each handler
   its whole queue as one batch (``flush``).

Notifier records skip step 1 and enter at step 2.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Callable, Optional

from recordwatch.core.config import Settings, get_settings
from recordwatch.core.exceptions import InvalidArgument
from recordwatch.core.logging import LoggingContext, get_logger
from recordwatch.core.observe.adapters import RecordAdapter, adapt
from recordwatch.core.observe.clock import AsyncioClock, Clock, TickHandle
from recordwatch.core.observe.delivery import DeliveryQueues
from recordwatch.core.observe.diff import capture, diff
from recordwatch.core.observe.notifier import Notifier
from recordwatch.core.observe.registry import (
    ObservationRegistry,
    ObservedEntry,
    describe_handler,
)
from recordwatch.domain.entities.change_record import ChangeRecord

logger = get_logger(__name__)

Handler = Callable[[list[ChangeRecord]], Any]


@dataclass
class PendingOperation:
    """Registry mutation requested while a handler was being delivered to."""

    action: str  # "observe" or "unobserve"
    record: Any
    handler: Handler
    adapter: Optional[RecordAdapter] = None
    accept_types: Optional[frozenset[str]] = None
    snapshot: Any = None


class ObservationEngine:
    """Detects record mutations by polling and delivers them in batches.

    Example:
        engine = ObservationEngine()

        def on_change(changes):
            for change in changes:
                print(change.type, change.name)

        record = {"a": 1}
        engine.observe(record, on_change, accept_types=["add", "delete"])
        record["b"] = 2  # reported as "add" on the next tick
        engine.unobserve(record, on_change)

    Args:
        clock: Clock driving ticks and deliveries. Defaults to an
               AsyncioClock using the configured tick interval.
        settings: Settings instance. Defaults to ``get_settings()``.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock: Clock = clock or AsyncioClock(self.settings.tick_interval)
        self.registry = ObservationRegistry()
        self.queues = DeliveryQueues()
        self._tick_handle: Optional[TickHandle] = None
        self._tick_count = 0
        self._flush_requested = False
        self._delivery_depth = 0
        self._pending: list[PendingOperation] = []
        self._active_changes: dict[int, list[str]] = {}

    @property
    def running(self) -> bool:
        """Whether the scheduler currently holds a tick subscription."""
        return self._tick_handle is not None and not self._tick_handle.cancelled

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def delivering(self) -> bool:
        """Whether a handler is being invoked right now."""
        return self._delivery_depth > 0

    # =========================================================================
    # Registration
    # =========================================================================

    def observe(
        self,
        record: Any,
        handler: Handler,
        accept_types: Optional[Iterable[str]] = None,
    ) -> None:
        """Start delivering a record's changes to a handler.

        Observing the same record with the same handler again only replaces
        the accepted types. The baseline snapshot of a newly observed record
        is taken right away, so keys that exist now are never reported as
        added.

        Args:
            record: Container to observe.
            handler: Callable receiving a list of ChangeRecords per delivery.
            accept_types: Change types to deliver. None delivers every type.

        Raises:
            InvalidArgument: Non-container record, non-callable handler or
                             malformed accept_types.
        """
        adapter = adapt(record)
        _check_handler(handler)
        accepted = _normalize_accept_types(accept_types)

        if self.delivering:
            self._pending.append(
                PendingOperation(
                    action="observe",
                    record=record,
                    handler=handler,
                    adapter=adapter,
                    accept_types=accepted,
                    snapshot=capture(adapter, self._tick_count),
                )
            )
            return

        snapshot = None
        if not self.registry.is_tracked(record):
            snapshot = capture(adapter, self._tick_count)
        self._apply_observe(record, adapter, handler, accepted, snapshot)

    def unobserve(self, record: Any, handler: Handler) -> None:
        """Stop delivering a record's changes to a handler.

        Does nothing if the handler does not observe the record. Records
        already queued for the handler are still delivered.

        Raises:
            InvalidArgument: Non-container record or non-callable handler.
        """
        adapt(record)
        _check_handler(handler)

        if self.delivering:
            self._pending.append(
                PendingOperation(action="unobserve", record=record, handler=handler)
            )
            return

        self._apply_unobserve(record, handler)

    def _apply_observe(
        self,
        record: Any,
        adapter: RecordAdapter,
        handler: Handler,
        accept_types: Optional[frozenset[str]],
        snapshot: Any,
    ) -> None:
        if snapshot is None and not self.registry.is_tracked(record):
            snapshot = capture(adapter, self._tick_count)
        self.registry.register(record, adapter, handler, accept_types, snapshot)
        if not self.running:
            self._tick_handle = self.clock.on_tick(self.tick)
            logger.debug("Observation scheduler started", records=len(self.registry))

    def _apply_unobserve(self, record: Any, handler: Handler) -> None:
        if self.registry.unregister(record, handler) is None:
            return
        if not self.registry.has_handler(handler):
            self.queues.discard(handler)
        if len(self.registry) == 0 and self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
            logger.debug("Observation scheduler idle", ticks=self._tick_count)

    def _apply_pending(self) -> None:
        operations, self._pending = self._pending, []
        for operation in operations:
            if operation.action == "observe":
                self._apply_observe(
                    operation.record,
                    operation.adapter,
                    operation.handler,
                    operation.accept_types,
                    operation.snapshot,
                )
            else:
                self._apply_unobserve(operation.record, operation.handler)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def tick(self) -> int:
        """Run one polling pass over every observed record.

        Returns:
            Number of change records queued (one per receiving handler).
        """
        self._tick_count += 1
        queued = 0
        with LoggingContext(tick=self._tick_count):
            for entry in self.registry.entries():
                if self.registry.get(entry.record) is not entry:
                    continue
                fresh = capture(entry.adapter, self._tick_count)
                for change in diff(entry.snapshot, fresh):
                    queued += self._route(entry, change)
                entry.snapshot = fresh
            if queued:
                logger.debug(
                    "Tick routed changes",
                    records=len(self.registry),
                    queued=queued,
                )
        if queued:
            self._request_flush()
        return queued

    def _route(
        self,
        entry: ObservedEntry,
        change: ChangeRecord,
        suppressed: Iterable[str] = (),
    ) -> int:
        suppressed = tuple(suppressed)
        count = 0
        for registration in list(entry.registrations.values()):
            if not registration.accepts(change.type):
                continue
            if suppressed and registration.accepts_any(suppressed):
                continue
            self.queues.enqueue(registration.handler, change)
            count += 1
        return count

    def _request_flush(self) -> None:
        if self._flush_requested:
            return
        self._flush_requested = True
        self.clock.schedule_soon(self.flush)

    # =========================================================================
    # Delivery
    # =========================================================================

    def flush(self) -> int:
        """Deliver every non-empty queue to its handler.

        Each handler is called at most once, with its whole queue. The queue
        is swapped for an empty one before the call, so changes produced
        while the handler runs are delivered in a later flush. Handler
        exceptions are not caught; they end this flush and propagate, and
        the handlers not yet served are delivered by a new flush.

        Returns:
            Number of handlers invoked.
        """
        self._flush_requested = False
        invoked = 0
        try:
            for handler in self.queues.pending():
                batch = self.queues.take(handler)
                if not batch:
                    continue
                self._deliver(handler, batch)
                invoked += 1
        finally:
            if self.queues.has_pending():
                self._request_flush()
        return invoked

    def _deliver(self, handler: Handler, batch: list[ChangeRecord]) -> None:
        self._delivery_depth += 1
        try:
            handler(batch)
        except Exception as e:
            logger.error(
                "Observer delivery failed",
                handler=describe_handler(handler),
                batch_size=len(batch),
                error=str(e),
            )
            raise
        finally:
            self._delivery_depth -= 1
            if self._delivery_depth == 0 and self._pending:
                self._apply_pending()
            if not self.registry.has_handler(handler):
                self.queues.discard(handler)

    def deliver_change_records(self, handler: Handler) -> list[ChangeRecord]:
        """Synchronously drain and return a handler's pending records.

        Returns:
            The queued records in production order, or an empty list.

        Raises:
            InvalidArgument: If handler is not callable.
        """
        _check_handler(handler)
        batch = self.queues.take(handler)
        if not self.registry.has_handler(handler):
            self.queues.discard(handler)
        return batch

    # =========================================================================
    # Notifications
    # =========================================================================

    def get_notifier(self, record: Any) -> Notifier:
        """Get a notifier for injecting change records for ``record``.

        Raises:
            InvalidArgument: If record is not a container or not extensible.
        """
        adapter = adapt(record)
        if not adapter.is_extensible():
            raise InvalidArgument(
                "cannot create a notifier for a non-extensible record",
                argument="record",
            )
        return Notifier(self, record)

    def enqueue_notification(self, change: ChangeRecord) -> int:
        """Route a notifier record to the accepting registrations on its record.

        Registrations accepting a change type currently being performed on
        the record (see ``Notifier.perform_change``) are skipped.

        Returns:
            Number of handlers the record was queued for.
        """
        entry = self.registry.get(change.object)
        if entry is None:
            return 0
        queued = self._route(
            entry,
            change,
            suppressed=self._active_changes.get(id(change.object), ()),
        )
        if queued:
            self._request_flush()
        return queued

    def begin_change(self, record: Any, change_type: str) -> None:
        self._active_changes.setdefault(id(record), []).append(change_type)

    def end_change(self, record: Any, change_type: str) -> None:
        active = self._active_changes.get(id(record))
        if not active:
            return
        # Remove the innermost occurrence
        for index in range(len(active) - 1, -1, -1):
            if active[index] == change_type:
                del active[index]
                break
        if not active:
            del self._active_changes[id(record)]

    # =========================================================================
    # Shutdown
    # =========================================================================

    def close(self) -> None:
        """Drop every registration and queued record and stop ticking."""
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        removed = self.registry.clear()
        self.queues.clear()
        self._pending.clear()
        self._active_changes.clear()
        logger.debug("Observation engine closed", registrations=removed)


def _check_handler(handler: Any) -> None:
    if not callable(handler):
        raise InvalidArgument(
            f"expected a callable, got {type(handler).__name__}", argument="handler"
        )
    try:
        hash(handler)
    except TypeError:
        raise InvalidArgument("handler must be hashable", argument="handler") from None


def _normalize_accept_types(
    accept_types: Optional[Iterable[str]],
) -> Optional[frozenset[str]]:
    if accept_types is None:
        return None
    if isinstance(accept_types, (str, bytes)):
        raise InvalidArgument(
            "expected a sequence of change types, got a single string",
            argument="accept_types",
        )
    try:
        types = list(accept_types)
    except TypeError:
        raise InvalidArgument(
            f"expected a sequence of change types, got {type(accept_types).__name__}",
            argument="accept_types",
        ) from None
    for change_type in types:
        if not isinstance(change_type, str):
            raise InvalidArgument(
                f"change types must be strings, got {type(change_type).__name__}",
                argument="accept_types",
            )
    return frozenset(types)
