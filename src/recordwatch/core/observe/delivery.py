"""Per-handler delivery queues."""

from typing import Callable

from recordwatch.domain.entities.change_record import ChangeRecord


class DeliveryQueues:
    """One ordered, append-only queue of change records per handler.

    A handler's queue aggregates records from every record it observes in
    the order they were produced. Queues are created on first enqueue and
    swapped for an empty list when taken, so a batch handed to a handler
    is never touched again by the engine.
    """

    def __init__(self) -> None:
        self._queues: dict[Callable, list[ChangeRecord]] = {}

    def enqueue(self, handler: Callable, change: ChangeRecord) -> None:
        queue = self._queues.get(handler)
        if queue is None:
            queue = self._queues[handler] = []
        queue.append(change)

    def take(self, handler: Callable) -> list[ChangeRecord]:
        """Drain a handler's queue and return what it held."""
        queue = self._queues.get(handler)
        if not queue:
            return []
        self._queues[handler] = []
        return queue

    def peek(self, handler: Callable) -> list[ChangeRecord]:
        return list(self._queues.get(handler, ()))

    def pending(self) -> list[Callable]:
        """Handlers with queued records, in queue creation order."""
        return [handler for handler, queue in self._queues.items() if queue]

    def has_pending(self) -> bool:
        return any(self._queues.values())

    def discard(self, handler: Callable) -> bool:
        """Forget a handler's queue if it is empty.

        Returns:
            True if the queue was dropped.
        """
        if self._queues.get(handler, None) == []:
            del self._queues[handler]
            return True
        return False

    def clear(self) -> None:
        self._queues.clear()

    def __len__(self) -> int:
        return sum(len(queue) for queue in self._queues.values())
