"""Decorator API for observer registration.

Enables registering a function as an observer where it is defined:

    observers = ObserverDecorator(engine)

    @observers.on_delete(settings_record)
    def warn_on_removal(changes):
        ...
"""

from typing import Any, Callable, Iterable, Optional, TypeVar

from recordwatch.core.observe.change_types import ChangeType
from recordwatch.core.observe.engine import ObservationEngine

F = TypeVar("F", bound=Callable[..., Any])


class ObserverDecorator:
    """Decorator syntax over ``ObservationEngine.observe``.

    The decorated function is registered and returned unchanged, so it can
    still be passed to ``unobserve`` or ``deliver_change_records``.
    """

    def __init__(self, engine: ObservationEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> ObservationEngine:
        return self._engine

    def on(self, record: Any, accept: Optional[Iterable[str]] = None) -> Callable[[F], F]:
        """Observe ``record`` with the decorated function.

        Args:
            record: Record to observe.
            accept: Change types to deliver, None for all.
        """
        accept_types = list(accept) if accept is not None else None

        def decorator(func: F) -> F:
            self._engine.observe(record, func, accept_types)
            return func

        return decorator

    def on_add(self, record: Any) -> Callable[[F], F]:
        return self.on(record, [ChangeType.ADD])

    def on_update(self, record: Any) -> Callable[[F], F]:
        return self.on(record, [ChangeType.UPDATE])

    def on_delete(self, record: Any) -> Callable[[F], F]:
        return self.on(record, [ChangeType.DELETE])

    def on_prevent_extensions(self, record: Any) -> Callable[[F], F]:
        return self.on(record, [ChangeType.PREVENT_EXTENSIONS])
