"""Notifiers - application-driven change records.

A notifier is bound to one record and lets application code report
changes the polling cycle cannot see (or should not report on its own),
such as a custom "reconfigure" event or a single coalesced record for a
compound operation.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

from recordwatch.core.exceptions import InvalidArgument
from recordwatch.domain.entities.change_record import MISSING, ChangeRecord

if TYPE_CHECKING:
    from recordwatch.core.observe.engine import ObservationEngine

# Keys lifted out of a change mapping into ChangeRecord fields
_RESERVED_KEYS = ("type", "object", "name", "old_value", "oldValue")


def _build_change(change_type: str, record: Any, fields: Mapping[str, Any]) -> ChangeRecord:
    old_value = fields.get("old_value", MISSING)
    if old_value is MISSING:
        old_value = fields.get("oldValue", MISSING)
    return ChangeRecord(
        type=change_type,
        object=record,
        name=fields.get("name", MISSING),
        old_value=old_value,
        extra={key: value for key, value in fields.items() if key not in _RESERVED_KEYS},
    )


class Notifier:
    """Capability for injecting change records for one record.

    Obtain one through ``ObservationEngine.get_notifier(record)``.

    Example:
        notifier = engine.get_notifier(account)
        notifier.notify({"type": "reconfigure", "name": "limit"})

        def withdraw():
            account["balance"] -= 10
            notifier.notify({"type": "update", "name": "balance", "old_value": 100})
            return {"amount": 10}

        notifier.perform_change("withdraw", withdraw)
    """

    def __init__(self, engine: "ObservationEngine", record: Any) -> None:
        self._engine = engine
        self._record = record

    @property
    def record(self) -> Any:
        return self._record

    def notify(self, change: Mapping[str, Any] | ChangeRecord) -> None:
        """Queue a change record for every observer accepting its type.

        The ``object`` field is always the bound record. ``name`` and
        ``old_value`` (or ``oldValue``) become ChangeRecord fields; any other
        key is kept in ``extra``.

        Args:
            change: Mapping with at least a string ``type``, or a ChangeRecord.

        Raises:
            InvalidArgument: If the change has no string ``type``.
        """
        if isinstance(change, ChangeRecord):
            change = change.to_dict(include_object=False)
        if not isinstance(change, Mapping):
            raise InvalidArgument(
                f"expected a mapping, got {type(change).__name__}", argument="change"
            )
        change_type = change.get("type")
        if not isinstance(change_type, str):
            raise InvalidArgument("change must carry a string 'type'", argument="change")

        self._engine.enqueue_notification(_build_change(change_type, self._record, change))

    def perform_change(self, change_type: str, body: Callable[[], Any]) -> Any:
        """Run ``body`` and report it as one change of ``change_type``.

        While ``body`` runs, observers accepting ``change_type`` do not
        receive the records it notifies; every other observer does. When
        ``body`` returns, one ``change_type`` record is queued, carrying the
        fields of the returned mapping if there is one. When ``body`` raises,
        nothing is queued and the exception propagates.

        Args:
            change_type: Type of the synthesized record.
            body: Zero-argument callable performing the change.

        Returns:
            Whatever ``body`` returned.

        Raises:
            InvalidArgument: If change_type is not a string or body is not callable.
        """
        if not isinstance(change_type, str):
            raise InvalidArgument(
                f"expected a string, got {type(change_type).__name__}",
                argument="change_type",
            )
        if not callable(body):
            raise InvalidArgument(
                f"expected a callable, got {type(body).__name__}", argument="body"
            )

        self._engine.begin_change(self._record, change_type)
        try:
            result = body()
        finally:
            self._engine.end_change(self._record, change_type)

        fields = result if isinstance(result, Mapping) else {}
        self._engine.enqueue_notification(_build_change(change_type, self._record, fields))
        return result

    def __repr__(self) -> str:
        return f"Notifier({type(self._record).__name__})"
