"""Change records delivered to observers.

A ChangeRecord describes one detected or notified mutation of an observed
record. Fields that do not apply to a change are absent rather than
``None``, because ``None`` is a perfectly valid old value.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Hashable


class _Missing:
    """Marker for a field that is absent from a change record."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


@dataclass(frozen=True)
class ChangeRecord:
    """One reported mutation.

    Attributes:
        type: Change type ("add", "update", "delete", "preventExtensions",
              or any custom string supplied through a notifier).
        object: The observed record the change belongs to.
        name: Key that changed, or MISSING (e.g. for "preventExtensions").
        old_value: Value before the change, or MISSING. Present for
                   "update" and "delete".
        extra: Additional fields carried by custom change records.
    """

    type: str
    object: Any
    name: Hashable = MISSING
    old_value: Any = MISSING
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.extra, MappingProxyType):
            object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def has_name(self) -> bool:
        return self.name is not MISSING

    @property
    def has_old_value(self) -> bool:
        return self.old_value is not MISSING

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to any present field, including extras."""
        try:
            return self.to_dict()[key]
        except KeyError:
            raise KeyError(key) from None

    def to_dict(self, include_object: bool = True) -> dict[str, Any]:
        """Plain dictionary form, absent fields omitted.

        Args:
            include_object: Whether to include the observed record itself.
        """
        data: dict[str, Any] = {"type": self.type}
        if self.has_name:
            data["name"] = self.name
        if include_object:
            data["object"] = self.object
        if self.has_old_value:
            data["old_value"] = self.old_value
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    def __repr__(self) -> str:
        parts = [f"type={self.type!r}"]
        if self.has_name:
            parts.append(f"name={self.name!r}")
        if self.has_old_value:
            parts.append(f"old_value={self.old_value!r}")
        if self.extra:
            parts.append(f"extra={dict(self.extra)!r}")
        return f"ChangeRecord({', '.join(parts)})"
