"""Change type names.

These are the types the diff engine produces. Any other string is a custom
type that only reaches observers through a notifier.

IMPORTANT: Renaming these is a breaking change for every observer.
"""


class ChangeType:
    """Change type names carried by ChangeRecord.type."""

    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    PREVENT_EXTENSIONS = "preventExtensions"
