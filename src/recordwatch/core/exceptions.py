"""Exceptions raised by the observation engine."""


class ObservationError(Exception):
    """Base class for all observation errors."""
    pass


class InvalidArgument(ObservationError, TypeError):
    """Raised synchronously when a call violates the observation contract.

    Covers non-container records, non-callable handlers, malformed accept
    lists and change records, and notifiers requested on non-extensible
    records.
    """

    def __init__(self, message: str, argument: str | None = None):
        self.argument = argument
        super().__init__(f"{argument}: {message}" if argument is not None else message)


class ExtensionsPreventedError(ObservationError, TypeError):
    """Raised when a new key is added to a record that is no longer extensible."""

    def __init__(self, key: object):
        self.key = key
        super().__init__(f"Cannot add key {key!r}: record is not extensible")


class ClockUnavailableError(ObservationError, RuntimeError):
    """Raised when a clock is started without an event loop to drive it."""
    pass
