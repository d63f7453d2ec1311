# /config/custom_components/tehilim_tracker/tehilim_lib/exceptions.py
"""Error taxonomy. Every one of these is recovered internally; none ends a session."""


class TehilimError(Exception):
    """Base class for tracker errors."""


class OracleUnavailable(TehilimError):
    """The online calendar service timed out, failed, or answered garbage."""


class StoreUnavailable(TehilimError):
    """Reading or writing the persisted ledger failed."""


class MalformedPersistedState(TehilimError):
    """A persisted ledger field could not be parsed."""

    def __init__(self, field: str, value) -> None:
        super().__init__(f"Unreadable ledger field {field!r}: {value!r}")
        self.field = field
        self.value = value


class InvalidSelection(TehilimError, ValueError):
    """A requested chapter range, section or catch-up day cannot be completed."""
