"""
Derivation error taxonomy.

Only persistence failures escape the engine. Lookup degradation is reported
through Lookup results, duplicates through a SKIPPED outcome.
"""


class CarebookError(Exception):
    """Base class for carebook errors."""


class PersistenceError(CarebookError):
    """The record store failed to write a derived record."""

    def __init__(self, message: str, event=None, cause: BaseException | None = None):
        super().__init__(message)
        self.event = event
        self.cause = cause


class DuplicateRecordError(PersistenceError):
    """A record already exists under the same (date, user) key."""


class LookupUnavailable(CarebookError):
    """A collaborator read could not produce a value."""
