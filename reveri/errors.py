"""
Error taxonomy for the memory store.

Validation problems are reported as a `Rejected` value so the caller can
re-prompt. Persistence problems are exceptions, kept separate so the caller
can tell "your input was invalid" apart from "we couldn't save your data".
"""
from dataclasses import dataclass
from typing import Tuple


class ReveriError(Exception):
    """Base class for all Reveri errors."""


class PersistenceWriteFailed(ReveriError):
    """
    The durable write after a mutation did not complete.

    The in-memory collection has already been updated when this is raised;
    `record` holds the memory that was added or deleted.
    """

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class PersistenceLoadCorrupt(ReveriError):
    """Stored payload could not be parsed as a memory collection."""


class StoreNotReady(ReveriError):
    """Store used before initialize() was called."""


class ConfigurationError(ReveriError):
    """Invalid configuration value."""


@dataclass(frozen=True)
class Rejected:
    """A draft that failed required-field checks. No state was changed."""

    empty_fields: Tuple[str, ...]

    @property
    def reason(self) -> str:
        return f"Required field(s) empty: {', '.join(self.empty_fields)}"

    def __bool__(self) -> bool:
        return False
