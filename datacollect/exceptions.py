"""
Error taxonomy for the data collection bot.

Persistence errors bubble to the turn boundary; InvalidInput is recovered by
re-prompting; TransportError is reported but never rolls back state.
"""

from __future__ import annotations

from typing import Optional


class DataCollectError(Exception):
    """Base class for all errors raised by the bot core."""


class ConfigurationError(DataCollectError):
    """A required collaborator was missing when wiring the bot."""


class PersistenceError(DataCollectError):
    """A state or answer store operation failed."""


class ConcurrencyConflict(PersistenceError):
    """Optimistic concurrency token did not match the stored one."""

    def __init__(
        self,
        key: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Concurrency conflict on {key}: expected version {expected!r}, found {actual!r}"
        )


class RecordNotFound(PersistenceError):
    """An answer record id is unknown to the store."""


class InvalidInput(DataCollectError):
    """User input does not satisfy what the active prompt expects."""


class TransportError(DataCollectError):
    """An outbound reply could not be delivered."""
