"""Custom exception hierarchy."""

from __future__ import annotations


class QueryError(Exception):
    """Base exception for all library errors."""

    pass


class StaleRunError(QueryError):
    """Settlement of a run that is no longer current.

    Raised to whoever awaits a ``run_async`` task when a newer run or a
    ``cancel()`` superseded it before the service settled. The settlement
    itself was discarded: no state was mutated and no callback fired.
    """

    def __init__(
        self,
        message: str,
        generation: int,
        current_generation: int,
    ) -> None:
        super().__init__(message)
        self.generation = generation
        self.current_generation = current_generation


class OptionsError(QueryError):
    """Invalid query construction or configuration options."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
