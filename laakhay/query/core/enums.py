"""Core enumerations."""

from enum import Enum


class RunStatus(str, Enum):
    """Lifecycle status of the current run of a query.

    Transitions: IDLE -> PENDING -> {SUCCEEDED, FAILED} -> PENDING -> ...
    A cancelled PENDING run falls back to the last settled status.
    """

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
