"""Observable state container used by queries and their extensions.

The engine keeps its state in plain attributes; UI binding layers observe it
through ``subscribe``. Each changed field produces one StateChange per
interested subscriber.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateChange:
    """A single field change.

    Attributes:
        field: Name of the field that changed (e.g., "data", "status")
        value: New value
        previous: Value before the change
    """

    field: str
    value: Any
    previous: Any


StateCallback = Callable[[StateChange], Awaitable[None]] | Callable[[StateChange], None]


@dataclass(frozen=True)
class _Sub:
    callback: StateCallback
    fields: frozenset[str] | None  # None means every field


class ObservableState:
    """Named fields with change notification."""

    def __init__(self, **fields: Any) -> None:
        self._values: dict[str, Any] = dict(fields)
        self._subs: dict[str, _Sub] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def get(self, field: str) -> Any:
        return self._values[field]

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of every field."""
        return dict(self._values)

    def set(self, **changes: Any) -> list[StateChange]:
        """Assign fields and notify subscribers of the ones that changed.

        A field counts as changed when the new value is not the same object
        as the old one.

        Returns:
            The changes that were applied, in assignment order
        """
        applied: list[StateChange] = []
        for field, value in changes.items():
            if field not in self._values:
                raise KeyError(f"Unknown state field: {field!r}")
            previous = self._values[field]
            if previous is value:
                continue
            self._values[field] = value
            applied.append(StateChange(field=field, value=value, previous=previous))

        for change in applied:
            self.notify(change)
        return applied

    def subscribe(self, callback: StateCallback, *, fields: Iterable[str] | None = None) -> str:
        """Register a change callback.

        Args:
            callback: Sync function or coroutine function taking a StateChange
            fields: Field names to watch (None = all fields)

        Returns:
            Subscription ID for later unsubscription
        """
        sub = _Sub(callback=callback, fields=frozenset(fields) if fields is not None else None)
        sub_id = uuid.uuid4().hex
        self._subs[sub_id] = sub
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        self._subs.pop(subscription_id, None)

    def notify(self, change: StateChange) -> None:
        """Deliver ``change`` to interested subscribers.

        Sync callbacks run inline so observers see state transitions in
        order; coroutine callbacks are scheduled on the running loop.
        """
        for sub in list(self._subs.values()):
            if sub.fields is not None and change.field not in sub.fields:
                continue
            try:
                if inspect.iscoroutinefunction(sub.callback):
                    task = asyncio.get_running_loop().create_task(sub.callback(change))
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
                else:
                    sub.callback(change)
            except Exception as e:
                # Subscribers must never break the engine
                logger.error(
                    "state_subscriber_error",
                    extra={"field": change.field, "error_type": type(e).__name__},
                    exc_info=True,
                )
