"""Request core: one logical "current" run of an async service.

Architecture:
    A Query wraps a caller-supplied service (any callable returning an
    awaitable, or a plain value) and tracks exactly one current run:
    - run_async() starts a run as an asyncio task and returns the task
    - run() is run_async() with the outcome discarded
    - cancel() abandons the current run without aborting the service

Design Decisions:
    - Generation token: every run (and every cancel) bumps ``generation``.
      A settlement is applied only if its captured generation is still the
      current one, so the last started run always wins regardless of the
      order in which services complete.
    - Synchronous prologue: params, generation and status are updated before
      run_async() returns, so callers observe PENDING immediately and a
      cancel() issued right after always affects the new run.
    - Callbacks, not subclassing: extensions layer behavior through the
      on_success/on_error/on_after hooks and read state through the public
      properties only.

See Also:
    - LoadMore: Pagination overlay composed on top of a Query
    - ObservableState: Change notification for UI bindings
"""

from __future__ import annotations

import asyncio
import inspect
from functools import partial
from collections.abc import Callable, Iterable
from time import perf_counter
from typing import Any

from .enums import RunStatus
from .exceptions import OptionsError, StaleRunError
from .state import ObservableState, StateCallback
from .telemetry import (
    log_callback_error,
    log_cancelled,
    log_run_discarded,
    log_run_failed,
    log_run_started,
    log_run_succeeded,
)

Service = Callable[..., Any]
BeforeCallback = Callable[[tuple[Any, ...]], None]
SuccessCallback = Callable[[Any, tuple[Any, ...]], None]
ErrorCallback = Callable[[Exception, tuple[Any, ...]], None]
AfterCallback = Callable[[tuple[Any, ...]], None]


class Query:
    """State machine around a single async service.

    State fields (observable through ``subscribe``): ``data``, ``error``,
    ``params``, ``status`` and ``generation``.
    """

    def __init__(
        self,
        service: Service,
        *,
        on_before: BeforeCallback | None = None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_after: AfterCallback | None = None,
        default_params: Iterable[Any] = (),
        initial_data: Any = None,
        name: str | None = None,
    ) -> None:
        """Initialize query.

        Args:
            service: Callable invoked with the run parameters
            on_before: Called with params when a run starts
            on_success: Called with (data, params) when the current run succeeds
            on_error: Called with (error, params) when the current run fails
            on_after: Called with params after either outcome
            default_params: Initial ``params`` (used by refresh before any run)
            initial_data: Initial ``data``
            name: Name used in log records (defaults to the service name)

        Raises:
            OptionsError: If the service or a callback is not callable
        """
        if not callable(service):
            raise OptionsError("service must be callable", key="service")
        hooks = {
            "on_before": on_before,
            "on_success": on_success,
            "on_error": on_error,
            "on_after": on_after,
        }
        for key, hook in hooks.items():
            if hook is not None and not callable(hook):
                raise OptionsError(f"{key} must be callable", key=key)

        self._service = service
        self._on_before = on_before
        self._on_success = on_success
        self._on_error = on_error
        self._on_after = on_after
        self.name = name or getattr(service, "__name__", type(service).__name__)

        self._state = ObservableState(
            data=initial_data,
            error=None,
            params=tuple(default_params),
            status=RunStatus.IDLE,
            generation=0,
        )
        # Status to fall back to when a pending run is cancelled
        self._settled_status = RunStatus.IDLE
        # Strong references to in-flight service tasks
        self._tasks: set[asyncio.Task[Any]] = set()

    # ----------------------
    # State
    # ----------------------
    @property
    def data(self) -> Any:
        return self._state.get("data")

    @property
    def error(self) -> Exception | None:
        return self._state.get("error")

    @property
    def params(self) -> tuple[Any, ...]:
        return self._state.get("params")

    @property
    def status(self) -> RunStatus:
        return self._state.get("status")

    @property
    def generation(self) -> int:
        return self._state.get("generation")

    @property
    def loading(self) -> bool:
        return self.status is RunStatus.PENDING

    def subscribe(self, callback: StateCallback, *, fields: Iterable[str] | None = None) -> str:
        """Subscribe to state changes. Returns a subscription ID."""
        return self._state.subscribe(callback, fields=fields)

    def unsubscribe(self, subscription_id: str) -> None:
        self._state.unsubscribe(subscription_id)

    # ----------------------
    # Runs
    # ----------------------
    def run(self, *params: Any) -> None:
        """Start a run and discard its outcome.

        Service failures end up in ``error`` and the on_error hook; they are
        never raised from the background task. Exceptions raised by the
        hooks themselves are logged.
        """
        task = self._start(params, capture=True)
        task.add_done_callback(partial(self._report_unhandled, self.generation))

    def run_async(self, *params: Any) -> asyncio.Task[Any]:
        """Start a run and return the task resolving to its outcome.

        Awaiting the task returns the service result, re-raises the service
        failure, or raises StaleRunError if the run was superseded or
        cancelled before it settled.

        Raises:
            RuntimeError: If no event loop is running
        """
        return self._start(params, capture=False)

    def refresh(self) -> None:
        """Run again with the current params."""
        self.run(*self.params)

    def refresh_async(self) -> asyncio.Task[Any]:
        """Run again with the current params and return the task."""
        return self.run_async(*self.params)

    def cancel(self) -> None:
        """Abandon the current run.

        The in-flight service is not interrupted; its eventual settlement is
        discarded. A PENDING status falls back to the last settled status.
        """
        was_pending = self.status is RunStatus.PENDING
        changes: dict[str, Any] = {"generation": self.generation + 1}
        if was_pending:
            changes["status"] = self._settled_status
        self._state.set(**changes)
        log_cancelled(query=self.name, generation=self.generation, was_pending=was_pending)

    def mutate(self, data: Any) -> None:
        """Replace ``data`` directly.

        ``data`` may also be a function receiving the current data and
        returning the new one. Status and generation are left untouched.
        """
        if callable(data):
            data = data(self.data)
        self._state.set(data=data)

    # ----------------------
    # Internals
    # ----------------------
    def _start(self, params: tuple[Any, ...], *, capture: bool) -> asyncio.Task[Any]:
        loop = asyncio.get_running_loop()
        generation = self.generation + 1
        self._state.set(params=params, generation=generation, status=RunStatus.PENDING)
        log_run_started(query=self.name, generation=generation, param_count=len(params))

        if self._on_before is not None:
            try:
                self._on_before(params)
            except Exception:
                self.cancel()
                raise

        task = loop.create_task(self._execute(generation, params, capture=capture))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, generation: int) -> bool:
        return generation == self.generation

    def _stale(self, generation: int, *, capture: bool) -> StaleRunError | None:
        log_run_discarded(
            query=self.name, generation=generation, current_generation=self.generation
        )
        if capture:
            return None
        return StaleRunError(
            f"Run {generation} of {self.name} was superseded",
            generation=generation,
            current_generation=self.generation,
        )

    async def _execute(
        self, generation: int, params: tuple[Any, ...], *, capture: bool
    ) -> Any:
        started = perf_counter()
        try:
            result = self._service(*params)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._is_current(generation):
                stale = self._stale(generation, capture=capture)
                if stale is None:
                    return None
                raise stale from e

            self._settled_status = RunStatus.FAILED
            self._state.set(error=e, status=RunStatus.FAILED)
            log_run_failed(
                query=self.name,
                generation=generation,
                error_type=type(e).__name__,
                error_message=str(e),
                latency_ms=(perf_counter() - started) * 1000.0,
            )
            if self._on_error is not None:
                self._on_error(e, params)
            # A hook may have started a newer run
            if self._on_after is not None and self._is_current(generation):
                self._on_after(params)
            if capture:
                return None
            raise

        if not self._is_current(generation):
            stale = self._stale(generation, capture=capture)
            if stale is None:
                return None
            raise stale

        self._settled_status = RunStatus.SUCCEEDED
        self._state.set(data=result, error=None, status=RunStatus.SUCCEEDED)
        log_run_succeeded(
            query=self.name,
            generation=generation,
            latency_ms=(perf_counter() - started) * 1000.0,
        )
        if self._on_success is not None:
            self._on_success(result, params)
        if self._on_after is not None and self._is_current(generation):
            self._on_after(params)
        return result

    def _report_unhandled(self, generation: int, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log_callback_error(query=self.name, generation=generation, error=error)

    def __repr__(self) -> str:
        return f"Query(name={self.name!r}, status={self.status.value}, generation={self.generation})"
