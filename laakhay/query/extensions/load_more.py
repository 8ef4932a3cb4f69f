"""Load-more (pagination) overlay for a Query.

Architecture:
    LoadMore composes a Query through its callback contract only. It owns
    the accumulated ``data_list`` and three flags describing why the current
    run was started:
    - loading_more: appending the next page
    - refreshing: re-fetching from the top, list replaced on success
    - reloading: list cleared immediately, then re-fetched from the top

    The first positional service parameter is reserved for pagination: a
    PageContext when loading more, None when starting from the top. All
    other parameters are carried over from the previous run.

Design Decisions:
    - A failed refresh keeps the previous list; only a successful refresh
      replaces it. Reload clears eagerly regardless of the outcome.
    - ``no_more`` is a pure projection of ``data`` through ``is_no_more``.
    - The core's own refresh/refresh_async are not exposed: the overlay's
      versions reset pagination instead of replaying the last page request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..core.config import OptionsScope, resolve_options
from ..core.enums import RunStatus
from ..core.query import (
    AfterCallback,
    BeforeCallback,
    ErrorCallback,
    Query,
    SuccessCallback,
)
from ..core.state import ObservableState, StateCallback, StateChange
from ..utils import get_path

logger = logging.getLogger(__name__)

NoMorePredicate = Callable[[Any], bool]

_OVERLAY_FIELDS = frozenset({"data_list", "loading_more", "refreshing", "reloading", "no_more"})


@dataclass(frozen=True)
class PageContext:
    """First service parameter passed by ``load_more``.

    Attributes:
        data: Result of the previous successful run
        data_list: Items accumulated so far
    """

    data: Any
    data_list: list[Any] = field(default_factory=list)


class LoadMore:
    """Pagination overlay accumulating list results across runs."""

    def __init__(
        self,
        service: Callable[..., Any],
        *,
        list_key: str = "list",
        is_no_more: NoMorePredicate | None = None,
        on_before: BeforeCallback | None = None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_after: AfterCallback | None = None,
        default_params: Iterable[Any] = (),
        initial_data: Any = None,
        name: str | None = None,
    ) -> None:
        """Initialize overlay and its underlying query.

        Args:
            service: Callable taking ``(PageContext | None, *params)``
            list_key: Path of the list inside each result
            is_no_more: Predicate on ``data`` telling whether pages are exhausted
            on_before: Forwarded to the query unchanged
            on_success: Called after the overlay has updated its list
            on_error: Called after the overlay has cleared its flags
            on_after: Called after either outcome
            default_params: Initial params of the underlying query
            initial_data: Initial data of the underlying query
            name: Name used in log records
        """
        self._list_key = list_key
        self._is_no_more = is_no_more if callable(is_no_more) else None
        self._caller_on_success = on_success
        self._caller_on_error = on_error
        self._caller_on_after = on_after

        self._state = ObservableState(
            data_list=[],
            loading_more=False,
            refreshing=False,
            reloading=False,
            no_more=False,
        )
        # Overlay subscription id -> matching query subscription id
        self._query_subs: dict[str, str] = {}

        self._query = Query(
            service,
            on_before=on_before,
            on_success=self._handle_success,
            on_error=self._handle_error,
            on_after=self._handle_after,
            default_params=default_params,
            initial_data=initial_data,
            name=name,
        )
        self._query.subscribe(self._handle_data_change, fields=["data"])

    # ----------------------
    # State
    # ----------------------
    @property
    def data(self) -> Any:
        return self._query.data

    @property
    def data_list(self) -> list[Any]:
        return self._state.get("data_list")

    @property
    def params(self) -> tuple[Any, ...]:
        return self._query.params

    @property
    def error(self) -> Exception | None:
        return self._query.error

    @property
    def status(self) -> RunStatus:
        return self._query.status

    @property
    def loading(self) -> bool:
        return self._query.loading

    @property
    def generation(self) -> int:
        return self._query.generation

    @property
    def no_more(self) -> bool:
        return self._compute_no_more(self.data)

    @property
    def loading_more(self) -> bool:
        return self._state.get("loading_more")

    @property
    def refreshing(self) -> bool:
        return self._state.get("refreshing")

    @property
    def reloading(self) -> bool:
        return self._state.get("reloading")

    @property
    def list_key(self) -> str:
        return self._list_key

    def subscribe(self, callback: StateCallback, *, fields: Iterable[str] | None = None) -> str:
        """Subscribe to overlay and query state changes.

        Returns one subscription ID covering both; overlay fields are
        ``data_list``, ``loading_more``, ``refreshing``, ``reloading`` and
        ``no_more``; any other field name refers to the query.
        """
        wanted = frozenset(fields) if fields is not None else None
        overlay_fields = _OVERLAY_FIELDS if wanted is None else wanted & _OVERLAY_FIELDS
        query_fields = None if wanted is None else wanted - _OVERLAY_FIELDS

        # Stored no_more may lag the projection until first observed
        self._sync_no_more()
        sub_id = self._state.subscribe(callback, fields=overlay_fields)
        if query_fields is None or query_fields:
            query_sub = self._query.subscribe(callback, fields=query_fields)
            self._query_subs[sub_id] = query_sub
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        self._state.unsubscribe(subscription_id)
        query_sub = self._query_subs.pop(subscription_id, None)
        if query_sub is not None:
            self._query.unsubscribe(query_sub)

    # ----------------------
    # Operations
    # ----------------------
    def run(self, *params: Any) -> None:
        self._query.run(*params)

    def run_async(self, *params: Any) -> asyncio.Task[Any]:
        return self._query.run_async(*params)

    def load_more(self) -> None:
        """Fetch the next page, unless ``no_more``."""
        if self.no_more:
            logger.debug("load_more_skipped", extra={"query": self._query.name})
            return
        self._state.set(loading_more=True)
        context = PageContext(data=self.data, data_list=self.data_list)
        self._start(lambda: self._query.run(context, *self._rest_params()))

    def refresh(self) -> None:
        """Re-fetch from the top; the list is replaced once the run succeeds."""
        self._state.set(refreshing=True)
        self._start(lambda: self._query.run(None, *self._rest_params()))

    def refresh_async(self) -> asyncio.Task[Any]:
        """Re-fetch from the top and return the task resolving to the outcome.

        ``refreshing`` is set and the run started before this returns.

        Raises:
            Exception: Awaiting the task re-raises the service failure, or
                StaleRunError if superseded
        """
        self._state.set(refreshing=True)
        return self._start(lambda: self._query.run_async(None, *self._rest_params()))

    def reload(self) -> None:
        """Abandon the current run, clear the list and fetch from the top."""
        self._state.set(reloading=True)
        self.cancel()
        self._state.set(data_list=[])
        self._sync_no_more()
        self._start(lambda: self._query.run(None, *self._rest_params()))

    def cancel(self) -> None:
        """Cancel the current run and clear ``loading_more``/``refreshing``."""
        self._query.cancel()
        self._state.set(loading_more=False, refreshing=False)

    def mutate(self, data: Any) -> None:
        self._query.mutate(data)

    # ----------------------
    # Query hooks
    # ----------------------
    def _rest_params(self) -> tuple[Any, ...]:
        return self._query.params[1:]

    def _clear_flags(self) -> None:
        self._state.set(loading_more=False, refreshing=False, reloading=False)

    def _start(self, start: Callable[[], Any]) -> Any:
        # No settlement follows a run that failed to start
        try:
            return start()
        except Exception:
            self._clear_flags()
            raise

    def _handle_success(self, data: Any, params: tuple[Any, ...]) -> None:
        data_list = [] if self.refreshing else self.data_list
        self._clear_flags()

        items = get_path(data, self._list_key)
        if isinstance(items, (list, tuple)):
            self._state.set(data_list=[*data_list, *items])
        elif data_list is not self.data_list:
            self._state.set(data_list=data_list)
        self._sync_no_more()

        if self._caller_on_success is not None:
            self._caller_on_success(data, params)

    def _handle_error(self, error: Exception, params: tuple[Any, ...]) -> None:
        self._clear_flags()
        if self._caller_on_error is not None:
            self._caller_on_error(error, params)

    def _handle_after(self, params: tuple[Any, ...]) -> None:
        if self._caller_on_after is not None:
            self._caller_on_after(params)

    def _compute_no_more(self, data: Any) -> bool:
        if self._is_no_more is None:
            return False
        return bool(self._is_no_more(data))

    def _sync_no_more(self) -> None:
        self._state.set(no_more=self.no_more)

    def _handle_data_change(self, change: StateChange) -> None:
        self._sync_no_more()

    def __repr__(self) -> str:
        return (
            f"LoadMore(name={self._query.name!r}, items={len(self.data_list)}, "
            f"no_more={self.no_more})"
        )


def create_load_more(
    service: Callable[..., Any],
    *,
    list_key: str | None = None,
    is_no_more: NoMorePredicate | None = None,
    scope: OptionsScope | None = None,
    on_before: BeforeCallback | None = None,
    on_success: SuccessCallback | None = None,
    on_error: ErrorCallback | None = None,
    on_after: AfterCallback | None = None,
    default_params: Iterable[Any] = (),
    initial_data: Any = None,
    name: str | None = None,
) -> LoadMore:
    """Create a LoadMore overlay, resolving ``list_key`` from options.

    ``list_key`` falls back to the scope chain and then to the global
    default (see ``set_global_options``).

    Example:
        >>> async def fetch_page(context, query):
        ...     cursor = context.data["next"] if context else None
        ...     return await api.search(query, cursor=cursor)
        >>> feed = create_load_more(fetch_page, is_no_more=lambda d: d and not d["next"])
        >>> feed.run(None, "btc")
        >>> feed.load_more()
    """
    explicit = {"list_key": list_key} if list_key is not None else {}
    options = resolve_options(explicit, scope)

    return LoadMore(
        service,
        list_key=options["list_key"],
        is_no_more=is_no_more,
        on_before=on_before,
        on_success=on_success,
        on_error=on_error,
        on_after=on_after,
        default_params=default_params,
        initial_data=initial_data,
        name=name,
    )
