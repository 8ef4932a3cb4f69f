"""Core components."""

from .config import (
    GlobalOptions,
    OptionsScope,
    get_global_options,
    reset_global_options,
    resolve_options,
    set_global_options,
)
from .enums import RunStatus
from .exceptions import OptionsError, QueryError, StaleRunError
from .query import Query
from .state import ObservableState, StateChange

__all__ = [
    "Query",
    "RunStatus",
    "ObservableState",
    "StateChange",
    "GlobalOptions",
    "OptionsScope",
    "get_global_options",
    "set_global_options",
    "reset_global_options",
    "resolve_options",
    "QueryError",
    "StaleRunError",
    "OptionsError",
]
