"""Laakhay Query - Async request lifecycle engine with composable extensions."""

from .core import (
    GlobalOptions,
    ObservableState,
    OptionsError,
    OptionsScope,
    Query,
    QueryError,
    RunStatus,
    StaleRunError,
    StateChange,
    get_global_options,
    reset_global_options,
    resolve_options,
    set_global_options,
)
from .extensions import LoadMore, PageContext, create_load_more

__version__ = "0.1.0"

__all__ = [
    # Core
    "Query",
    "RunStatus",
    "ObservableState",
    "StateChange",
    # Extensions
    "LoadMore",
    "PageContext",
    "create_load_more",
    # Configuration
    "GlobalOptions",
    "OptionsScope",
    "get_global_options",
    "set_global_options",
    "reset_global_options",
    "resolve_options",
    # Exceptions
    "QueryError",
    "StaleRunError",
    "OptionsError",
]
