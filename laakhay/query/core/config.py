"""Option resolution: per-call options, scoped overrides and global defaults.

Architecture:
    Options are resolved through a three-level chain, nearest first:
    - explicit: keyword arguments passed at the call site
    - ambient: an OptionsScope threaded in by the caller (scope chains nest)
    - defaults: the process-wide GlobalOptions

Design Decisions:
    - Pydantic model for defaults: values are validated once when they are set
    - Explicit scope objects: scoped configuration is passed as a parameter
      rather than looked up implicitly, so resolution stays a pure function
    - Lazy singleton: global options are created on first access

See Also:
    - create_load_more: Resolves ``list_key`` through this chain
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import OptionsError


class GlobalOptions(BaseModel):
    """Process-wide default options.

    Attributes:
        list_key: Path of the list field inside a service result that the
            load-more overlay accumulates (default: "list")
    """

    list_key: str = Field(default="list", min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)


_global_options: GlobalOptions | None = None


def get_global_options() -> GlobalOptions:
    """Get the process-wide options singleton."""
    global _global_options
    if _global_options is None:
        _global_options = GlobalOptions()
    return _global_options


def set_global_options(**options: Any) -> GlobalOptions:
    """Merge ``options`` into the process-wide defaults.

    Intended to be called once while the application starts up.

    Raises:
        OptionsError: If a key is unknown or a value fails validation
    """
    global _global_options
    current = get_global_options()
    try:
        _global_options = GlobalOptions.model_validate({**current.model_dump(), **options})
    except ValidationError as e:
        raise OptionsError(f"Invalid global options: {e}") from e
    return _global_options


def reset_global_options() -> None:
    """Restore the built-in defaults."""
    global _global_options
    _global_options = None


def _validate_keys(overrides: Mapping[str, Any]) -> None:
    for key in overrides:
        if key not in GlobalOptions.model_fields:
            raise OptionsError(f"Unknown option: {key!r}", key=key)


class OptionsScope:
    """A nestable scope of option overrides.

    Replaces framework-level dependency injection: application code creates
    a scope for a section of the UI (or a service layer) and passes it to the
    factories that need it. Child scopes override their parents.

    Example:
        >>> app = OptionsScope(list_key="items")
        >>> search = app.child(list_key="results")
        >>> search.as_mapping()
        {'list_key': 'results'}
    """

    def __init__(self, parent: OptionsScope | None = None, **overrides: Any) -> None:
        _validate_keys(overrides)
        self._parent = parent
        self._overrides = dict(overrides)

    @property
    def parent(self) -> OptionsScope | None:
        return self._parent

    def child(self, **overrides: Any) -> OptionsScope:
        """Create a nested scope inheriting from this one."""
        return OptionsScope(self, **overrides)

    def as_mapping(self) -> dict[str, Any]:
        """Flatten the scope chain, nearest scope winning."""
        chain: list[OptionsScope] = []
        scope: OptionsScope | None = self
        while scope is not None:
            chain.append(scope)
            scope = scope._parent

        merged: dict[str, Any] = {}
        for scope in reversed(chain):
            merged.update(scope._overrides)
        return merged

    def __repr__(self) -> str:
        return f"OptionsScope({self.as_mapping()!r})"


def resolve_options(
    explicit: Mapping[str, Any],
    ambient: Mapping[str, Any] | OptionsScope | None = None,
    defaults: Mapping[str, Any] | GlobalOptions | None = None,
) -> dict[str, Any]:
    """Merge option layers with explicit > ambient > defaults precedence.

    Any key present in a nearer layer wins, even when its value is None.
    Keys missing from every layer are simply absent from the result.

    Args:
        explicit: Options passed at the call site
        ambient: Scoped options (mapping or OptionsScope)
        defaults: Fallback options (defaults to the process-wide options)

    Returns:
        New dict with the effective options
    """
    if defaults is None:
        defaults = get_global_options()
    if isinstance(defaults, GlobalOptions):
        defaults = defaults.model_dump()
    if isinstance(ambient, OptionsScope):
        ambient = ambient.as_mapping()

    resolved: dict[str, Any] = dict(defaults)
    resolved.update(ambient or {})
    resolved.update(explicit)
    return resolved
