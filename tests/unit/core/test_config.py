"""Unit tests for option resolution and global options."""

from __future__ import annotations

import pytest

from laakhay.query.core import (
    GlobalOptions,
    OptionsError,
    OptionsScope,
    get_global_options,
    reset_global_options,
    resolve_options,
    set_global_options,
)


class TestResolveOptions:
    def test_explicit_wins(self):
        resolved = resolve_options({"list_key": "a"}, {"list_key": "b"}, {"list_key": "c"})
        assert resolved["list_key"] == "a"

    def test_ambient_wins_over_defaults(self):
        resolved = resolve_options({}, {"list_key": "b"}, {"list_key": "c"})
        assert resolved["list_key"] == "b"

    def test_defaults_used_when_absent_elsewhere(self):
        resolved = resolve_options({}, None, {"list_key": "c"})
        assert resolved == {"list_key": "c"}

    def test_present_none_still_wins(self):
        resolved = resolve_options({"list_key": None}, {"list_key": "b"})
        assert resolved["list_key"] is None

    def test_missing_keys_fall_through(self):
        resolved = resolve_options({"page_size": 20}, {"cursor": None}, {})
        assert resolved == {"page_size": 20, "cursor": None}

    def test_defaults_to_global_options(self):
        set_global_options(list_key="rows")
        assert resolve_options({})["list_key"] == "rows"

    def test_accepts_scope_and_model(self):
        scope = OptionsScope(list_key="items")
        resolved = resolve_options({}, scope, GlobalOptions(list_key="rows"))
        assert resolved["list_key"] == "items"

    def test_inputs_not_mutated(self):
        explicit = {"list_key": "a"}
        ambient = {"list_key": "b"}
        resolve_options(explicit, ambient, {"list_key": "c"})
        assert explicit == {"list_key": "a"}
        assert ambient == {"list_key": "b"}


class TestGlobalOptions:
    def test_default_list_key(self):
        assert get_global_options().list_key == "list"

    def test_singleton(self):
        assert get_global_options() is get_global_options()

    def test_set_and_reset(self):
        options = set_global_options(list_key="data.items")
        assert options.list_key == "data.items"
        assert get_global_options().list_key == "data.items"

        reset_global_options()
        assert get_global_options().list_key == "list"

    def test_unknown_key_rejected(self):
        with pytest.raises(OptionsError):
            set_global_options(page_size=10)
        assert get_global_options().list_key == "list"

    def test_empty_list_key_rejected(self):
        with pytest.raises(OptionsError):
            set_global_options(list_key="")

    def test_options_are_frozen(self):
        options = get_global_options()
        with pytest.raises(Exception):
            options.list_key = "other"


class TestOptionsScope:
    def test_child_overrides_parent(self):
        app = OptionsScope(list_key="items")
        page = app.child(list_key="results")
        assert page.parent is app
        assert page.as_mapping() == {"list_key": "results"}
        assert app.as_mapping() == {"list_key": "items"}

    def test_child_inherits_parent(self):
        page = OptionsScope(list_key="items").child()
        assert page.as_mapping() == {"list_key": "items"}

    def test_empty_scope(self):
        assert OptionsScope().as_mapping() == {}

    def test_unknown_key_rejected(self):
        with pytest.raises(OptionsError) as exc_info:
            OptionsScope(listKey="items")
        assert exc_info.value.key == "listKey"
