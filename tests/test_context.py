"""Tests for the Context scope chain."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from strata import Context

from .strategies import bindings, frame_stack, safe_identifier, scalar_value


def _chain(frames: list[dict]) -> Context:
    scope = Context(frames[0])
    for frame in frames[1:]:
        scope = scope.inherit()
        scope.update(frame)
    return scope


class TestLookup:
    """get/has walk outward through the frames."""

    def test_get_local(self) -> None:
        """A local binding is found."""
        assert Context({"x": 1}).get("x") == (1, True)

    def test_get_missing(self) -> None:
        """A missing name reports not found."""
        assert Context().get("x") == (None, False)

    def test_bound_none_is_found(self) -> None:
        """Binding None is distinct from not binding."""
        scope = Context({"x": None})
        assert scope.get("x") == (None, True)
        assert scope.has("x")

    def test_get_from_ancestor(self) -> None:
        """A child sees its ancestors' bindings."""
        root = Context({"x": 1})
        child = root.inherit().inherit()
        assert child.get("x") == (1, True)
        assert child.has("x")

    def test_parent_does_not_see_child(self) -> None:
        """Bindings in a child frame are invisible to the parent."""
        root = Context()
        child = root.inherit()
        child.set("y", 2)
        assert root.get("y") == (None, False)
        assert not root.has("y")

    def test_mapping_protocol(self) -> None:
        """``in`` and ``[]`` follow the chain."""
        child = Context({"x": 1}).inherit()
        assert "x" in child
        assert child["x"] == 1
        with pytest.raises(KeyError):
            child["missing"]

    def test_lookup_default(self) -> None:
        """lookup returns the default for a missing name."""
        assert Context().lookup("x", "fallback") == "fallback"


class TestShadowing:
    """set only ever writes the local frame."""

    def test_set_shadows_parent(self) -> None:
        """Setting a name in a child leaves the parent binding intact."""
        root = Context({"x": 1})
        child = root.inherit()
        child.set("x", 2)
        assert child.get("x") == (2, True)
        assert root.get("x") == (1, True)

    def test_siblings_are_isolated(self) -> None:
        """Two children of one parent do not see each other."""
        root = Context()
        left, right = root.inherit(), root.inherit()
        left.set("x", "left")
        assert right.get("x") == (None, False)

    def test_inherit_returns_empty_frame(self) -> None:
        """A fresh child has no local names."""
        child = Context({"x": 1}).inherit()
        assert child.local_names() == frozenset()
        assert child.parent is not None


class TestUpdate:
    """update copies local bindings only."""

    def test_update_from_mapping(self) -> None:
        """A plain mapping is merged into the local frame."""
        scope = Context({"x": 1})
        result = scope.update({"x": 2, "y": 3})
        assert result is scope
        assert dict(scope.data) == {"x": 2, "y": 3}

    def test_update_copies_only_local_frame(self) -> None:
        """Ancestors of the source Context are not copied."""
        source = Context({"outer": 1}).inherit()
        source.set("inner", 2)
        target = Context().update(source)
        assert target.local_names() == {"inner"}

    def test_update_does_not_touch_ancestors(self) -> None:
        """The target's parent is unchanged by update."""
        root = Context({"x": 1})
        child = root.inherit()
        child.update({"x": 2})
        assert root.get("x") == (1, True)

    def test_data_is_read_only(self) -> None:
        """The local view cannot be mutated."""
        with pytest.raises(TypeError):
            Context({"x": 1}).data["x"] = 2  # type: ignore[index]


class TestIntrospection:
    """names, depth and repr."""

    def test_names_include_ancestors(self) -> None:
        child = Context({"a": 1}).inherit()
        child.set("b", 2)
        assert child.names() == {"a", "b"}
        assert list(child) == ["a", "b"]

    def test_depth(self) -> None:
        assert Context().inherit().inherit().depth() == 3

    def test_repr(self) -> None:
        assert "depth=2" in repr(Context().inherit())


class TestScopeProperties:
    """Property-based checks of the chain rules."""

    @given(frames=frame_stack, name=safe_identifier)
    def test_nearest_binding_wins(self, frames: list[dict], name: str) -> None:
        """get returns the innermost frame's binding."""
        expected = (None, False)
        for frame in frames:
            if name in frame:
                expected = (frame[name], True)
        assert _chain(frames).get(name) == expected

    @given(frames=frame_stack, name=safe_identifier, value=scalar_value)
    def test_set_never_leaks_upward(self, frames: list[dict], name: str, value: object) -> None:
        """Binding in a new child frame leaves the parent's view unchanged."""
        parent = _chain(frames)
        before = parent.get(name)
        child = parent.inherit()
        child.set(name, value)
        assert child.get(name) == (value, True)
        assert parent.get(name) == before

    @given(first=bindings, second=bindings)
    def test_update_last_write_wins(self, first: dict, second: dict) -> None:
        """Later entries overwrite earlier ones."""
        scope = Context(first).update(second)
        assert dict(scope.data) == {**first, **second}

    @given(frames=frame_stack)
    def test_names_is_union_of_frames(self, frames: list[dict]) -> None:
        expected: set[str] = set()
        for frame in frames:
            expected.update(frame)
        assert _chain(frames).names() == expected

    @given(depth=st.integers(min_value=0, max_value=20))
    def test_depth_counts_frames(self, depth: int) -> None:
        scope = Context()
        for _ in range(depth):
            scope = scope.inherit()
        assert scope.depth() == depth + 1
