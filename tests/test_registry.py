"""Tests for the filter, test and statement registries."""

from __future__ import annotations

import pytest

from strata import Environment, ErrorCode, Registry, RegistryError
from strata.statements import DEFAULT_STATEMENTS


class TestRegister:
    """register refuses to overwrite."""

    def test_register_new_name(self) -> None:
        registry: Registry[int] = Registry("filter")
        registry.register("one", 1)
        assert registry["one"] == 1
        assert registry.exists("one")

    def test_register_existing_name_fails(self) -> None:
        """Registering a name twice raises and keeps the first entry."""
        registry = Registry("filter", {"upper": str.upper})
        with pytest.raises(RegistryError) as exc_info:
            registry.register("upper", str.lower)
        assert exc_info.value.code == ErrorCode.ALREADY_REGISTERED
        assert exc_info.value.kind == "filter"
        assert exc_info.value.name == "upper"
        assert "filter 'upper' is already registered" in str(exc_info.value)
        assert registry["upper"] is str.upper


class TestReplace:
    """replace refuses to create."""

    def test_replace_existing_name(self) -> None:
        registry = Registry("filter", {"upper": str.upper})
        registry.replace("upper", str.lower)
        assert registry["upper"]("ABC") == "abc"

    def test_replace_missing_name_fails(self) -> None:
        """Replacing an unknown name raises and adds nothing."""
        registry: Registry[int] = Registry("test")
        with pytest.raises(RegistryError) as exc_info:
            registry.replace("odd", 1)
        assert exc_info.value.code == ErrorCode.NOT_REGISTERED
        assert "cannot be replaced" in str(exc_info.value)
        assert "odd" not in registry


class TestUpdate:
    """update merges unconditionally."""

    def test_update_last_write_wins(self) -> None:
        registry = Registry("filter", {"a": 1, "b": 2})
        result = registry.update({"b": 20, "c": 30})
        assert result is registry
        assert dict(registry) == {"a": 1, "b": 20, "c": 30}

    def test_update_from_registry(self) -> None:
        target = Registry("filter", {"a": 1})
        target.update(Registry("filter", {"b": 2}))
        assert set(target) == {"a", "b"}

    def test_copy_on_write(self) -> None:
        """A copy taken before a mutation is unaffected by it."""
        registry = Registry("filter", {"a": 1})
        snapshot = registry.copy()
        registry.register("b", 2)
        assert snapshot == {"a": 1}
        assert len(registry) == 2


class TestSeal:
    """Sealed registries refuse every mutation."""

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda r: r.register("new", 1),
            lambda r: r.replace("a", 2),
            lambda r: r.update({"a": 3}),
        ],
    )
    def test_sealed_registry_rejects_mutation(self, mutate) -> None:
        registry = Registry("filter", {"a": 1})
        registry.seal()
        with pytest.raises(RegistryError) as exc_info:
            mutate(registry)
        assert exc_info.value.code == ErrorCode.REGISTRY_SEALED
        assert dict(registry) == {"a": 1}

    def test_sealed_check_comes_first(self) -> None:
        """A sealed registry reports sealing even for a duplicate name."""
        registry = Registry("filter", {"a": 1})
        registry.seal()
        with pytest.raises(RegistryError) as exc_info:
            registry.register("a", 2)
        assert exc_info.value.code == ErrorCode.REGISTRY_SEALED

    def test_repr_shows_sealed(self) -> None:
        registry = Registry("statement")
        registry.seal()
        assert "sealed" in repr(registry)


class TestEnvironmentRegistries:
    """The Environment's three registries."""

    def test_defaults_present(self, env: Environment) -> None:
        assert "upper" in env.filters
        assert "defined" in env.tests
        assert set(DEFAULT_STATEMENTS) <= set(env.statements)

    def test_environments_do_not_share_registries(self) -> None:
        """Registering on one Environment leaves another untouched."""
        first, second = Environment(), Environment()
        first.add_filter("shout", lambda v: f"{v}!")
        assert "shout" in first.filters
        assert "shout" not in second.filters

    def test_add_filter_used_in_template(self, env: Environment) -> None:
        env.add_filter("shout", lambda v: f"{v}!")
        assert env.from_string("{{ 'hi' | shout }}").render() == "hi!"

    def test_add_filter_twice_fails(self, env: Environment) -> None:
        with pytest.raises(RegistryError):
            env.add_filter("upper", str.upper)

    def test_add_test_used_in_template(self, env: Environment) -> None:
        env.add_test("positive", lambda v: v > 0)
        template = env.from_string("{% if n is positive %}yes{% else %}no{% endif %}")
        assert template.render(n=3) == "yes"
        assert template.render(n=-3) == "no"

    def test_replace_filter(self, env: Environment) -> None:
        env.filters.replace("upper", lambda v: "replaced")
        assert env.from_string("{{ 'x' | upper }}").render() == "replaced"

    def test_update_merges_all_registries(self) -> None:
        """Environment.update merges filters, tests and statements."""
        base, extra = Environment(), Environment()
        extra.filters.register("shout", lambda v: f"{v}!")
        extra.tests.register("positive", lambda v: v > 0)
        extra.statements.register("noop", DEFAULT_STATEMENTS["set"])
        assert base.update(extra) is base
        assert "shout" in base.filters
        assert "positive" in base.tests
        assert "noop" in base.statements

    def test_seal_environment(self, env: Environment) -> None:
        env.seal()
        with pytest.raises(RegistryError) as exc_info:
            env.add_test("positive", lambda v: v > 0)
        assert exc_info.value.code == ErrorCode.REGISTRY_SEALED
        assert env.from_string("{{ 'x' | upper }}").render() == "X"
