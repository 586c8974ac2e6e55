"""Tests for DependencyResolver."""

import itertools
from unittest.mock import patch

import pytest

from sddkit.errors import CircularDependencyError, MissingDependencyError
from sddkit.installer import CommandsetDefinitionManager, DependencyResolver

from tests.conftest import make_definition


def resolver_for(**deps) -> DependencyResolver:
    """Build a resolver where each keyword names a commandset and its dependencies."""
    definitions = {name: make_definition(name, dependencies=d) for name, d in deps.items()}
    return DependencyResolver(CommandsetDefinitionManager(definitions))


@pytest.fixture
def bundled(definitions) -> DependencyResolver:
    return DependencyResolver(definitions)


class TestBundledOrder:
    def test_two_independent(self, bundled):
        result = bundled.resolve_install_order(["bug", "cc-sdd"])
        assert result.ok
        assert len(result.value) == 2
        assert set(result.value) == {"bug", "cc-sdd"}

    def test_deduplicates(self, bundled):
        result = bundled.resolve_install_order(["cc-sdd", "cc-sdd", "bug"])
        assert result.ok
        assert result.value == ["cc-sdd", "bug"]

    def test_empty(self, bundled):
        result = bundled.resolve_install_order([])
        assert result.ok
        assert result.value == []

    def test_single(self, bundled):
        assert bundled.resolve_install_order(["bug"]).value == ["bug"]

    def test_alias_is_independent(self, bundled):
        result = bundled.resolve_install_order(["cc-sdd-agent", "cc-sdd"])
        assert result.value == ["cc-sdd-agent", "cc-sdd"]


class TestDeclaredDependencies:
    def test_dependencies_first(self):
        resolver = resolver_for(a=["b"], b=["c"], c=[])
        result = resolver.resolve_install_order(["a", "b", "c"])
        assert result.ok
        assert result.value == ["c", "b", "a"]

    def test_every_permutation_honors_edges(self):
        resolver = resolver_for(app=["core", "utils"], utils=["core"], core=[], docs=[])
        names = ["app", "utils", "core", "docs"]
        for permutation in itertools.permutations(names):
            result = resolver.resolve_install_order(list(permutation))
            assert result.ok
            order = result.value
            assert sorted(order) == sorted(names)
            assert order.index("core") < order.index("utils") < order.index("app")

    def test_missing_dependency(self):
        result = resolver_for(a=["b"], b=[], c=[]).resolve_install_order(["a", "c"])
        assert not result.ok
        assert isinstance(result.error, MissingDependencyError)
        assert result.error.code == "MISSING_DEPENDENCY"
        assert (result.error.commandset, result.error.required) == ("a", "b")

    def test_missing_dependency_single(self):
        result = resolver_for(a=["b"], b=[]).resolve_install_order(["a", "a"])
        assert not result.ok
        assert result.error.required == "b"


class TestCycles:
    def test_two_node_cycle(self):
        resolver = resolver_for(a=["b"], b=["a"])
        result = resolver.resolve_install_order(["a", "b"])
        assert not result.ok
        assert isinstance(result.error, CircularDependencyError)
        assert result.error.code == "CIRCULAR_DEPENDENCY"
        assert result.error.cycle == ["a", "b", "a"]

    def test_detect_reports_cycle(self):
        resolver = resolver_for(a=["b"], b=["c"], c=["a"], d=[])
        cycles = resolver.detect_circular_dependencies(["d", "a", "b", "c"])
        assert cycles
        assert all(cycle for cycle in cycles)
        assert set(cycles[0]) == {"a", "b", "c"}

    def test_self_dependency(self):
        resolver = resolver_for(a=["a"], b=[])
        result = resolver.resolve_install_order(["a", "b"])
        assert not result.ok
        assert result.error.cycle == ["a", "a"]

    def test_acyclic_has_no_cycles(self):
        resolver = resolver_for(a=["b"], b=[])
        assert resolver.detect_circular_dependencies(["a", "b"]) == []


class TestTopologicalFallback:
    def test_fallback_not_reached_from_resolve(self):
        """Cycle detection stops cyclic input before the sort runs."""
        resolver = resolver_for(a=["b"], b=["a"])
        with patch.object(resolver, "topological_sort", wraps=resolver.topological_sort) as sort:
            result = resolver.resolve_install_order(["a", "b"])
        assert not result.ok
        sort.assert_not_called()

    def test_fallback_not_reached_for_acyclic(self, caplog):
        resolver = resolver_for(a=["b"], b=["c"], c=[])
        with caplog.at_level("WARNING"):
            assert resolver.resolve_install_order(["a", "b", "c"]).ok
        assert "keeping requested order" not in caplog.text

    def test_direct_sort_of_cycle_keeps_input(self):
        resolver = resolver_for(a=["b"], b=["a"], c=[])
        assert resolver.topological_sort(["b", "a", "c", "b"]) == ["b", "a", "c"]
