"""Install-order resolution over commandset dependencies."""

import logging
from collections import deque

from sddkit.errors import (
    CircularDependencyError,
    MissingDependencyError,
    Result,
)

from .definitions import CommandsetDefinitionManager

_logging = logging.getLogger(__name__)


def _dedupe(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


class DependencyResolver:
    """Orders a requested set of commandsets so dependencies come first.

    Only edges between requested commandsets take part in ordering. A
    dependency that was not requested is an error, not an implicit install.
    """

    def __init__(self, definitions: CommandsetDefinitionManager):
        self.definitions = definitions

    def _edges(self, names: list[str]) -> dict[str, list[str]]:
        requested = set(names)
        return {
            name: [d for d in self.definitions.get_dependencies(name) if d in requested]
            for name in names
        }

    def resolve_install_order(self, names: list[str]) -> Result[list[str]]:
        """Return ``names`` deduplicated and ordered dependencies-first.

        Errors:
            MISSING_DEPENDENCY: a requested commandset needs one that was not
                requested.
            CIRCULAR_DEPENDENCY: the requested set contains a cycle.
        """
        unique = _dedupe(names)
        requested = set(unique)
        for name in unique:
            for required in self.definitions.get_dependencies(name):
                if required not in requested:
                    return Result.failure(MissingDependencyError(name, required))

        cycles = self.detect_circular_dependencies(unique)
        if cycles:
            return Result.failure(CircularDependencyError(cycles[0]))

        return Result.success(self.topological_sort(unique))

    def detect_circular_dependencies(self, names: list[str]) -> list[list[str]]:
        """Find cycles among ``names`` with a depth-first search.

        A back-edge to a node still on the recursion stack yields the stack
        slice from that node, closed with the node again, as one cycle.
        """
        unique = _dedupe(names)
        edges = self._edges(unique)
        visited: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()
        cycles: list[list[str]] = []

        def visit(node: str) -> None:
            visited.add(node)
            stack.append(node)
            on_stack.add(node)
            for dep in edges.get(node, []):
                if dep in on_stack:
                    start = stack.index(dep)
                    cycles.append(stack[start:] + [dep])
                elif dep not in visited:
                    visit(dep)
            stack.pop()
            on_stack.discard(node)

        for name in unique:
            if name not in visited:
                visit(name)
        return cycles

    def topological_sort(self, names: list[str]) -> list[str]:
        """Kahn's algorithm over edges between ``names``.

        Ties keep the input order. If the sort cannot place every node the
        deduplicated input is returned unchanged; cycle detection runs first
        in resolve_install_order, so that branch is never taken from there.
        """
        unique = _dedupe(names)
        edges = self._edges(unique)
        in_degree = {name: len(deps) for name, deps in edges.items()}
        dependents: dict[str, list[str]] = {name: [] for name in unique}
        for name, deps in edges.items():
            for dep in deps:
                dependents[dep].append(name)

        queue = deque(name for name in unique if in_degree[name] == 0)
        ordered = []
        while queue:
            node = queue.popleft()
            ordered.append(node)
            for dependent in dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(ordered) != len(unique):
            _logging.warning(f"Could not order commandsets {unique}; keeping requested order")
            return unique
        return ordered


__all__ = [
    "DependencyResolver",
]
