from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.services.release.errors import (
    DependencyCycleError,
    InvalidInputError,
    OrderViolationError,
    ReleaseError,
)
from relop.services.release.metadata import ManifestSource
from relop.services.release.model import Package, PublishPlan


def _load_packages(
    paths: Sequence[Path], *, manifests: ManifestSource
) -> Result[list[Package], ReleaseError]:
    packages: list[Package] = []
    seen_paths: set[str] = set()
    by_name: dict[str, Package] = {}

    for path in paths:
        key = os.path.normpath(str(path))
        if key in seen_paths:
            return Err(InvalidInputError(message=f"package path listed twice: {path}"))
        seen_paths.add(key)

        loaded = manifests.read_manifest(path)
        if isinstance(loaded, Err):
            return loaded
        pkg = loaded.value

        previous = by_name.get(pkg.name)
        if previous is not None:
            return Err(
                InvalidInputError(
                    message=f"package {pkg.name} declared twice: {previous.path} and {pkg.path}"
                )
            )
        if not pkg.publish:
            return Err(
                InvalidInputError(
                    message=f"{pkg.name} is marked publish = false",
                    hint=f"Remove --crate {path} from the publish list.",
                )
            )

        by_name[pkg.name] = pkg
        packages.append(pkg)

    return Ok(packages)


def _in_set_edges(packages: Sequence[Package]) -> dict[str, tuple[str, ...]]:
    """Dependencies restricted to the supplied set, in input order."""
    index = {p.name: i for i, p in enumerate(packages)}
    edges: dict[str, tuple[str, ...]] = {}
    for p in packages:
        deps = [d for d in p.dependencies if d in index and d != p.name]
        edges[p.name] = tuple(sorted(deps, key=lambda d: index[d]))
    return edges


def find_cycle(
    names: Sequence[str], edges: dict[str, tuple[str, ...]]
) -> tuple[str, ...] | None:
    """Return one dependency cycle as a closed path (a -> b -> a), or None."""
    done: set[str] = set()
    stack: list[str] = []
    on_stack: set[str] = set()

    def visit(name: str) -> tuple[str, ...] | None:
        stack.append(name)
        on_stack.add(name)
        for dep in edges.get(name, ()):
            if dep in on_stack:
                start = stack.index(dep)
                return (*stack[start:], dep)
            if dep in done:
                continue
            found = visit(dep)
            if found is not None:
                return found
        stack.pop()
        on_stack.discard(name)
        done.add(name)
        return None

    for name in names:
        if name in done:
            continue
        found = visit(name)
        if found is not None:
            return found
    return None


def order_violations(
    packages: Sequence[Package], edges: dict[str, tuple[str, ...]]
) -> tuple[tuple[str, str], ...]:
    """(package, dependency) pairs where the dependency comes later."""
    index = {p.name: i for i, p in enumerate(packages)}
    out: list[tuple[str, str]] = []
    for i, p in enumerate(packages):
        for dep in edges[p.name]:
            if index[dep] > i:
                out.append((p.name, dep))
    return tuple(out)


def stable_topological_order(
    packages: Sequence[Package], edges: dict[str, tuple[str, ...]]
) -> tuple[Package, ...]:
    """Topological order; among ready packages the earliest in input goes first.

    The graph must be acyclic.
    """
    remaining = list(packages)
    emitted: set[str] = set()
    out: list[Package] = []
    while remaining:
        for i, p in enumerate(remaining):
            if all(dep in emitted for dep in edges[p.name]):
                out.append(p)
                emitted.add(p.name)
                del remaining[i]
                break
        else:
            raise AssertionError("stable_topological_order called on a cyclic graph")
    return tuple(out)


def plan_publish(
    paths: Sequence[Path],
    *,
    manifests: ManifestSource,
    strict: bool,
    console: ConsoleProtocol,
) -> Result[PublishPlan, ReleaseError]:
    """Validate the requested packages and order them for publishing.

    Dependencies outside the requested set are assumed to be on the registry
    already. A wrong order is corrected (and reported) unless strict is set,
    in which case it is an error.
    """
    loaded = _load_packages(paths, manifests=manifests)
    if isinstance(loaded, Err):
        return loaded
    packages = loaded.value
    if not packages:
        return Ok(PublishPlan(packages=()))

    edges = _in_set_edges(packages)

    cycle = find_cycle([p.name for p in packages], edges)
    if cycle is not None:
        return Err(DependencyCycleError(cycle=cycle))

    violations = order_violations(packages, edges)
    if not violations:
        return Ok(PublishPlan(packages=tuple(packages)))

    if strict:
        return Err(OrderViolationError(violations=violations))

    ordered = stable_topological_order(packages, edges)
    for pkg, dep in violations:
        console.warning(f"{pkg} depends on {dep}, which was listed after it")
    console.print("corrected order: " + " -> ".join(p.name for p in ordered), Style.DIM)
    return Ok(PublishPlan(packages=ordered, reordered=violations))
