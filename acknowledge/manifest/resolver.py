"""Breadth-controlled expansion of manifest edges into dependency descriptors."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from acknowledge.config.models import Breadth
from acknowledge.manifest.models import DependencyDescriptor, DependencyEdge, DependencyKind

logger = logging.getLogger(__name__)

BREADTH_KINDS: dict[Breadth, frozenset[DependencyKind]] = {
    Breadth.NON_OPT: frozenset({DependencyKind.NORMAL}),
    Breadth.ALL: frozenset({DependencyKind.NORMAL, DependencyKind.OPTIONAL}),
    Breadth.BUILD_AND_DEV: frozenset(DependencyKind),
}

# Lower wins when one dependency is reached through several kinds.
_KIND_RANK: dict[DependencyKind, int] = {
    DependencyKind.NORMAL: 0,
    DependencyKind.OPTIONAL: 1,
    DependencyKind.BUILD: 2,
    DependencyKind.DEV: 3,
}


def least_restrictive(a: DependencyKind, b: DependencyKind) -> DependencyKind:
    return a if _KIND_RANK[a] <= _KIND_RANK[b] else b


def resolve_dependencies(
    edges: Iterable[DependencyEdge], breadth: Breadth
) -> list[DependencyDescriptor]:
    """Return one descriptor per (name, version) reachable at this breadth.

    Local path dependencies are skipped. The result is sorted by name then
    version so repeated runs see the same order.
    """
    allowed = BREADTH_KINDS[breadth]
    resolved: dict[tuple[str, str], DependencyDescriptor] = {}

    for edge in edges:
        if edge.kind not in allowed:
            continue
        if edge.path is not None and edge.repository is None:
            logger.debug("skipping local path dependency %s", edge.name)
            continue

        key = (edge.name, edge.version)
        current = resolved.get(key)
        if current is None:
            resolved[key] = DependencyDescriptor(
                name=edge.name,
                version=edge.version,
                kind=edge.kind,
                repository=edge.repository,
            )
            continue

        repository = current.repository
        if edge.repository is not None:
            repository = min(filter(None, [repository, edge.repository]))
        resolved[key] = current.model_copy(
            update={
                "kind": least_restrictive(current.kind, edge.kind),
                "repository": repository,
            }
        )

    descriptors = sorted(resolved.values(), key=lambda d: d.key)
    logger.debug("resolved %d dependencies at breadth %s", len(descriptors), breadth.value)
    return descriptors
