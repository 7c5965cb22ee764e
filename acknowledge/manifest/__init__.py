"""Manifest reading and dependency resolution."""

from acknowledge.manifest.cargo import find_manifest, read_manifest
from acknowledge.manifest.models import DependencyDescriptor, DependencyEdge, DependencyKind
from acknowledge.manifest.resolver import BREADTH_KINDS, resolve_dependencies

__all__ = [
    "BREADTH_KINDS",
    "DependencyDescriptor",
    "DependencyEdge",
    "DependencyKind",
    "find_manifest",
    "read_manifest",
    "resolve_dependencies",
]
