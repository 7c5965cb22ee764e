"""Cargo.toml reader.

Produces the flat list of dependency edges the resolver works from, following
workspace members and ``workspace = true`` inheritance.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from acknowledge.errors import ConfigurationError
from acknowledge.manifest.models import DependencyEdge, DependencyKind

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"

_SECTION_KINDS: dict[str, DependencyKind] = {
    "dependencies": DependencyKind.NORMAL,
    "build-dependencies": DependencyKind.BUILD,
    "dev-dependencies": DependencyKind.DEV,
}


def find_manifest(path: str | Path) -> Path:
    """Accept a Cargo.toml path or a directory containing one."""
    path = Path(path)
    if path.is_dir():
        path = path / MANIFEST_NAME
    if not path.is_file():
        raise ConfigurationError(f"No {MANIFEST_NAME} found at {path}")
    return path


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e


def _parse_entry(
    key: str,
    value: Any,
    kind: DependencyKind,
    workspace_deps: dict[str, Any],
) -> DependencyEdge:
    """Turn one ``name = <declaration>`` line into an edge."""
    if isinstance(value, str):
        return DependencyEdge(name=key, version=value, kind=kind)
    if not isinstance(value, dict):
        raise ConfigurationError(f"Unsupported dependency declaration for {key!r}: {value!r}")

    entry = dict(value)
    if entry.get("workspace") is True:
        inherited = workspace_deps.get(key)
        if inherited is None:
            raise ConfigurationError(
                f"{key!r} uses workspace = true but the workspace does not declare it"
            )
        if isinstance(inherited, str):
            inherited = {"version": inherited}
        # member keys (optional, features) win over the workspace entry
        entry = {**inherited, **{k: v for k, v in entry.items() if k != "workspace"}}

    if entry.get("optional") and kind is DependencyKind.NORMAL:
        kind = DependencyKind.OPTIONAL

    return DependencyEdge(
        name=entry.get("package", key),
        version=str(entry.get("version", "*")),
        kind=kind,
        repository=entry.get("git"),
        path=entry.get("path"),
    )


def _parse_tables(
    tables: dict[str, Any], workspace_deps: dict[str, Any]
) -> list[DependencyEdge]:
    edges: list[DependencyEdge] = []
    for section, kind in _SECTION_KINDS.items():
        for key, value in (tables.get(section) or {}).items():
            edges.append(_parse_entry(key, value, kind, workspace_deps))
    return edges


def _member_dirs(root: Path, workspace: dict[str, Any]) -> list[Path]:
    excluded = {(root / e).resolve() for e in workspace.get("exclude", [])}
    dirs: list[Path] = []
    for pattern in workspace.get("members", []):
        if any(c in pattern for c in "*?["):
            matches = sorted(p for p in root.glob(pattern) if p.is_dir())
        else:
            matches = [root / pattern]
        for member in matches:
            member = member.resolve()
            if member == root.resolve() or member in excluded:
                continue
            if member not in dirs:
                dirs.append(member)
    return dirs


def read_manifest(
    path: str | Path, _workspace_deps: dict[str, Any] | None = None
) -> list[DependencyEdge]:
    """Read every dependency edge declared by a Cargo project.

    Raises ConfigurationError if a manifest is missing or cannot be parsed.
    """
    manifest_path = find_manifest(path)
    data = _load_toml(manifest_path)
    workspace = data.get("workspace") or {}
    workspace_deps = dict(_workspace_deps or {})
    workspace_deps.update(workspace.get("dependencies") or {})

    edges = _parse_tables(data, workspace_deps)
    for target_tables in (data.get("target") or {}).values():
        edges.extend(_parse_tables(target_tables, workspace_deps))

    for key, value in (workspace.get("dependencies") or {}).items():
        edges.append(_parse_entry(key, value, DependencyKind.NORMAL, {}))

    for member in _member_dirs(manifest_path.parent, workspace):
        logger.debug("reading workspace member %s", member)
        edges.extend(read_manifest(member, workspace_deps))

    logger.debug("%s declares %d dependency edges", manifest_path, len(edges))
    return edges
