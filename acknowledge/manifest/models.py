"""Pydantic models for manifest data."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DependencyKind(str, Enum):
    NORMAL = "normal"
    OPTIONAL = "optional"
    BUILD = "build"
    DEV = "dev"


class DependencyEdge(BaseModel):
    """One dependency declaration as read from a manifest."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = "*"
    kind: DependencyKind = DependencyKind.NORMAL
    repository: str | None = None
    path: str | None = None  # local path dependency, not third-party work


class DependencyDescriptor(BaseModel):
    """A resolved dependency, identified by (name, version)."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = "*"
    kind: DependencyKind = DependencyKind.NORMAL
    repository: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.version)
