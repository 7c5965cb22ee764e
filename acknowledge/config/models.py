from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class Breadth(str, Enum):
    """How far into the manifest to look for dependencies."""

    NON_OPT = "non-opt"
    ALL = "all"
    BUILD_AND_DEV = "build-and-dev"


class OutputFormat(str, Enum):
    NAME_AND_COUNT = "name-and-count"
    DEP_AND_NAMES = "dep-and-names"
    NAME_AND_DEPS = "name-and-deps"


class VCSConfig(BaseModel):
    github_token_env: str = "GITHUB_TOKEN"
    gitlab_token_env: str = "GITLAB_TOKEN"
    gitlab_hosts: list[str] = ["gitlab.com"]


class FetchConfig(BaseModel):
    max_concurrency: int = Field(default=4, ge=1)
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)
    max_backoff: float = Field(default=900.0, ge=0)
    per_page: int = Field(default=100, ge=1, le=100)
    timeout: float = 30.0


class RegistryConfig(BaseModel):
    base_url: str = "https://crates.io/api/v1"
    user_agent: str = "acknowledge (https://github.com/anvlkv/acknowledgements)"
    min_interval: float = 1.0


class CacheConfig(BaseModel):
    enabled: bool = True
    directory: str = "~/.acknowledge/cache"


class OutputConfig(BaseModel):
    path: str | None = None
    format: OutputFormat = OutputFormat.NAME_AND_COUNT
    mention: bool = False
    template: str | None = None


class AcknowledgeConfig(BaseModel):
    breadth: Breadth = Breadth.NON_OPT
    contributions_threshold: int = Field(default=2, ge=0)
    sources: list[str] = []
    vcs: VCSConfig = Field(default_factory=VCSConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
