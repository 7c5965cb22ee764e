"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import AcknowledgeConfig


def load_config(cli_path: str | None = None) -> AcknowledgeConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./acknowledge.yaml"),
        Path.home() / ".acknowledge" / "config.yaml",
    ]

    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return AcknowledgeConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except (TypeError, ValidationError) as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return AcknowledgeConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `acknowledge config init`
DEFAULT_CONFIG_TEMPLATE = """\
# acknowledge.yaml

breadth: "non-opt"               # non-opt | all | build-and-dev
contributions_threshold: 2       # sole contributors are always listed
# sources:                       # repositories not declared in Cargo.toml
#   - "https://github.com/owner/repo"

# Hosting providers
vcs:
  github_token_env: "GITHUB_TOKEN"
  gitlab_token_env: "GITLAB_TOKEN"
  gitlab_hosts: ["gitlab.com"]

# Contributor fetching
fetch:
  max_concurrency: 4             # repositories fetched in parallel per provider
  max_retries: 3
  retry_delay: 1.0               # seconds, doubled on each retry without a reset hint
  max_backoff: 900.0
  per_page: 100

# crates.io lookups
registry:
  base_url: "https://crates.io/api/v1"
  min_interval: 1.0              # crates.io asks for at most one request per second

cache:
  enabled: true
  directory: "~/.acknowledge/cache"

# Output
output:
  # path: "ACKNOWLEDGEMENTS.md"  # defaults to the project directory
  format: "name-and-count"       # name-and-count | dep-and-names | name-and-deps
  mention: false                 # prefix GitHub logins with @
  # template: "thanks.md.j2"     # jinja2 template instead of the built-in layout

# Logging
log_level: "info"                # debug | info | warn | error
"""
