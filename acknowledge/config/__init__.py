from .loader import load_config
from .models import (
    AcknowledgeConfig,
    Breadth,
    CacheConfig,
    FetchConfig,
    OutputConfig,
    OutputFormat,
    RegistryConfig,
    VCSConfig,
)

__all__ = [
    "AcknowledgeConfig",
    "Breadth",
    "CacheConfig",
    "FetchConfig",
    "OutputConfig",
    "OutputFormat",
    "RegistryConfig",
    "VCSConfig",
    "load_config",
]
