# DAVSync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from davsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from davsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from davsync.config.schema import (
    CacheConfig,
    DavSyncConfig,
    OutputConfig,
    PluginsConfig,
    StorageConfig,
    SyncConfig,
)

__all__ = [
    # Schema
    "DavSyncConfig",
    "StorageConfig",
    "CacheConfig",
    "PluginsConfig",
    "SyncConfig",
    "OutputConfig",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
