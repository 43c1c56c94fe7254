# DAVSync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "storage": {
        "registry_path": "~/.config/davsync/registry.yaml",
        "state_path": "~/.config/davsync/sync_state.yaml",
    },
    "cache": {
        "retention_days": None,
        "max_cached_per_account": None,
    },
    "plugins": {
        "transport": None,
        "targets": None,
    },
    "sync": {
        "max_parallel_accounts": 1,
    },
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def get_default_config() -> dict[str, Any]:
    """Get a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# DAVSync Configuration
# Version: 1.0
#
# storage: where accounts/folders and folder sync markers are kept
# cache:   how long folders that disappeared from the server keep their
#          settings (retention_days / max_cached_per_account, null = no limit)
# plugins: 'module:attribute' factories for the wire transport and the
#          local address-book/calendar managers, needed by 'davsync sync'

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
