# DAVSync Utilities Module
# Helper functions for path handling and plugin loading

from davsync.utils.paths import atomic_write, ensure_dir, expand_path
from davsync.utils.plugins import load_object

__all__ = [
    # Paths
    "expand_path",
    "ensure_dir",
    "atomic_write",
    # Plugins
    "load_object",
]
