"""DAVSync - CalDAV/CardDAV folder synchronization.

Keeps the folder registry of DAV accounts reconciled with the server,
queues selected folders and syncs them through pluggable transport and
local target collaborators.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "FolderRegistry",
    "SyncStateStore",
    "AccountSyncOrchestrator",
    "SyncContext",
    "DavProvider",
    "ProviderRegistry",
    "DavSyncConfig",
    "load_config",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("FolderRegistry", "SyncStateStore", "AccountSyncOrchestrator", "SyncContext"):
        from davsync import sync

        return getattr(sync, name)
    if name in ("DavProvider", "ProviderRegistry"):
        from davsync import provider

        return getattr(provider, name)
    if name in ("DavSyncConfig", "load_config"):
        from davsync import config

        return getattr(config, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
