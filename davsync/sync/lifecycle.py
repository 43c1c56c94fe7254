# DAVSync Account Lifecycle
# Enable/disable transitions of accounts and their folders

import time
from typing import Optional

from davsync.sync.records import AccountStatus
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import SyncStateStore


def enable_account(registry: FolderRegistry, state_store: SyncStateStore, account_id: str) -> int:
    """
    Enable an account.

    Resets status and last sync time, drops provider sync markers (the next
    sync of every folder is a full one), and returns cached folders to active
    use with their selection and target bindings. No network access is needed.

    Args:
        registry: Folder registry.
        state_store: Store holding the folders' sync markers.
        account_id: Account to enable.

    Returns:
        Number of folders restored from the cache.
    """
    registry.set_account_setting(account_id, "status", AccountStatus.NOT_SYNCRONIZED)
    registry.set_account_setting(account_id, "lastsynctime", 0)
    registry.set_account_setting(account_id, "status_message", "")
    registry.set_account_setting(account_id, "sync_markers", {})
    state_store.reset_tokens(account_id)
    return registry.restore_cached_folders(account_id)


def disable_account(
    registry: FolderRegistry,
    state_store: SyncStateStore,
    account_id: str,
    now: Optional[int] = None,
) -> int:
    """
    Disable an account.

    Drops provider sync markers and takes every folder out of active use.
    Folder settings stay cached so a later enable restores them.

    Args:
        registry: Folder registry.
        state_store: Store holding the folders' sync markers.
        account_id: Account to disable.
        now: Current time in epoch seconds (defaults to the clock).

    Returns:
        Number of folders cached.
    """
    if now is None:
        now = int(time.time())

    # Status first: a discovery commit racing this call is skipped once it is set.
    registry.set_account_setting(account_id, "status", AccountStatus.DISABLED)
    registry.set_account_setting(account_id, "sync_markers", {})
    state_store.reset_tokens(account_id)
    return registry.cache_all_folders(account_id, now)
