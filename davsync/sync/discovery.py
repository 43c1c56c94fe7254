# DAVSync Folder Discovery
# Reconcile the server's folder list with the persisted folder registry

import copy
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from davsync.sync.errors import ErrorKind, SyncError
from davsync.sync.records import Account, Folder, FolderStatus, new_folder_entry
from davsync.sync.registry import FolderRegistry, evict_cached
from davsync.sync.state import SyncStateStore
from davsync.sync.transport import FOLDER_KINDS, LocalKind, RemoteFolder, Transport

KindResolver = Callable[[str], Optional[LocalKind]]


def local_kind_for(folder_type: str) -> Optional[LocalKind]:
    """Get the local kind for a provider folder type, or None if unsupported."""
    return FOLDER_KINDS.get(folder_type)


@dataclass
class CachePolicy:
    """Retention of cached folders. None values disable the respective limit."""

    retention_days: Optional[int] = None
    max_cached: Optional[int] = None


@dataclass
class DiscoveryResult:
    """What a discovery pass changed."""

    account: str
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    cached: list[str] = field(default_factory=list)
    restored: list[str] = field(default_factory=list)
    evicted: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """Check if the folder list changed."""
        return bool(self.added or self.updated or self.cached or self.restored or self.evicted)


def reconcile_folders(
    account: Account,
    persisted: list[Folder],
    remote: list[RemoteFolder],
    *,
    kind_of: KindResolver = local_kind_for,
    now: int = 0,
    result: Optional[DiscoveryResult] = None,
) -> list[Folder]:
    """
    Merge a remote folder set into the persisted folder set of an account.

    - Folders only on the server are added unselected with default settings.
    - Folders on both sides get name, type and parent updated; selection,
      target and status are kept. A cached folder that shows up again is
      returned to active use with its retained settings.
    - Folders no longer on the server are cached, not deleted.
    - Folders of an unsupported type get status ``notsupported``.

    Running it again with the same remote set changes nothing.

    Args:
        account: Account the folders belong to.
        persisted: Current folders in persisted order, cached ones included.
        remote: Folders reported by the server.
        kind_of: Maps a folder type to its local kind, None if unsupported.
        now: Current time in epoch seconds, stamped on newly cached folders.
        result: Optional result collecting the changed ids.

    Returns:
        New folder list: persisted order first, then new folders in remote order.
    """
    if result is None:
        result = DiscoveryResult(account=account.account)

    remote_by_id: dict[str, RemoteFolder] = {}
    for entry in remote:
        remote_by_id.setdefault(entry.folder_id, entry)

    merged: list[Folder] = []
    known_ids: set[str] = set()

    for existing in persisted:
        folder = copy.deepcopy(existing)
        known_ids.add(folder.folder_id)
        entry = remote_by_id.get(folder.folder_id)

        if entry is None:
            if not folder.cached:
                folder.cached = True
                folder.cached_since = now
                result.cached.append(folder.folder_id)
            merged.append(folder)
            continue

        before = (folder.name, folder.type, folder.parent_id, folder.status)
        folder.name = entry.name
        folder.type = entry.type
        folder.parent_id = entry.parent_id
        if kind_of(entry.type) is None:
            folder.status = FolderStatus.NOT_SUPPORTED
        elif folder.status == FolderStatus.NOT_SUPPORTED:
            folder.status = FolderStatus.NONE
        if (folder.name, folder.type, folder.parent_id, folder.status) != before:
            result.updated.append(folder.folder_id)

        if folder.cached:
            folder.cached = False
            folder.cached_since = 0
            result.restored.append(folder.folder_id)
        merged.append(folder)

    for entry in remote_by_id.values():
        if entry.folder_id in known_ids:
            continue
        folder = new_folder_entry(account)
        folder.folder_id = entry.folder_id
        folder.name = entry.name
        folder.type = entry.type
        folder.parent_id = entry.parent_id
        if kind_of(entry.type) is None:
            folder.status = FolderStatus.NOT_SUPPORTED
        merged.append(folder)
        result.added.append(folder.folder_id)

    return merged


def discover_folders(
    registry: FolderRegistry,
    transport: Transport,
    account_id: str,
    *,
    kind_of: KindResolver = local_kind_for,
    cache_policy: Optional[CachePolicy] = None,
    state_store: Optional[SyncStateStore] = None,
    now: Optional[int] = None,
) -> DiscoveryResult:
    """
    Fetch the server's folders and commit the reconciled folder set.

    Nothing is written when the transport fails, or when the account was
    disabled while the folder list was being fetched.

    Args:
        registry: Folder registry.
        transport: Wire transport.
        account_id: Account to discover.
        kind_of: Maps a folder type to its local kind.
        cache_policy: Optional eviction policy for cached folders.
        state_store: Store whose markers of evicted folders are dropped.
        now: Current time in epoch seconds (defaults to the clock).

    Returns:
        DiscoveryResult listing the changed folder ids.

    Raises:
        SyncError: On transport failures and malformed folder entries. Kind
            ``aborted`` if the account got disabled in the meantime.
    """
    if now is None:
        now = int(time.time())

    account = registry.get_account(account_id)
    remote = transport.list_folders(account)

    for entry in remote:
        if not entry.folder_id:
            raise SyncError(ErrorKind.PARSE_FAILURE, f"server returned a folder without id ({entry.name!r})")

    result = DiscoveryResult(account=account_id)
    persisted = registry.get_folders(account_id, include_cached=True)
    merged = reconcile_folders(account, persisted, remote, kind_of=kind_of, now=now, result=result)

    if cache_policy is not None:
        merged, evicted = evict_cached(merged, now, cache_policy.retention_days, cache_policy.max_cached)
        result.evicted = [f.folder_id for f in evicted]

    if not registry.replace_folders(account_id, merged, unless_disabled=True):
        raise SyncError(ErrorKind.ABORTED, f"account '{account_id}' was disabled during discovery")

    if state_store is not None:
        for folder_id in result.evicted:
            state_store.clear_folder(account_id, folder_id)
    return result
