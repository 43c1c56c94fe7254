# DAVSync Folder Sync Worker
# Synchronize one folder's remote content into its local target

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from davsync.sync.discovery import KindResolver, local_kind_for
from davsync.sync.errors import ErrorKind, SyncError
from davsync.sync.records import Account, Folder
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import FolderState, SyncStateStore
from davsync.sync.transport import ChangeSet, LocalKind, TargetManager, Transport

if TYPE_CHECKING:
    from davsync.sync.orchestrator import SyncContext


@dataclass
class FolderSyncResult:
    """Result of syncing one folder."""

    folder_id: str
    full: bool = False
    target_created: bool = False
    downloaded: int = 0
    deleted: int = 0
    uploaded: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if every item synced."""
        return self.errors == 0

    def add_error(self, item_id: str, error: str) -> None:
        """
        Record an error for a specific item.

        Args:
            item_id: ID of the item that failed.
            error: Error description.
        """
        self.errors += 1
        self.error_details.append(f"{item_id}: {error}")


class FolderSyncWorker:
    """
    Synchronizes the content of one folder.

    Wire I/O goes through the transport, local objects through the target
    manager registered for the folder's local kind. The worker owns the
    full vs incremental decision and the remote/local item mapping.

    Example:
        worker = FolderSyncWorker(registry, transport, {LocalKind.EVENT: calendars}, state_store)
        result = worker.sync_folder(context, folder)
        print(f"Downloaded {result.downloaded} items")
    """

    def __init__(
        self,
        registry: FolderRegistry,
        transport: Transport,
        targets: dict[LocalKind, TargetManager],
        state_store: SyncStateStore,
        *,
        kind_of: KindResolver = local_kind_for,
    ):
        """
        Initialize worker.

        Args:
            registry: Folder registry, updated with target bindings.
            transport: Wire transport.
            targets: Target manager per local kind.
            state_store: Store for sync tokens and item mappings.
            kind_of: Maps a folder type to its local kind.
        """
        self.registry = registry
        self.transport = transport
        self.targets = targets
        self.state_store = state_store
        self.kind_of = kind_of

    def sync_folder(self, context: SyncContext, folder: Folder) -> FolderSyncResult:
        """
        Synchronize one folder.

        Requests a local target first when the folder is not bound (or its
        target vanished). A missing sync token or a new target means a full
        sync. Download-only folders never push local changes.

        Args:
            context: Context of the running job.
            folder: Folder to sync.

        Returns:
            FolderSyncResult with item counts and per-item errors.

        Raises:
            SyncError: For unsupported folder types, transport failures and
                fatal item failures.
        """
        account = self.registry.get_account(folder.account)
        manager = self._get_manager(folder)
        result = FolderSyncResult(folder_id=folder.folder_id)

        folder, created = self._ensure_target(account, folder, manager)
        result.target_created = created

        if created:
            # Bindings of a previous target are meaningless for a fresh one
            state = FolderState(account=folder.account, folder_id=folder.folder_id)
        else:
            state = self.state_store.get(folder.account, folder.folder_id)

        token = state.sync_token
        result.full = not token

        try:
            changes = self.transport.fetch_changes(account, folder, token)
            if changes.full:
                result.full = True

            self._apply_remote_changes(manager, folder.target, state, changes, result)

            if not folder.downloadonly:
                self._push_local_changes(account, folder, manager, state, result)

            # Failed items are fetched again on the next run
            if result.success:
                state.sync_token = changes.sync_token
        finally:
            self.state_store.put(state)

        counters = context.counters
        counters["downloaded"] = counters.get("downloaded", 0) + result.downloaded
        counters["deleted"] = counters.get("deleted", 0) + result.deleted
        counters["uploaded"] = counters.get("uploaded", 0) + result.uploaded
        counters["item_errors"] = counters.get("item_errors", 0) + result.errors
        return result

    def _get_manager(self, folder: Folder) -> TargetManager:
        """Get the target manager for a folder's type."""
        kind = self.kind_of(folder.type)
        if kind is None:
            raise SyncError(ErrorKind.UNSUPPORTED_FOLDER_TYPE, f"folder type '{folder.type}' is not supported")
        manager = self.targets.get(kind)
        if manager is None:
            raise SyncError(ErrorKind.UNSUPPORTED_FOLDER_TYPE, f"no local target available for {kind.value}")
        return manager

    def _ensure_target(self, account: Account, folder: Folder, manager: TargetManager) -> tuple[Folder, bool]:
        """Bind the folder to a local target, creating one if needed."""
        if folder.target and manager.target_exists(folder.target):
            return folder, False

        name = folder.target_name or self._target_name(account, folder)
        handle = manager.create_target(name, account, folder.folder_id, folder.target_color)

        self.registry.set_folder_setting(folder.account, folder.folder_id, "target", handle)
        self.registry.set_folder_setting(folder.account, folder.folder_id, "target_name", name)
        return dataclasses.replace(folder, target=handle, target_name=name), True

    @staticmethod
    def _target_name(account: Account, folder: Folder) -> str:
        base = folder.name or folder.folder_id
        if account.accountname:
            return f"{base} ({account.accountname})"
        return base

    def _apply_remote_changes(
        self,
        manager: TargetManager,
        handle: str,
        state: FolderState,
        changes: ChangeSet,
        result: FolderSyncResult,
    ) -> None:
        """Propagate remote changes into the local target."""
        removed = list(changes.deleted)
        if changes.full:
            present = {item.remote_id for item in changes.items}
            removed.extend(remote_id for remote_id in state.items if remote_id not in present)

        for remote_id in removed:
            binding = state.get_item(remote_id)
            if binding is None:
                continue
            manager.delete_item(handle, binding.local_id)
            state.remove_item(remote_id)
            result.deleted += 1

        for item in changes.items:
            binding = state.get_item(item.remote_id)
            if binding is not None and item.etag is not None and binding.etag == item.etag:
                result.skipped += 1
                continue

            try:
                local_id = manager.apply_item(handle, item, binding.local_id if binding else None)
            except SyncError as e:
                if e.fatal:
                    raise
                result.add_error(item.remote_id, str(e))
                continue

            state.set_item(item.remote_id, local_id, item.etag)
            result.downloaded += 1

    def _push_local_changes(
        self,
        account: Account,
        folder: Folder,
        manager: TargetManager,
        state: FolderState,
        result: FolderSyncResult,
    ) -> None:
        """Upload local modifications of the target."""
        changes = [
            dataclasses.replace(change, remote_id=state.find_remote_id(change.local_id))
            for change in manager.local_changes(folder.target)
        ]
        if not changes:
            return

        deleted = {change.local_id: change for change in changes if change.deleted}
        pushed = self.transport.push_changes(account, folder, changes)

        for ack in pushed:
            if ack.local_id in deleted:
                state.remove_item(ack.remote_id)
            else:
                state.set_item(ack.remote_id, ack.local_id, ack.etag)

        manager.mark_synced(folder.target, [ack.local_id for ack in pushed])
        result.uploaded += len(pushed)
