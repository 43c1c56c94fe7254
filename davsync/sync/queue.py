# DAVSync Pending Queue
# Mark selected folders pending and drain them through the sync worker

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from davsync.sync.errors import ErrorKind, SyncError
from davsync.sync.records import AccountStatus, FolderStatus
from davsync.sync.registry import FolderRegistry
from davsync.sync.worker import FolderSyncResult, FolderSyncWorker

if TYPE_CHECKING:
    from davsync.sync.orchestrator import SyncContext


@dataclass
class DrainResult:
    """Result of draining an account's pending folders."""

    synced: int = 0
    failed: int = 0
    aborted: bool = False
    folder_results: dict[str, FolderSyncResult] = field(default_factory=dict)
    folder_errors: dict[str, str] = field(default_factory=dict)
    fatal_error: Optional[SyncError] = None

    @property
    def has_failures(self) -> bool:
        """Check if any folder ended in error."""
        return self.failed > 0


class PendingQueue:
    """
    Queue of folders waiting for synchronization.

    Marking is a pure registry transition. Draining syncs pending folders
    strictly one after another in persisted order.
    """

    def __init__(self, registry: FolderRegistry):
        """
        Initialize queue.

        Args:
            registry: Folder registry holding the folder states.
        """
        self.registry = registry

    def mark_pending(self, account_id: str, folder_id: Optional[str] = None) -> list[str]:
        """
        Queue every selected folder of an account.

        Folders that previously ended in ok or error are queued again;
        cached and unsupported folders are skipped.

        Args:
            account_id: Account id.
            folder_id: Optional single folder to queue instead of all.

        Returns:
            Ids of folders now pending.
        """
        return self.registry.set_selected_folders_to_pending(account_id, folder_id)

    def pending_count(self, account_id: str) -> int:
        """Get the number of folders still waiting in the queue."""
        return len(self.registry.get_pending_folders(account_id))

    def drain(self, context: SyncContext, worker: FolderSyncWorker) -> DrainResult:
        """
        Sync all pending folders of the context's account.

        Each folder moves pending -> syncing -> ok|error exactly once. An
        abort request or a disabled account stops the queue before the next
        folder starts. Non-fatal classified errors are recorded on the folder
        and the queue moves on; fatal and unexpected errors stop the queue,
        leaving untried folders pending.

        The result is stored on ``context.drain`` as it is built, so callers
        still see it when an exception escapes.

        Args:
            context: Context of the running job.
            worker: Worker performing the per-folder sync.

        Returns:
            DrainResult with per-folder outcomes.

        Raises:
            SyncError: With kind ``aborted`` when an abort was observed, or the
                fatal error of a folder.
            Exception: Any unexpected error raised by the worker.
        """
        account_id = context.account
        result = DrainResult()
        context.drain = result

        folder_ids = [f.folder_id for f in self.registry.get_pending_folders(account_id)]

        for folder_id in folder_ids:
            if context.abort_requested or self._is_disabled(account_id):
                result.aborted = True
                raise SyncError(ErrorKind.ABORTED, f"sync of account '{account_id}' was aborted")

            folder = self.registry.get_folder(account_id, folder_id)
            if folder.cached or folder.status != FolderStatus.PENDING:
                continue

            self.registry.set_folder_setting(account_id, folder_id, "status", FolderStatus.SYNCING)

            try:
                folder_result = worker.sync_folder(context, folder)
            except SyncError as e:
                status = FolderStatus.NOT_SUPPORTED if e.kind == ErrorKind.UNSUPPORTED_FOLDER_TYPE else FolderStatus.ERROR
                self._finish_folder(account_id, folder_id, status)
                result.failed += 1
                result.folder_errors[folder_id] = str(e)
                if e.fatal:
                    result.fatal_error = e
                    raise
                continue
            except Exception as e:
                self._finish_folder(account_id, folder_id, FolderStatus.ERROR)
                result.failed += 1
                result.folder_errors[folder_id] = repr(e)
                raise

            result.folder_results[folder_id] = folder_result
            if folder_result.success:
                self._finish_folder(account_id, folder_id, FolderStatus.OK)
                result.synced += 1
            else:
                self._finish_folder(account_id, folder_id, FolderStatus.ERROR)
                result.failed += 1
                result.folder_errors[folder_id] = "; ".join(folder_result.error_details)

        return result

    def _finish_folder(self, account_id: str, folder_id: str, status: FolderStatus) -> None:
        self.registry.set_folder_setting(account_id, folder_id, "status", status)
        if status == FolderStatus.OK:
            self.registry.set_folder_setting(account_id, folder_id, "lastsynctime", int(time.time()))

    def _is_disabled(self, account_id: str) -> bool:
        return self.registry.get_account(account_id).status == AccountStatus.DISABLED
