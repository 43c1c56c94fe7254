# DAVSync Sync Module
# Folder reconciliation, pending queue and job orchestration

from davsync.sync.discovery import CachePolicy, DiscoveryResult, discover_folders, local_kind_for, reconcile_folders
from davsync.sync.errors import AccountBusyError, Completed, Crashed, ErrorKind, Failed, SyncError, SyncOutcome
from davsync.sync.lifecycle import disable_account, enable_account
from davsync.sync.notifications import FOLDER_LIST_UPDATED, Notifier
from davsync.sync.orchestrator import AccountSyncOrchestrator, AccountSyncResult, SyncContext, SyncPhase
from davsync.sync.queue import DrainResult, PendingQueue
from davsync.sync.records import (
    Account,
    AccountStatus,
    Folder,
    FolderStatus,
    new_account_entry,
    new_folder_entry,
)
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import FolderState, SyncStateStore
from davsync.sync.transport import (
    ChangeSet,
    LocalChange,
    LocalKind,
    PushedItem,
    RemoteFolder,
    RemoteItem,
    TargetManager,
    Transport,
)
from davsync.sync.worker import FolderSyncResult, FolderSyncWorker

__all__ = [
    # Records
    "Account",
    "AccountStatus",
    "Folder",
    "FolderStatus",
    "new_account_entry",
    "new_folder_entry",
    # Errors
    "ErrorKind",
    "SyncError",
    "AccountBusyError",
    "SyncOutcome",
    "Completed",
    "Failed",
    "Crashed",
    # Registry & state
    "FolderRegistry",
    "FolderState",
    "SyncStateStore",
    # Collaborators
    "Transport",
    "TargetManager",
    "LocalKind",
    "RemoteFolder",
    "RemoteItem",
    "ChangeSet",
    "LocalChange",
    "PushedItem",
    # Discovery
    "CachePolicy",
    "DiscoveryResult",
    "discover_folders",
    "reconcile_folders",
    "local_kind_for",
    # Queue & worker
    "PendingQueue",
    "DrainResult",
    "FolderSyncWorker",
    "FolderSyncResult",
    # Orchestrator
    "AccountSyncOrchestrator",
    "AccountSyncResult",
    "SyncContext",
    "SyncPhase",
    # Lifecycle
    "enable_account",
    "disable_account",
    # Notifications
    "Notifier",
    "FOLDER_LIST_UPDATED",
]
