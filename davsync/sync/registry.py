# DAVSync Folder Registry
# Persisted account and folder records

import copy
import threading
from pathlib import Path
from typing import Any, Optional

import yaml

from davsync.sync.records import Account, AccountStatus, Folder, FolderStatus
from davsync.utils.paths import atomic_write

REGISTRY_VERSION = "1.0"

SECONDS_PER_DAY = 86400


def evict_cached(
    folders: list[Folder],
    now: int,
    retention_days: Optional[int] = None,
    max_cached: Optional[int] = None,
) -> tuple[list[Folder], list[Folder]]:
    """
    Apply the cached-folder eviction policy to a folder list.

    Active folders are never evicted. Cached folders older than the
    retention period are dropped first, then the oldest cached folders
    until at most ``max_cached`` remain.

    Args:
        folders: Folders of one account in persisted order.
        now: Current time in epoch seconds.
        retention_days: Days a cached folder is kept. None keeps forever.
        max_cached: Upper bound on cached folders. None is unbounded.

    Returns:
        Tuple of (kept folders in original order, evicted folders).
    """
    evicted_ids: set[str] = set()
    cached = [f for f in folders if f.cached]

    if retention_days is not None:
        cutoff = now - retention_days * SECONDS_PER_DAY
        for folder in cached:
            if folder.cached_since < cutoff:
                evicted_ids.add(folder.folder_id)

    if max_cached is not None:
        remaining = [f for f in cached if f.folder_id not in evicted_ids]
        overflow = len(remaining) - max_cached
        if overflow > 0:
            oldest = sorted(remaining, key=lambda f: f.cached_since)[:overflow]
            evicted_ids.update(f.folder_id for f in oldest)

    kept = [f for f in folders if f.folder_id not in evicted_ids]
    evicted = [f for f in folders if f.folder_id in evicted_ids]
    return kept, evicted


class FolderRegistry:
    """
    Registry of accounts and their folders.

    Backed by a YAML file when a path is given, otherwise in-memory only.
    Folders keep their insertion order per account. Every mutation happens
    under a re-entrant lock, and records handed out are copies, so readers
    may observe intermediate states without racing a running job.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize registry.

        Args:
            path: Path to registry file. None keeps the registry in memory.
        """
        self.path = path
        self._lock = threading.RLock()
        self._accounts: dict[str, Account] = {}
        self._folders: dict[str, dict[str, Folder]] = {}
        if path is not None:
            self.load()

    # Persistence

    def load(self) -> None:
        """Load registry contents from file."""
        with self._lock:
            self._accounts = {}
            self._folders = {}
            if self.path is None or not self.path.exists():
                return

            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            for account_id, account_data in (data.get("accounts") or {}).items():
                self._accounts[str(account_id)] = Account.from_dict(account_data)
            for account_id, folder_list in (data.get("folders") or {}).items():
                folders: dict[str, Folder] = {}
                for folder_data in folder_list or []:
                    folder = Folder.from_dict(folder_data)
                    folders[folder.folder_id] = folder
                self._folders[str(account_id)] = folders

    def save(self) -> None:
        """Write registry contents to file."""
        if self.path is None:
            return
        with self._lock:
            atomic_write(self.path, yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True))

    def to_dict(self) -> dict[str, Any]:
        """Convert registry to dictionary for serialization."""
        with self._lock:
            return {
                "version": REGISTRY_VERSION,
                "accounts": {aid: account.to_dict() for aid, account in self._accounts.items()},
                "folders": {
                    aid: [folder.to_dict() for folder in folders.values()] for aid, folders in self._folders.items()
                },
            }

    # Accounts

    def add_account(self, account: Account) -> Account:
        """
        Add an account, assigning the next free id when it has none.

        Args:
            account: Account record.

        Returns:
            Copy of the stored account.

        Raises:
            ValueError: If an account with the same id exists.
        """
        with self._lock:
            account = copy.deepcopy(account)
            if not account.account:
                account.account = self._next_account_id()
            if account.account in self._accounts:
                raise ValueError(f"Account '{account.account}' already exists")
            self._accounts[account.account] = account
            self._folders.setdefault(account.account, {})
            self.save()
            return copy.deepcopy(account)

    def _next_account_id(self) -> str:
        numeric = [int(aid) for aid in self._accounts if aid.isdigit()]
        return str(max(numeric, default=0) + 1)

    def get_account(self, account_id: str) -> Account:
        """
        Get a copy of an account.

        Raises:
            KeyError: If account doesn't exist.
        """
        with self._lock:
            if account_id not in self._accounts:
                raise KeyError(f"Account '{account_id}' not found")
            return copy.deepcopy(self._accounts[account_id])

    def get_accounts(self) -> list[Account]:
        """Get copies of all accounts."""
        with self._lock:
            return [copy.deepcopy(account) for account in self._accounts.values()]

    def has_account(self, account_id: str) -> bool:
        """Check if an account exists."""
        with self._lock:
            return account_id in self._accounts

    def set_account_setting(self, account_id: str, key: str, value: Any) -> None:
        """
        Set a single account field and save.

        Raises:
            KeyError: If account or field doesn't exist.
        """
        with self._lock:
            account = self._get_account_ref(account_id)
            if not hasattr(account, key):
                raise KeyError(f"Unknown account setting '{key}'")
            if key == "status":
                value = AccountStatus(value)
            setattr(account, key, value)
            self.save()

    def update_account_status(
        self,
        account_id: str,
        status: AccountStatus,
        message: Optional[str] = None,
        *,
        keep_disabled: bool = False,
        lastsynctime: Optional[int] = None,
    ) -> AccountStatus:
        """
        Set an account's status in one step and save.

        Args:
            account_id: Account id.
            status: New status.
            message: New status message. None leaves it unchanged.
            keep_disabled: A disabled account stays disabled.
            lastsynctime: Stamped only when the resulting status is ``ok``.

        Returns:
            The status the account ends up with.

        Raises:
            KeyError: If account doesn't exist.
        """
        with self._lock:
            account = self._get_account_ref(account_id)
            if keep_disabled and account.status == AccountStatus.DISABLED:
                status = AccountStatus.DISABLED
            account.status = AccountStatus(status)
            if message is not None:
                account.status_message = message
            if lastsynctime is not None and account.status == AccountStatus.OK:
                account.lastsynctime = lastsynctime
            self.save()
            return account.status

    def remove_account(self, account_id: str) -> None:
        """Remove an account and all its folders."""
        with self._lock:
            self._get_account_ref(account_id)
            del self._accounts[account_id]
            self._folders.pop(account_id, None)
            self.save()

    def _get_account_ref(self, account_id: str) -> Account:
        if account_id not in self._accounts:
            raise KeyError(f"Account '{account_id}' not found")
        return self._accounts[account_id]

    # Folders

    def get_folders(self, account_id: str, *, include_cached: bool = False) -> list[Folder]:
        """
        Get copies of an account's folders in persisted order.

        Args:
            account_id: Account id.
            include_cached: Also return cached folders.

        Returns:
            List of folders.
        """
        with self._lock:
            folders = self._folders.get(account_id, {}).values()
            return [copy.deepcopy(f) for f in folders if include_cached or not f.cached]

    def get_folder(self, account_id: str, folder_id: str) -> Folder:
        """
        Get a copy of a folder, cached or not.

        Raises:
            KeyError: If folder doesn't exist.
        """
        with self._lock:
            return copy.deepcopy(self._get_folder_ref(account_id, folder_id))

    def add_folder(self, folder: Folder) -> None:
        """
        Add a folder to its account.

        Raises:
            KeyError: If the account doesn't exist.
            ValueError: If the folder id is already used within the account.
        """
        with self._lock:
            self._get_account_ref(folder.account)
            folders = self._folders.setdefault(folder.account, {})
            if folder.folder_id in folders:
                raise ValueError(f"Folder '{folder.folder_id}' already exists in account '{folder.account}'")
            folders[folder.folder_id] = copy.deepcopy(folder)
            self.save()

    def set_folder_setting(self, account_id: str, folder_id: str, key: str, value: Any) -> None:
        """
        Set a single folder field and save.

        Raises:
            KeyError: If folder or field doesn't exist.
        """
        with self._lock:
            folder = self._get_folder_ref(account_id, folder_id)
            if not hasattr(folder, key):
                raise KeyError(f"Unknown folder setting '{key}'")
            if key == "status":
                value = FolderStatus(value)
            setattr(folder, key, value)
            self.save()

    def set_folder_selected(self, account_id: str, folder_id: str, selected: bool) -> Folder:
        """
        Select or unselect a folder and save.

        Unselecting also unbinds the local target, since only selected
        folders may be bound.

        Returns:
            Copy of the folder before the change.

        Raises:
            KeyError: If folder doesn't exist.
        """
        with self._lock:
            folder = self._get_folder_ref(account_id, folder_id)
            previous = copy.deepcopy(folder)
            folder.selected = selected
            if not selected:
                folder.target = ""
                folder.target_name = ""
                folder.target_color = ""
                if folder.status == FolderStatus.PENDING:
                    folder.status = FolderStatus.NONE
            self.save()
            return previous

    def replace_folders(self, account_id: str, folders: list[Folder], *, unless_disabled: bool = False) -> bool:
        """
        Replace an account's folder set in one commit.

        Args:
            account_id: Account id.
            folders: New folder list in persisted order.
            unless_disabled: Skip the commit if the account is disabled by now.

        Returns:
            False if the commit was skipped, True otherwise.

        Raises:
            KeyError: If account doesn't exist.
            ValueError: If folder ids are not unique.
        """
        with self._lock:
            account = self._get_account_ref(account_id)
            if unless_disabled and account.status == AccountStatus.DISABLED:
                return False
            replacement: dict[str, Folder] = {}
            for folder in folders:
                if folder.folder_id in replacement:
                    raise ValueError(f"Duplicate folder id '{folder.folder_id}'")
                replacement[folder.folder_id] = copy.deepcopy(folder)
            self._folders[account_id] = replacement
            self.save()
            return True

    def set_selected_folders_to_pending(self, account_id: str, folder_id: Optional[str] = None) -> list[str]:
        """
        Queue every selected, active, supported folder of an account.

        Args:
            account_id: Account id.
            folder_id: Optional single folder to queue instead of all.

        Returns:
            Ids of folders now pending, in persisted order.
        """
        with self._lock:
            pending: list[str] = []
            for folder in self._folders.get(account_id, {}).values():
                if folder_id is not None and folder.folder_id != folder_id:
                    continue
                if not folder.selected or folder.cached or folder.status == FolderStatus.NOT_SUPPORTED:
                    continue
                folder.status = FolderStatus.PENDING
                pending.append(folder.folder_id)
            self.save()
            return pending

    def get_pending_folders(self, account_id: str) -> list[Folder]:
        """Get copies of active pending folders in persisted order."""
        with self._lock:
            return [
                copy.deepcopy(f)
                for f in self._folders.get(account_id, {}).values()
                if f.status == FolderStatus.PENDING and not f.cached
            ]

    def cache_all_folders(self, account_id: str, now: int) -> int:
        """
        Take all folders of an account out of active use, keeping their settings.

        Returns:
            Number of folders newly cached.
        """
        with self._lock:
            count = 0
            for folder in self._folders.get(account_id, {}).values():
                if folder.cached:
                    continue
                folder.cached = True
                folder.cached_since = now
                if folder.status in (FolderStatus.PENDING, FolderStatus.SYNCING):
                    folder.status = FolderStatus.NONE
                count += 1
            self.save()
            return count

    def restore_cached_folders(self, account_id: str) -> int:
        """
        Return cached folders to active use with their retained settings.

        Returns:
            Number of folders restored.
        """
        with self._lock:
            count = 0
            for folder in self._folders.get(account_id, {}).values():
                if not folder.cached:
                    continue
                folder.cached = False
                folder.cached_since = 0
                count += 1
            self.save()
            return count

    def _get_folder_ref(self, account_id: str, folder_id: str) -> Folder:
        folders = self._folders.get(account_id, {})
        if folder_id not in folders:
            raise KeyError(f"Folder '{folder_id}' not found in account '{account_id}'")
        return folders[folder_id]
