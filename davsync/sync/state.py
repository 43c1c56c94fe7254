# DAVSync Sync State
# Per-folder sync markers: sync token and remote/local item mapping

import copy
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from davsync.utils.paths import atomic_write


@dataclass
class ItemState:
    """Binding of one remote item to its local counterpart."""

    remote_id: str
    local_id: str
    etag: Optional[str] = None
    last_synced: Optional[str] = None  # ISO format datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemState":
        """Create from dictionary."""
        return cls(
            remote_id=data.get("remote_id", ""),
            local_id=data.get("local_id", ""),
            etag=data.get("etag"),
            last_synced=data.get("last_synced"),
        )


@dataclass
class FolderState:
    """
    Sync markers of one folder.

    The sync token is opaque: it is whatever the transport returned at the
    end of the previous sync. An empty token forces a full sync.
    """

    account: str
    folder_id: str
    sync_token: str = ""
    items: dict[str, ItemState] = field(default_factory=dict)

    def get_item(self, remote_id: str) -> Optional[ItemState]:
        """Get binding for a remote item."""
        return self.items.get(remote_id)

    def find_remote_id(self, local_id: str) -> Optional[str]:
        """Get the remote id bound to a local item."""
        for item in self.items.values():
            if item.local_id == local_id:
                return item.remote_id
        return None

    def set_item(self, remote_id: str, local_id: str, etag: Optional[str] = None) -> ItemState:
        """Set or update the binding for a remote item."""
        item_state = ItemState(
            remote_id=remote_id,
            local_id=local_id,
            etag=etag,
            last_synced=datetime.now().isoformat(),
        )
        self.items[remote_id] = item_state
        return item_state

    def remove_item(self, remote_id: str) -> bool:
        """Remove the binding for a remote item."""
        if remote_id in self.items:
            del self.items[remote_id]
            return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "account": self.account,
            "folder_id": self.folder_id,
            "sync_token": self.sync_token,
            "items": {key: item.to_dict() for key, item in self.items.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FolderState":
        """Create from dictionary."""
        items = {}
        for key, item_data in (data.get("items") or {}).items():
            items[key] = ItemState.from_dict(item_data)

        return cls(
            account=data.get("account", ""),
            folder_id=data.get("folder_id", ""),
            sync_token=data.get("sync_token", ""),
            items=items,
        )


class SyncStateStore:
    """
    Manages folder sync state persistence.

    Handles loading, saving, and clearing the sync markers of folders.
    """

    def __init__(self, state_path: Optional[Path] = None):
        """
        Initialize state store.

        Args:
            state_path: Path to state file. None keeps state in memory.
        """
        self.state_path = state_path
        self._lock = threading.RLock()
        self._folders: Optional[dict[str, FolderState]] = None

    @staticmethod
    def _key(account_id: str, folder_id: str) -> str:
        return f"{account_id}:{folder_id}"

    @property
    def folders(self) -> dict[str, FolderState]:
        """Get all folder states, loading if necessary."""
        with self._lock:
            if self._folders is None:
                self._folders = self.load()
            return self._folders

    def load(self) -> dict[str, FolderState]:
        """Load state from file."""
        if self.state_path is None or not self.state_path.exists():
            return {}

        with open(self.state_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not data:
            return {}

        return {key: FolderState.from_dict(value) for key, value in (data.get("folders") or {}).items()}

    def save(self) -> None:
        """Save state to file."""
        if self.state_path is None:
            return
        with self._lock:
            data = {
                "last_saved": datetime.now().isoformat(),
                "folders": {key: state.to_dict() for key, state in self.folders.items()},
            }
            atomic_write(self.state_path, yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))

    def get(self, account_id: str, folder_id: str) -> FolderState:
        """Get a copy of the state for a folder, empty if unknown."""
        with self._lock:
            key = self._key(account_id, folder_id)
            if key not in self.folders:
                return FolderState(account=account_id, folder_id=folder_id)
            return copy.deepcopy(self.folders[key])

    def put(self, state: FolderState) -> None:
        """Store state for a folder and save."""
        with self._lock:
            self.folders[self._key(state.account, state.folder_id)] = copy.deepcopy(state)
            self.save()

    def clear_folder(self, account_id: str, folder_id: str) -> bool:
        """Drop the markers of one folder."""
        with self._lock:
            removed = self.folders.pop(self._key(account_id, folder_id), None) is not None
            if removed:
                self.save()
            return removed

    def reset_tokens(self, account_id: str) -> int:
        """
        Blank the sync tokens of every folder of an account.

        Item bindings are kept, so the forced full sync updates local
        items in place instead of duplicating them.

        Returns:
            Number of folders whose token was reset.
        """
        with self._lock:
            count = 0
            for state in self.folders.values():
                if state.account == account_id and state.sync_token:
                    state.sync_token = ""
                    count += 1
            if count:
                self.save()
            return count

    def clear_account(self, account_id: str) -> int:
        """Drop the markers of every folder of an account."""
        with self._lock:
            keys_to_remove = [key for key, state in self.folders.items() if state.account == account_id]
            for key in keys_to_remove:
                del self.folders[key]
            if keys_to_remove:
                self.save()
            return len(keys_to_remove)
