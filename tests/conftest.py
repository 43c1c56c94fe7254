# DAVSync Test Fixtures
# Pytest fixtures and fake collaborators for DAVSync tests

import copy
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock

import pytest
import yaml

from davsync.logger import SyncLogger
from davsync.sync.orchestrator import AccountSyncOrchestrator
from davsync.sync.records import Account, AccountStatus, Folder, new_account_entry
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import SyncStateStore
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


class FakeTransport(Transport):
    """In-memory transport with scriptable folder lists, changes and failures."""

    def __init__(self) -> None:
        self.folders: list[RemoteFolder] = []
        self.changes: dict[str, ChangeSet] = {}
        self.fetch_errors: dict[str, BaseException] = {}
        self.list_error: Optional[BaseException] = None
        self.fetch_calls: list[tuple[str, str]] = []
        self.pushed: list[tuple[str, list[LocalChange]]] = []
        self.on_list = None

    def list_folders(self, account: Account) -> list[RemoteFolder]:
        if self.on_list is not None:
            self.on_list(account)
        if self.list_error is not None:
            raise self.list_error
        return list(self.folders)

    def fetch_changes(self, account: Account, folder: Folder, sync_token: str) -> ChangeSet:
        self.fetch_calls.append((folder.folder_id, sync_token))
        if folder.folder_id in self.fetch_errors:
            raise self.fetch_errors[folder.folder_id]
        if folder.folder_id in self.changes:
            return copy.deepcopy(self.changes[folder.folder_id])
        return ChangeSet(sync_token=f"token-{len(self.fetch_calls)}", full=not sync_token)

    def push_changes(self, account: Account, folder: Folder, changes: list[LocalChange]) -> list[PushedItem]:
        self.pushed.append((folder.folder_id, list(changes)))
        return [PushedItem(c.local_id, c.remote_id or f"r-{c.local_id}", "etag-up") for c in changes]


class FakeTargetManager(TargetManager):
    """In-memory local targets keyed by handle."""

    def __init__(self, prefix: str = "ab") -> None:
        self.prefix = prefix
        self.targets: dict[str, dict[str, str]] = {}
        self.created: list[tuple[str, str, str, str]] = []
        self.pending: dict[str, list[LocalChange]] = {}
        self.fail_items: dict[str, BaseException] = {}

    def create_target(self, name: str, account: Account, folder_id: str, color: str = "") -> str:
        handle = f"{self.prefix}-{len(self.created) + 1}"
        self.created.append((name, account.account, folder_id, color))
        self.targets[handle] = {}
        return handle

    def target_exists(self, handle: str) -> bool:
        return handle in self.targets

    def apply_item(self, handle: str, item: RemoteItem, local_id: Optional[str] = None) -> str:
        if item.remote_id in self.fail_items:
            raise self.fail_items[item.remote_id]
        local_id = local_id or f"l-{item.remote_id}"
        self.targets[handle][local_id] = item.data
        return local_id

    def delete_item(self, handle: str, local_id: str) -> None:
        self.targets[handle].pop(local_id, None)

    def local_changes(self, handle: str) -> list[LocalChange]:
        return list(self.pending.get(handle, []))

    def mark_synced(self, handle: str, local_ids: list[str]) -> None:
        self.pending.pop(handle, None)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("DAVSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def registry() -> FolderRegistry:
    """In-memory folder registry."""
    return FolderRegistry()


@pytest.fixture
def state_store() -> SyncStateStore:
    """In-memory sync state store."""
    return SyncStateStore()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def contacts() -> FakeTargetManager:
    return FakeTargetManager("ab")


@pytest.fixture
def calendars() -> FakeTargetManager:
    return FakeTargetManager("cal")


@pytest.fixture
def targets(contacts: FakeTargetManager, calendars: FakeTargetManager) -> dict[LocalKind, TargetManager]:
    return {LocalKind.CONTACT: contacts, LocalKind.EVENT: calendars}


@pytest.fixture
def account(registry: FolderRegistry) -> Account:
    """An enabled account with id '1' named 'Work'."""
    entry = new_account_entry()
    entry.accountname = "Work"
    entry.host = "dav.example.com"
    entry.user = "alice"
    entry.status = AccountStatus.NOT_SYNCRONIZED
    return registry.add_account(entry)


@pytest.fixture
def add_folder(registry: FolderRegistry):
    """Factory adding a folder to the registry."""

    def _add(account_id: str, folder_id: str, type: str = "carddav", name: str = "", **settings) -> Folder:
        folder = Folder(account=account_id, folder_id=folder_id, type=type, name=name or folder_id, **settings)
        registry.add_folder(folder)
        return registry.get_folder(account_id, folder_id)

    return _add


@pytest.fixture
def logger() -> MagicMock:
    """Logger double recording diagnostics."""
    return MagicMock(spec=SyncLogger)


@pytest.fixture
def orchestrator(
    registry: FolderRegistry,
    transport: FakeTransport,
    targets: dict[LocalKind, TargetManager],
    state_store: SyncStateStore,
    logger: MagicMock,
) -> AccountSyncOrchestrator:
    return AccountSyncOrchestrator(registry, transport, targets, state_store, logger=logger)


@pytest.fixture
def config_file(temp_home: Path, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write a configuration with storage inside the temp directory."""
    config_path = temp_dir / "config.yaml"
    data = {
        "storage": {
            "registry_path": str(temp_dir / "registry.yaml"),
            "state_path": str(temp_dir / "sync_state.yaml"),
        },
        "plugins": {
            "transport": "fakes:transport",
            "targets": "fakes:targets",
        },
    }
    config_path.write_text(yaml.dump(data), encoding="utf-8")
    monkeypatch.setenv("DAVSYNC_CONFIG", str(config_path))
    return config_path
