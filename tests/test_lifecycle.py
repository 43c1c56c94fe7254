# DAVSync Lifecycle Tests
# Tests for enabling and disabling accounts

from davsync.sync.lifecycle import disable_account, enable_account
from davsync.sync.records import Account, AccountStatus, FolderStatus
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import FolderState, SyncStateStore


class TestDisableAccount:
    """Tests for disable_account."""

    def test_caches_all_folders(self, registry: FolderRegistry, state_store: SyncStateStore, account: Account,
                                add_folder):
        add_folder(account.account, "f1", selected=True, target="ab-1", status=FolderStatus.PENDING)
        add_folder(account.account, "f2")

        assert disable_account(registry, state_store, account.account, now=77) == 2

        stored = registry.get_account(account.account)
        assert stored.status == AccountStatus.DISABLED
        assert registry.get_folders(account.account) == []
        f1 = registry.get_folder(account.account, "f1")
        assert f1.cached_since == 77
        assert f1.selected is True
        assert f1.target == "ab-1"
        assert f1.status == FolderStatus.NONE

    def test_drops_sync_markers(self, registry, state_store, account: Account, add_folder):
        add_folder(account.account, "f1")
        registry.set_account_setting(account.account, "sync_markers", {"ctag": "1"})
        state = FolderState(account=account.account, folder_id="f1", sync_token="tok")
        state.set_item("r1", "l1")
        state_store.put(state)

        disable_account(registry, state_store, account.account)

        assert registry.get_account(account.account).sync_markers == {}
        assert state_store.get(account.account, "f1").sync_token == ""
        assert state_store.get(account.account, "f1").get_item("r1") is not None


class TestEnableAccount:
    """Tests for enable_account."""

    def test_resets_status(self, registry, state_store, account: Account):
        registry.set_account_setting(account.account, "status", AccountStatus.ERROR)
        registry.set_account_setting(account.account, "lastsynctime", 123)
        registry.set_account_setting(account.account, "status_message", "auth-failure")

        enable_account(registry, state_store, account.account)

        stored = registry.get_account(account.account)
        assert stored.status == AccountStatus.NOT_SYNCRONIZED
        assert stored.lastsynctime == 0
        assert stored.status_message == ""

    def test_round_trip_restores_folders(self, registry, state_store, account: Account, add_folder):
        add_folder(account.account, "f1", selected=True, target="ab-1", target_name="Contacts (Work)")
        add_folder(account.account, "f2", type="caldav", target="cal-1", target_color="#00ff00")
        before = registry.get_folders(account.account)

        disable_account(registry, state_store, account.account)
        restored = enable_account(registry, state_store, account.account)

        assert restored == 2
        assert registry.get_folders(account.account) == before
