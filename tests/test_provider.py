# DAVSync Provider Tests
# Tests for the provider contract, folder-list bridge and provider registry

import pytest

from davsync.provider import DavProvider, FolderRowData, ProviderRegistry
from davsync.sync.errors import ErrorKind, SyncError
from davsync.sync.orchestrator import SyncContext, SyncPhase
from davsync.sync.records import Account, AccountStatus, Folder, FolderStatus
from davsync.sync.state import FolderState
from davsync.sync.transport import LocalKind, RemoteFolder


class RecordingView:
    """Folder list view collecting rows."""

    def __init__(self):
        self.added: list[FolderRowData] = []
        self.updated: list[FolderRowData] = []

    def add_row(self, row: FolderRowData) -> None:
        self.added.append(row)

    def update_row(self, row: FolderRowData) -> None:
        self.updated.append(row)


@pytest.fixture
def provider(registry, state_store, targets, transport, logger) -> DavProvider:
    return DavProvider(registry, state_store, targets, transport, logger=logger)


class TestDavProvider:
    """Tests for DavProvider."""

    def test_name_and_icon(self, provider: DavProvider):
        assert provider.name == "dav"
        assert provider.get_provider_icon().endswith(".png")

    def test_default_entries(self, provider: DavProvider):
        account = provider.get_new_account_entry()
        account.account = "5"
        account.downloadonly = True

        folder = provider.get_new_folder_entry(account)

        assert account.status == AccountStatus.DISABLED
        assert folder.account == "5"
        assert folder.downloadonly is True

    def test_local_folder_kind(self, provider: DavProvider):
        assert provider.get_local_folder_kind("carddav") == "tb-contact"
        assert provider.get_local_folder_kind("caldav") == "tb-event"
        assert provider.get_local_folder_kind("webcal") == "unknown (webcal)"

    def test_create_address_book(self, provider: DavProvider, account: Account, contacts):
        handle = provider.create_address_book("Contacts", account.account, "f1")

        assert handle == "ab-1"
        assert contacts.created == [("Contacts", account.account, "f1", "")]

    def test_create_calendar(self, provider: DavProvider, account: Account, calendars):
        handle = provider.create_calendar("Work", account.account, "c1", "#123456")

        assert handle == "cal-1"
        assert calendars.created[0][3] == "#123456"

    def test_no_calendar_support(self, provider: DavProvider, account: Account):
        provider.init(calendar_available=False)

        assert LocalKind.EVENT not in provider.targets
        with pytest.raises(SyncError) as exc_info:
            provider.create_calendar("Work", account.account, "c1", "")
        assert exc_info.value.kind == ErrorKind.UNSUPPORTED_FOLDER_TYPE

    def test_calendar_folders_unsupported_without_calendar(self, provider, registry, account: Account, transport,
                                                           add_folder):
        provider.init(calendar_available=False)
        transport.folders = [RemoteFolder(folder_id="c1", type="caldav", name="Cal")]
        add_folder(account.account, "c1", type="caldav", selected=True)

        provider.start(SyncContext(account=account.account))

        assert registry.get_folder(account.account, "c1").status == FolderStatus.NOT_SUPPORTED

    def test_start_requires_transport(self, registry, state_store, account: Account):
        provider = DavProvider(registry, state_store)
        with pytest.raises(RuntimeError):
            provider.start(SyncContext(account=account.account))

    def test_enable_disable(self, provider: DavProvider, registry, account: Account, add_folder):
        add_folder(account.account, "f1", selected=True)

        assert provider.disable_account(account.account) == 1
        assert registry.get_account(account.account).status == AccountStatus.DISABLED
        assert provider.enable_account(account.account) == 1
        assert registry.get_account(account.account).status == AccountStatus.NOT_SYNCRONIZED

    def test_unselect_drops_binding_and_markers(self, provider: DavProvider, registry, state_store,
                                                account: Account, add_folder):
        add_folder(account.account, "f1", selected=True, target="ab-1", target_name="Contacts")
        state_store.put(FolderState(account=account.account, folder_id="f1", sync_token="t1"))

        provider.set_folder_selected(account.account, "f1", False)

        folder = registry.get_folder(account.account, "f1")
        assert folder.selected is False
        assert folder.target == ""
        assert folder.target_name == ""
        assert state_store.get(account.account, "f1").sync_token == ""

    def test_unselect_unknown_folder(self, provider: DavProvider, account: Account):
        with pytest.raises(KeyError):
            provider.set_folder_selected(account.account, "nope", False)


class TestProviderUI:
    """Tests for the folder-list bridge."""

    def test_status_messages(self, provider: DavProvider):
        ui = provider.ui
        folder = Folder(account="1", folder_id="f1", type="carddav")

        assert ui.get_sync_status_msg(folder) == "Not selected"
        folder.selected = True
        assert ui.get_sync_status_msg(folder) == "Not synchronized"
        folder.status = FolderStatus.PENDING
        assert ui.get_sync_status_msg(folder) == "Waiting to be synchronized"
        folder.status = FolderStatus.NOT_SUPPORTED
        assert ui.get_sync_status_msg(folder) == "Not supported"
        folder.cached = True
        assert ui.get_sync_status_msg(folder) == "Cached"

    def test_progress_while_draining(self, provider: DavProvider):
        folder = Folder(account="1", folder_id="f1", type="carddav", selected=True, status=FolderStatus.SYNCING)
        context = SyncContext(account="1", counters={"downloaded": 4}, phases=[SyncPhase.DRAINING])

        assert provider.ui.get_sync_status_msg(folder, context) == "Synchronizing (4 items)"

    def test_sorted_rows(self, provider: DavProvider, account: Account, add_folder):
        add_folder(account.account, "c1", type="caldav", name="alpha")
        add_folder(account.account, "a2", type="carddav", name="zeta")
        add_folder(account.account, "a1", type="carddav", name="Beta")
        add_folder(account.account, "old", type="carddav", name="Old", cached=True)

        rows = provider.ui.get_sorted_folder_data(account.account)

        assert [row.folder_id for row in rows] == ["a1", "a2", "c1"]
        assert rows[0].type_image == "contacts16.png"
        assert rows[2].type_image == "calendar16.png"

    def test_populate_and_refresh(self, provider: DavProvider, account: Account, add_folder):
        add_folder(account.account, "a1", name="Contacts")
        add_folder(account.account, "old", name="Old", cached=True)
        view = RecordingView()

        assert provider.ui.populate_folder_list(view, account.account, include_cached=True) == 2
        assert provider.ui.refresh_folder_list(view, account.account) == 1
        assert [row.folder_id for row in view.updated] == ["a1"]

    def test_settings_helpers(self, provider: DavProvider):
        ui = provider.ui
        fields = ui.get_account_storage_fields()

        assert fields == sorted(fields)
        assert ui.get_always_unlocked_settings() == ["autosync"]
        assert ui.get_fixed_server_settings("custom") == {}
        assert ui.get_fixed_server_settings("unknown") == {}


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_register_and_get(self, provider: DavProvider):
        providers = ProviderRegistry()
        providers.register(provider)

        assert providers.get("dav") is provider
        assert providers.providers() == ["dav"]

    def test_duplicate(self, provider: DavProvider):
        providers = ProviderRegistry()
        providers.register(provider)
        with pytest.raises(ValueError):
            providers.register(provider)

    def test_unknown(self):
        with pytest.raises(KeyError):
            ProviderRegistry().get("ews")

    def test_start_delegates(self, provider: DavProvider, account: Account):
        providers = ProviderRegistry()
        providers.register(provider)

        result = providers.start("dav", SyncContext(account=account.account))

        assert result.success is True
