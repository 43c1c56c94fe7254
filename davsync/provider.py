# DAVSync Provider
# Provider plugin contract, folder-list UI bridge and provider registry

from dataclasses import dataclass
from typing import Optional, Protocol

from davsync.logger import SyncLogger
from davsync.sync.discovery import CachePolicy, local_kind_for
from davsync.sync.errors import ErrorKind, SyncError
from davsync.sync.lifecycle import disable_account, enable_account
from davsync.sync.notifications import Notifier
from davsync.sync.orchestrator import SYNC_JOB, AccountSyncOrchestrator, AccountSyncResult, SyncContext, SyncPhase
from davsync.sync.records import (
    ACCOUNT_STORAGE_FIELDS,
    PROVIDER_TAG,
    Account,
    Folder,
    FolderStatus,
    new_account_entry,
    new_folder_entry,
)
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import SyncStateStore
from davsync.sync.transport import LocalKind, TargetManager, Transport

STATUS_MESSAGES: dict[FolderStatus, str] = {
    FolderStatus.NONE: "",
    FolderStatus.PENDING: "Waiting to be synchronized",
    FolderStatus.SYNCING: "Synchronizing",
    FolderStatus.OK: "OK",
    FolderStatus.ERROR: "Error",
    FolderStatus.NOT_SUPPORTED: "Not supported",
}

TYPE_IMAGES: dict[str, str] = {
    "carddav": "contacts16.png",
    "caldav": "calendar16.png",
}

# Settings pre-set by a server profile; the user has to unlock them to edit
FIXED_SERVER_SETTINGS: dict[str, dict[str, object]] = {
    "auto": {},
    "custom": {},
}

# Sort order of folder types in the folder list
_TYPE_ORDER: dict[str, int] = {"carddav": 0, "caldav": 1}


@dataclass(frozen=True)
class FolderRowData:
    """Plain data for one row of the folder list."""

    folder_id: str
    name: str
    type: str
    selected: bool
    status: str
    type_image: str = ""


class FolderListView(Protocol):
    """Host side of the folder list; receives plain row data only."""

    def add_row(self, row: FolderRowData) -> None: ...

    def update_row(self, row: FolderRowData) -> None: ...


class ProviderUI:
    """Supplies folder records to a folder-list view."""

    def __init__(self, provider: "DavProvider"):
        self.provider = provider

    @property
    def registry(self) -> FolderRegistry:
        return self.provider.registry

    def get_account_storage_fields(self) -> list[str]:
        """Get all account field names, sorted."""
        return list(ACCOUNT_STORAGE_FIELDS)

    def get_always_unlocked_settings(self) -> list[str]:
        """Get settings that stay editable while the account is connected."""
        return ["autosync"]

    def get_fixed_server_settings(self, servertype: str) -> dict[str, object]:
        """Get the pre-set settings of a server profile."""
        return dict(FIXED_SERVER_SETTINGS.get(servertype, {}))

    def get_type_image(self, folder_type: str) -> str:
        """Get the icon name for a folder type."""
        return TYPE_IMAGES.get(folder_type, "")

    def get_sync_status_msg(self, folder: Folder, context: Optional[SyncContext] = None) -> str:
        """
        Get a human-readable status for a folder.

        Args:
            folder: Folder record.
            context: Context of a running job, to show progress.

        Returns:
            Status message.
        """
        if folder.cached:
            return "Cached"
        if not folder.selected and folder.status in (FolderStatus.NONE, FolderStatus.OK):
            return "Not selected"
        if folder.status == FolderStatus.NONE:
            return "Not synchronized"

        message = STATUS_MESSAGES[folder.status]
        if (
            folder.status == FolderStatus.SYNCING
            and context is not None
            and context.account == folder.account
            and context.phase == SyncPhase.DRAINING
        ):
            message += f" ({context.counters.get('downloaded', 0)} items)"
        return message

    def get_folder_row_data(self, folder: Folder, context: Optional[SyncContext] = None) -> FolderRowData:
        """Build the row data for one folder."""
        return FolderRowData(
            folder_id=folder.folder_id,
            name=folder.name,
            type=folder.type,
            selected=folder.selected,
            status=self.get_sync_status_msg(folder, context),
            type_image=self.get_type_image(folder.type),
        )

    def get_sorted_folder_data(
        self,
        account_id: str,
        *,
        include_cached: bool = False,
        context: Optional[SyncContext] = None,
    ) -> list[FolderRowData]:
        """Get row data for an account's folders, ordered by type then name."""
        folders = self.registry.get_folders(account_id, include_cached=include_cached)
        folders.sort(key=lambda f: (_TYPE_ORDER.get(f.type, len(_TYPE_ORDER)), f.name.casefold()))
        return [self.get_folder_row_data(folder, context) for folder in folders]

    def populate_folder_list(self, view: FolderListView, account_id: str, *, include_cached: bool = False) -> int:
        """
        Add a row to the view for every folder of an account.

        Returns:
            Number of rows added.
        """
        rows = self.get_sorted_folder_data(account_id, include_cached=include_cached)
        for row in rows:
            view.add_row(row)
        return len(rows)

    def refresh_folder_list(
        self,
        view: FolderListView,
        account_id: str,
        context: Optional[SyncContext] = None,
    ) -> int:
        """
        Update the view's rows, e.g. after a folder-list-updated notification.

        Returns:
            Number of rows updated.
        """
        rows = self.get_sorted_folder_data(account_id, context=context)
        for row in rows:
            view.update_row(row)
        return len(rows)


class DavProvider:
    """
    CalDAV/CardDAV provider.

    Exposes the plugin contract a host framework drives: default records,
    folder type mapping, enable/disable, target creation and the sync entry
    point.
    """

    name = PROVIDER_TAG

    def __init__(
        self,
        registry: FolderRegistry,
        state_store: SyncStateStore,
        targets: Optional[dict[LocalKind, TargetManager]] = None,
        transport: Optional[Transport] = None,
        *,
        notifier: Optional[Notifier] = None,
        logger: Optional[SyncLogger] = None,
        cache_policy: Optional[CachePolicy] = None,
    ):
        """
        Initialize provider.

        Args:
            registry: Folder registry.
            state_store: Store for folder sync markers.
            targets: Target manager per local kind.
            transport: Wire transport. Required for ``start``.
            notifier: Receives folder-list-updated notifications.
            logger: Diagnostic channel.
            cache_policy: Eviction policy for cached folders.
        """
        self.registry = registry
        self.state_store = state_store
        self.targets: dict[LocalKind, TargetManager] = targets if targets is not None else {}
        self.notifier = notifier or Notifier()
        self.logger = logger or SyncLogger()
        self.calendar_available = True
        self.ui = ProviderUI(self)
        self.orchestrator: Optional[AccountSyncOrchestrator] = None
        if transport is not None:
            self.orchestrator = AccountSyncOrchestrator(
                registry,
                transport,
                self.targets,
                state_store,
                notifier=self.notifier,
                logger=self.logger,
                cache_policy=cache_policy,
            )

    def init(self, calendar_available: bool) -> None:
        """
        One-time setup.

        Without a calendar subsystem, calendar folders cannot be bound and
        end as not supported when synced.
        """
        self.calendar_available = calendar_available
        if not calendar_available:
            self.targets.pop(LocalKind.EVENT, None)

    def get_provider_icon(self) -> str:
        """Get the 16x16 provider icon name."""
        return "sabredav16.png"

    def get_new_account_entry(self) -> Account:
        """Get an account record with default values."""
        return new_account_entry()

    def get_new_folder_entry(self, account: Account) -> Folder:
        """Get a folder record with default values for an account."""
        return new_folder_entry(account)

    def get_local_folder_kind(self, folder_type: str) -> str:
        """Map a provider folder type to a local kind, or an ``unknown (...)`` tag."""
        kind = local_kind_for(folder_type)
        if kind is None:
            return f"unknown ({folder_type})"
        return kind.value

    def enable_account(self, account_id: str) -> int:
        """Enable an account. Returns the number of restored folders."""
        return enable_account(self.registry, self.state_store, account_id)

    def disable_account(self, account_id: str) -> int:
        """Disable an account. Returns the number of cached folders."""
        if self.orchestrator is not None:
            self.orchestrator.request_abort(account_id)
        return disable_account(self.registry, self.state_store, account_id)

    def set_folder_selected(self, account_id: str, folder_id: str, selected: bool) -> None:
        """
        Select or unselect a folder.

        Unselecting unbinds the folder's local target and drops its sync
        markers, so a later selection starts with a fresh full sync.

        Raises:
            KeyError: If folder doesn't exist.
        """
        self.registry.set_folder_selected(account_id, folder_id, selected)
        if not selected:
            self.state_store.clear_folder(account_id, folder_id)

    def create_address_book(self, name: str, account_id: str, folder_id: str) -> str:
        """Create a local address book for a folder and return its handle."""
        manager = self._get_manager(LocalKind.CONTACT)
        return manager.create_target(name, self.registry.get_account(account_id), folder_id)

    def create_calendar(self, name: str, account_id: str, folder_id: str, color: str) -> str:
        """Create a local calendar for a folder and return its handle."""
        if not self.calendar_available:
            raise SyncError(ErrorKind.UNSUPPORTED_FOLDER_TYPE, "calendar support is not available")
        manager = self._get_manager(LocalKind.EVENT)
        return manager.create_target(name, self.registry.get_account(account_id), folder_id, color)

    def _get_manager(self, kind: LocalKind) -> TargetManager:
        manager = self.targets.get(kind)
        if manager is None:
            raise SyncError(ErrorKind.UNSUPPORTED_FOLDER_TYPE, f"no local target available for {kind.value}")
        return manager

    def start(self, context: SyncContext, job: str = SYNC_JOB) -> AccountSyncResult:
        """
        Run a job for an account.

        Raises:
            RuntimeError: If the provider has no transport.
            AccountBusyError: If the account already has an active job.
        """
        if self.orchestrator is None:
            raise RuntimeError("Provider has no transport configured")
        return self.orchestrator.start(context, job)


class ProviderRegistry:
    """Registry through which a host looks up and drives providers."""

    def __init__(self) -> None:
        self._providers: dict[str, DavProvider] = {}

    def register(self, provider: DavProvider) -> None:
        """
        Register a provider under its name.

        Raises:
            ValueError: If a provider with that name is registered.
        """
        if provider.name in self._providers:
            raise ValueError(f"Provider '{provider.name}' is already registered")
        self._providers[provider.name] = provider

    def get(self, name: str) -> DavProvider:
        """
        Get a provider by name.

        Raises:
            KeyError: If no such provider is registered.
        """
        if name not in self._providers:
            raise KeyError(f"Provider '{name}' not registered")
        return self._providers[name]

    def providers(self) -> list[str]:
        """Get names of all registered providers."""
        return list(self._providers)

    def start(self, provider_name: str, context: SyncContext, job: str = SYNC_JOB) -> AccountSyncResult:
        """Run a job through a registered provider."""
        return self.get(provider_name).start(context, job)
