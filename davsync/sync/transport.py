# DAVSync Collaborator Contracts
# Interfaces for the wire transport and the local target managers

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from davsync.sync.records import Account, Folder


class LocalKind(str, Enum):
    """Local object kinds a folder can be bound to."""

    CONTACT = "tb-contact"
    EVENT = "tb-event"


# Provider folder type -> local kind
FOLDER_KINDS: dict[str, LocalKind] = {
    "carddav": LocalKind.CONTACT,
    "caldav": LocalKind.EVENT,
}


@dataclass(frozen=True)
class RemoteFolder:
    """One folder as reported by the server."""

    folder_id: str
    type: str
    name: str = ""
    parent_id: str = ""


@dataclass
class RemoteItem:
    """One remote entry (vCard or iCalendar object)."""

    remote_id: str
    etag: Optional[str] = None
    data: str = ""


@dataclass
class ChangeSet:
    """
    Remote changes since a sync token.

    When ``full`` is set, ``items`` is the complete folder listing and
    bound items missing from it were deleted remotely.
    """

    items: list[RemoteItem] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    sync_token: str = ""
    full: bool = False


@dataclass
class LocalChange:
    """A local modification waiting to be pushed."""

    local_id: str
    data: str = ""
    deleted: bool = False
    remote_id: Optional[str] = None  # filled in for items already on the server


@dataclass
class PushedItem:
    """Server acknowledgement for one pushed local change."""

    local_id: str
    remote_id: str
    etag: Optional[str] = None


class Transport(ABC):
    """
    Wire-level access to a DAV server.

    Implementations raise ``SyncError`` with ``auth-failure``,
    ``network-failure`` or ``parse-failure`` for expected failures.
    """

    @abstractmethod
    def list_folders(self, account: Account) -> list[RemoteFolder]:
        """Fetch the folders currently exposed by the server."""
        ...

    @abstractmethod
    def fetch_changes(self, account: Account, folder: Folder, sync_token: str) -> ChangeSet:
        """Fetch changes since ``sync_token``; an empty token requests a full listing."""
        ...

    @abstractmethod
    def push_changes(self, account: Account, folder: Folder, changes: list[LocalChange]) -> list[PushedItem]:
        """Upload local changes and return the server's acknowledgements."""
        ...


class TargetManager(ABC):
    """Creates and updates the local objects (address books, calendars) folders sync into."""

    @abstractmethod
    def create_target(self, name: str, account: Account, folder_id: str, color: str = "") -> str:
        """Create a local target and return its opaque handle."""
        ...

    @abstractmethod
    def target_exists(self, handle: str) -> bool:
        """Check if the local target behind a handle still exists."""
        ...

    @abstractmethod
    def apply_item(self, handle: str, item: RemoteItem, local_id: Optional[str] = None) -> str:
        """Create or update a local item from a remote one and return its local id."""
        ...

    @abstractmethod
    def delete_item(self, handle: str, local_id: str) -> None:
        """Delete a local item."""
        ...

    @abstractmethod
    def local_changes(self, handle: str) -> list[LocalChange]:
        """List local modifications not yet pushed."""
        ...

    def mark_synced(self, handle: str, local_ids: list[str]) -> None:
        """Forget pushed local modifications."""
        return None
