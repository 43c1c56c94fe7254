# DAVSync Records
# Account and folder records with their default values

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any

PROVIDER_TAG = "dav"


class AccountStatus(str, Enum):
    """Global status of an account."""

    DISABLED = "disabled"
    NOT_SYNCRONIZED = "notsyncronized"
    SYNCING = "syncing"
    OK = "ok"
    ERROR = "error"


class FolderStatus(str, Enum):
    """Per-folder sync status."""

    NONE = ""
    PENDING = "pending"
    SYNCING = "syncing"
    OK = "ok"
    ERROR = "error"
    NOT_SUPPORTED = "notsupported"


@dataclass
class Account:
    """
    One remote DAV connection.

    Status is held as ``syncing`` only while an orchestrator owns the account.
    """

    account: str = ""
    accountname: str = ""
    provider: str = PROVIDER_TAG
    servertype: str = "custom"
    host: str = ""
    user: str = ""
    https: bool = True
    auth_method: str = ""
    auth_options: str = ""
    autosync: bool = False
    downloadonly: bool = False
    status: AccountStatus = AccountStatus.DISABLED
    lastsynctime: int = 0
    status_message: str = ""
    sync_markers: dict[str, str] = field(default_factory=dict)
    syncdefaultfolders: bool = True
    displayoverride: bool = False
    seperator: str = "44"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        """Create from dictionary, filling missing fields with defaults."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "status" in values:
            values["status"] = AccountStatus(values["status"])
        if "sync_markers" in values:
            values["sync_markers"] = dict(values["sync_markers"] or {})
        return cls(**values)


@dataclass
class Folder:
    """
    One remote collection (calendar or address book) bound to an account.

    ``target`` stays empty until the folder is bound to a local object.
    Cached folders keep their settings while they are out of active use.
    """

    account: str
    folder_id: str = ""
    name: str = ""
    type: str = ""
    target: str = ""
    target_name: str = ""
    target_color: str = ""
    selected: bool = False
    status: FolderStatus = FolderStatus.NONE
    lastsynctime: int = 0
    parent_id: str = ""
    downloadonly: bool = False
    cached: bool = False
    cached_since: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Folder":
        """Create from dictionary, filling missing fields with defaults."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "status" in values:
            values["status"] = FolderStatus(values["status"] or "")
        return cls(**values)


ACCOUNT_STORAGE_FIELDS: list[str] = sorted(f.name for f in fields(Account))


def new_account_entry() -> Account:
    """Return an account record with every field at its default value."""
    return Account()


def new_folder_entry(account: Account) -> Folder:
    """
    Return a folder record with default values for the given account.

    Each folder carries its own download-only flag; the account setting is
    only the default.

    Args:
        account: Account the folder belongs to.

    Returns:
        Default-valued Folder.
    """
    return Folder(account=account.account, downloadonly=account.downloadonly)
