# DAVSync Errors
# Classified sync failures and run outcomes

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of expected (classified) sync failures."""

    UNKNOWN_JOB = "unknown-job"
    AUTH_FAILURE = "auth-failure"
    NETWORK_FAILURE = "network-failure"
    PARSE_FAILURE = "parse-failure"
    UNSUPPORTED_FOLDER_TYPE = "unsupported-folder-type"
    ABORTED = "aborted"


# Kinds that stop the pending queue instead of being isolated to one folder
FATAL_KINDS: frozenset[ErrorKind] = frozenset({ErrorKind.AUTH_FAILURE})

# Account status message used for failures that were not classified
UNEXPECTED_ERROR_MESSAGE = "unexpected-error"


class SyncError(Exception):
    """
    Expected provider failure carrying an explicit kind.

    Anything raised during a sync that is not a SyncError is treated as an
    unexpected runtime fault.
    """

    def __init__(self, kind: ErrorKind, message: str = ""):
        """
        Initialize error.

        Args:
            kind: Failure kind.
            message: Human-readable detail.
        """
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def fatal(self) -> bool:
        """Check if this failure aborts the whole run."""
        return self.kind in FATAL_KINDS

    def __str__(self) -> str:
        if self.message:
            return f"{self.kind.value}: {self.message}"
        return self.kind.value


class AccountBusyError(RuntimeError):
    """Raised when a job is started for an account that already has one running."""

    def __init__(self, account_id: str):
        super().__init__(f"Account '{account_id}' already has an active sync job")
        self.account_id = account_id


def unknown_job(job: str) -> SyncError:
    """Build the error for a job name the provider does not handle."""
    return SyncError(ErrorKind.UNKNOWN_JOB, f"unknown job '{job}'")


@dataclass(frozen=True)
class Completed:
    """Run finished without a run-level failure."""


@dataclass(frozen=True)
class Failed:
    """Run ended with a classified failure."""

    error: SyncError


@dataclass(frozen=True)
class Crashed:
    """Run ended with an unexpected exception."""

    exception: BaseException


SyncOutcome = Completed | Failed | Crashed
