# DAVSync Account Sync Orchestrator
# Job dispatcher sequencing discovery, queueing, draining and finalization

import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from davsync.logger import SyncLogger
from davsync.sync.discovery import CachePolicy, DiscoveryResult, KindResolver, discover_folders, local_kind_for
from davsync.sync.errors import (
    UNEXPECTED_ERROR_MESSAGE,
    AccountBusyError,
    Completed,
    Crashed,
    ErrorKind,
    Failed,
    SyncError,
    SyncOutcome,
    unknown_job,
)
from davsync.sync.notifications import FOLDER_LIST_UPDATED, Notifier
from davsync.sync.queue import DrainResult, PendingQueue
from davsync.sync.records import AccountStatus
from davsync.sync.registry import FolderRegistry
from davsync.sync.state import SyncStateStore
from davsync.sync.transport import LocalKind, TargetManager, Transport
from davsync.sync.worker import FolderSyncWorker

SYNC_JOB = "sync"


class SyncPhase(str, Enum):
    """States of one orchestrator run."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    MARKING_PENDING = "marking_pending"
    DRAINING = "draining"
    FINALIZING = "finalizing"


@dataclass
class SyncContext:
    """
    Scratch state of one job run.

    Not persisted; discarded when the run ends.
    """

    account: str
    folder: Optional[str] = None
    job: str = SYNC_JOB
    counters: dict[str, int] = field(default_factory=dict)
    phases: list[SyncPhase] = field(default_factory=list)
    discovery: Optional[DiscoveryResult] = None
    drain: Optional[DrainResult] = None
    _abort: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def phase(self) -> SyncPhase:
        """Get the current phase."""
        return self.phases[-1] if self.phases else SyncPhase.IDLE

    @property
    def abort_requested(self) -> bool:
        """Check if an abort was requested."""
        return self._abort.is_set()

    def request_abort(self) -> None:
        """Ask the run to stop before the next folder starts."""
        self._abort.set()


@dataclass
class AccountSyncResult:
    """Result of one orchestrator run."""

    account: str
    job: str
    outcome: SyncOutcome
    status: AccountStatus
    status_message: str = ""
    phases: list[SyncPhase] = field(default_factory=list)
    discovery: Optional[DiscoveryResult] = None
    drain: Optional[DrainResult] = None

    @property
    def success(self) -> bool:
        """Check if the run ended cleanly."""
        return self.status == AccountStatus.OK

    @property
    def error(self) -> Optional[SyncError]:
        """Get the classified error of the run, if any."""
        match self.outcome:
            case Failed(error=error):
                return error
            case _:
                return None


class AccountSyncOrchestrator:
    """
    Top-level job dispatcher for accounts.

    For the ``sync`` job a run goes through discovering, marking pending,
    draining and finalizing. Finalizing runs exactly once on every exit path
    and never leaves the account in ``syncing``. At most one job per account
    is active at a time; different accounts may run concurrently.
    """

    def __init__(
        self,
        registry: FolderRegistry,
        transport: Transport,
        targets: dict[LocalKind, TargetManager],
        state_store: SyncStateStore,
        *,
        notifier: Optional[Notifier] = None,
        logger: Optional[SyncLogger] = None,
        cache_policy: Optional[CachePolicy] = None,
        kind_of: KindResolver = local_kind_for,
    ):
        """
        Initialize orchestrator.

        Args:
            registry: Folder registry.
            transport: Wire transport.
            targets: Target manager per local kind.
            state_store: Store for folder sync markers.
            notifier: Receives the folder-list-updated notification.
            logger: Diagnostic channel for unexpected failures.
            cache_policy: Eviction policy for cached folders.
            kind_of: Maps a folder type to its local kind.
        """
        self.registry = registry
        self.transport = transport
        self.state_store = state_store
        self.notifier = notifier or Notifier()
        self.logger = logger or SyncLogger()
        self.cache_policy = cache_policy
        self.kind_of = kind_of
        self.queue = PendingQueue(registry)
        self.worker = FolderSyncWorker(registry, transport, targets, state_store, kind_of=kind_of)
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._active: dict[str, SyncContext] = {}

    def _account_lock(self, account_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(account_id, threading.Lock())

    def is_running(self, account_id: str) -> bool:
        """Check if an account has an active job."""
        with self._guard:
            return account_id in self._active

    def request_abort(self, account_id: str) -> bool:
        """
        Ask the active job of an account to stop.

        Returns:
            False if the account has no active job.
        """
        with self._guard:
            context = self._active.get(account_id)
        if context is None:
            return False
        context.request_abort()
        return True

    def start(self, context: SyncContext, job: Optional[str] = None) -> AccountSyncResult:
        """
        Run a job for an account.

        Args:
            context: Context of the run (account, optional single folder).
            job: Job name, defaults to ``context.job``.

        Returns:
            AccountSyncResult describing the finalized run.

        Raises:
            AccountBusyError: If the account already has an active job. The
                running job is left untouched.
        """
        if job is not None:
            context.job = job

        lock = self._account_lock(context.account)
        if not lock.acquire(blocking=False):
            raise AccountBusyError(context.account)

        with self._guard:
            self._active[context.account] = context
        try:
            return self._run(context)
        finally:
            with self._guard:
                self._active.pop(context.account, None)
            lock.release()

    def start_many(
        self,
        account_ids: list[str],
        job: str = SYNC_JOB,
        *,
        max_workers: int = 1,
    ) -> dict[str, AccountSyncResult]:
        """
        Run a job for several accounts, each on its own worker thread.

        Busy accounts are skipped with a warning.

        Args:
            account_ids: Accounts to run.
            job: Job name.
            max_workers: Number of accounts running at the same time.

        Returns:
            Dict of account id to result, for accounts that ran.
        """
        results: dict[str, AccountSyncResult] = {}
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {aid: executor.submit(self.start, SyncContext(account=aid, job=job)) for aid in account_ids}
            for account_id, future in futures.items():
                try:
                    results[account_id] = future.result()
                except AccountBusyError as e:
                    self.logger.warning(str(e))
        return results

    def _run(self, context: SyncContext) -> AccountSyncResult:
        outcome: Optional[SyncOutcome] = None
        try:
            self._dispatch(context)
            outcome = Completed()
        except SyncError as e:
            outcome = Failed(e)
        except Exception as e:
            self.logger.report_exception(f"Unexpected error during {context.job} of account '{context.account}'")
            outcome = Crashed(e)
        finally:
            if outcome is None:
                # Interrupted by a BaseException; finalize before it propagates
                outcome = Crashed(sys.exc_info()[1] or RuntimeError("interrupted"))
            result = self._finalize(context, outcome)
        return result

    def _dispatch(self, context: SyncContext) -> None:
        match context.job:
            case "sync":
                self._sync(context)
            case _:
                raise unknown_job(context.job)

    def _sync(self, context: SyncContext) -> None:
        account_id = context.account
        status = self.registry.update_account_status(account_id, AccountStatus.SYNCING, keep_disabled=True)
        if status == AccountStatus.DISABLED:
            raise SyncError(ErrorKind.ABORTED, f"account '{account_id}' is disabled")

        self._enter(context, SyncPhase.DISCOVERING)
        context.discovery = discover_folders(
            self.registry,
            self.transport,
            account_id,
            kind_of=self.kind_of,
            cache_policy=self.cache_policy,
            state_store=self.state_store,
        )

        self._enter(context, SyncPhase.MARKING_PENDING)
        pending = self.queue.mark_pending(account_id, context.folder)
        self.logger.debug(f"Account '{account_id}': {len(pending)} folder(s) pending")
        self.notifier.notify(FOLDER_LIST_UPDATED, account_id)

        self._enter(context, SyncPhase.DRAINING)
        self.queue.drain(context, self.worker)

    def _finalize(self, context: SyncContext, outcome: SyncOutcome) -> AccountSyncResult:
        self._enter(context, SyncPhase.FINALIZING)
        account_id = context.account
        drain = context.drain

        match outcome:
            case Completed() if drain is not None and drain.has_failures:
                status, message = AccountStatus.ERROR, f"{drain.failed} folder(s) failed"
            case Completed():
                status, message = AccountStatus.OK, ""
            case Failed(error=error):
                status, message = AccountStatus.ERROR, str(error)
            case Crashed():
                status, message = AccountStatus.ERROR, UNEXPECTED_ERROR_MESSAGE

        if self.registry.has_account(account_id):
            # Disabled while running (or before): stays disabled
            status = self.registry.update_account_status(
                account_id,
                status,
                message,
                keep_disabled=True,
                lastsynctime=int(time.time()),
            )

        self.logger.debug(f"Account '{account_id}' finalized: {status.value} {message}".rstrip())
        self._enter(context, SyncPhase.IDLE)

        return AccountSyncResult(
            account=account_id,
            job=context.job,
            outcome=outcome,
            status=status,
            status_message=message,
            phases=list(context.phases),
            discovery=context.discovery,
            drain=drain,
        )

    @staticmethod
    def _enter(context: SyncContext, phase: SyncPhase) -> None:
        context.phases.append(phase)
