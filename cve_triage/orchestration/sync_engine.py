"""
Triage Synchronization Engine

OBJECTIVE:
Bring the record store in line with the upstream cvelist history: for each
(CVE id, commit) pair, read the entry, triage it and commit the record, doing
no work at all when the entry is unchanged since the last sync.

PER-ITEM STEPS:
1. Locate the entry path for the id
2. Read the entry and its blob hash at the commit
3. Fetch the stored record; skip when blob hash and commit both match
4. Triage, then write {path, blob_hash, commit_hash, cve_state,
   triage_state, triage_reason} through run_transaction
5. Per-item errors (malformed id, missing entry, id mismatch, unreadable
   entry) are collected and the batch goes on; store errors are retried with
   exponential backoff and, once exhausted, fail the batch

Inside the transaction a write is dropped when the stored commit already
descends from the incoming one, so older content never replaces newer.

CONCURRENCY:
A fixed pool of `concurrency` workers pulls items from a shared iterator.
Blocking pygit2 calls run in a worker thread, serialized on the shared
Repository. The engine never holds a lock between read and write;
the store's compare-and-swap resolves races.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional

from ..config.classification import Classification
from ..config.settings import Settings
from ..sources.exceptions import (ItemException, NotFound, StoreException,
                                  SyncBatchError)
from ..sources.git_reader import GitEntryReader
from ..sources.locator import cve_id_to_path
from ..store.base import TriageStore
from ..store.models import TriageRecord
from ..triage import triage

logger = logging.getLogger(__name__)


class ItemOutcome(Enum):
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    STALE = "stale"


@dataclass(frozen=True)
class SyncItem:
    cve_id: str
    commit_ref: str


@dataclass
class ItemFailure:
    cve_id: str
    commit_ref: str
    error: Exception

    def __str__(self):
        return f"{self.cve_id}@{self.commit_ref}: {type(self.error).__name__}: {self.error}"


@dataclass
class SyncResult:
    """Outcome of one batch"""
    written: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    stale: List[str] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)
    not_attempted: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def store_writes(self) -> int:
        return len(self.written)

    @property
    def processed(self) -> int:
        return len(self.written) + len(self.unchanged) + len(self.stale)

    def record(self, cve_id: str, outcome: ItemOutcome) -> None:
        getattr(self, outcome.value).append(cve_id)

    def finish(self) -> "SyncResult":
        self.written.sort()
        self.unchanged.sort()
        self.stale.sort()
        self.not_attempted.sort()
        self.failures.sort(key=lambda f: f.cve_id)
        self.finished_at = datetime.now(timezone.utc)
        return self


class SyncEngine:
    """Drives locator -> reader -> triage -> store for batches of ids"""

    def __init__(self,
                 reader: GitEntryReader,
                 store: TriageStore,
                 classification: Classification,
                 concurrency: int = 8,
                 retry_attempts: int = 3,
                 backoff_base_seconds: float = 0.5,
                 backoff_max_seconds: float = 30.0):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.reader = reader
        self.store = store
        self.classification = classification
        self.concurrency = concurrency
        self.retry_attempts = retry_attempts
        self.backoff_base_seconds = backoff_base_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self._git_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, reader: GitEntryReader, store: TriageStore,
                      classification: Classification, settings: Settings) -> "SyncEngine":
        return cls(
            reader, store, classification,
            concurrency=settings.SYNC_CONCURRENCY,
            retry_attempts=settings.SYNC_RETRY_ATTEMPTS,
            backoff_base_seconds=settings.SYNC_BACKOFF_BASE_SECONDS,
            backoff_max_seconds=settings.SYNC_BACKOFF_MAX_SECONDS,
        )

    async def sync_commit(self, new_ref: str, old_ref: Optional[str] = None,
                          force: bool = False) -> SyncResult:
        """Sync every entry that changed between old_ref (or the empty tree) and new_ref"""
        commit_hash = await self._git(self.reader.resolve_commit, new_ref)
        cve_ids = await self._git(self.reader.changed_cve_ids, commit_hash, old_ref)
        return await self.sync((SyncItem(cve_id, commit_hash) for cve_id in cve_ids), force=force)

    async def sync(self, items: Iterable[SyncItem], force: bool = False) -> SyncResult:
        """
        Process a batch of (id, commit) pairs

        At most `concurrency` workers run, each pulling the next item from a
        shared iterator. force re-triages entries even when their content is
        unchanged, for when the classification lists changed.

        Returns:
            SyncResult with written / unchanged / stale ids and per-item failures

        Raises:
            SyncBatchError: A store error outlived its retries; the partial
                result is attached and records already committed stay as they are
        """
        items = list(items)
        pending = iter(items)
        result = SyncResult()
        abort = asyncio.Event()
        fatal: List[StoreException] = []

        logger.info(f"🚀 Syncing {len(items):,} entries with concurrency {self.concurrency}")

        async def worker():
            for item in pending:
                if abort.is_set():
                    result.not_attempted.append(item.cve_id)
                    continue
                try:
                    outcome = await self._process_with_retry(item, force)
                except ItemException as e:
                    logger.warning(f"⚠️ Skipping {item.cve_id}@{item.commit_ref}: {e}")
                    result.failures.append(ItemFailure(item.cve_id, item.commit_ref, e))
                    continue
                except StoreException as e:
                    logger.error(f"❌ Store failure on {item.cve_id}, aborting batch: {e}")
                    result.failures.append(ItemFailure(item.cve_id, item.commit_ref, e))
                    fatal.append(e)
                    abort.set()
                    continue
                except Exception as e:
                    logger.error(f"❌ Unexpected error on {item.cve_id}@{item.commit_ref}: {e}",
                                 exc_info=True)
                    result.failures.append(ItemFailure(item.cve_id, item.commit_ref, e))
                    continue
                result.record(item.cve_id, outcome)

        await asyncio.gather(*(worker() for _ in range(min(self.concurrency, len(items)))))
        result.finish()

        logger.info(f"✅ Sync finished: {len(result.written):,} written, "
                    f"{len(result.unchanged):,} unchanged, {len(result.stale):,} stale, "
                    f"{len(result.failures):,} failed")

        if fatal:
            raise SyncBatchError(
                f"Batch aborted after store failure: {fatal[0]}",
                result=result, cause=fatal[0])
        return result

    async def _git(self, fn, *args):
        """Run a blocking repository call in a thread, one at a time"""
        async with self._git_lock:
            return await asyncio.to_thread(fn, *args)

    async def _process_with_retry(self, item: SyncItem, force: bool) -> ItemOutcome:
        for attempt in range(self.retry_attempts + 1):
            try:
                return await self._process(item, force)
            except StoreException as e:
                if attempt >= self.retry_attempts:
                    raise
                wait_time = min(self.backoff_base_seconds * 2 ** attempt, self.backoff_max_seconds)
                logger.warning(f"Store error on {item.cve_id} (attempt {attempt + 1}), "
                               f"retrying in {wait_time:.2f}s: {e}")
                await asyncio.sleep(wait_time)

    def _stored_is_newer(self, stored_commit: str, incoming_commit: str) -> bool:
        if not stored_commit or stored_commit == incoming_commit:
            return False
        try:
            return self.reader.is_ancestor(incoming_commit, stored_commit)
        except NotFound:
            # The stored commit is not in this checkout; the incoming one wins
            logger.debug(f"Stored commit {stored_commit} unknown to the checkout")
            return False

    async def _process(self, item: SyncItem, force: bool = False) -> ItemOutcome:
        path = cve_id_to_path(item.cve_id)
        commit_hash = await self._git(self.reader.resolve_commit, item.commit_ref)
        entry, content_hash = await self._git(self.reader.read_entry_at, commit_hash, path)

        existing = await self.store.get(item.cve_id)
        if not force and existing and existing.blob_hash == content_hash and existing.commit_hash == commit_hash:
            logger.debug(f"{item.cve_id} unchanged at {commit_hash[:12]}")
            return ItemOutcome.UNCHANGED

        decision = triage(entry, self.classification)
        outcome = ItemOutcome.WRITTEN

        async def update(record: TriageRecord) -> Optional[TriageRecord]:
            nonlocal outcome
            unchanged = record.blob_hash == content_hash and record.commit_hash == commit_hash
            same_decision = (record.triage_state == decision.state
                             and record.triage_reason == decision.reason)
            if unchanged and (not force or same_decision):
                outcome = ItemOutcome.UNCHANGED
                return None
            if await self._git(self._stored_is_newer, record.commit_hash, commit_hash):
                outcome = ItemOutcome.STALE
                return None
            outcome = ItemOutcome.WRITTEN
            record.path = path
            record.blob_hash = content_hash
            record.commit_hash = commit_hash
            record.cve_state = entry.state
            record.triage_state = decision.state
            record.triage_reason = decision.reason
            return record

        await self.store.run_transaction(item.cve_id, update)
        if outcome is ItemOutcome.STALE:
            logger.debug(f"{item.cve_id}: stored commit is newer than {commit_hash[:12]}, not written")
        elif outcome is ItemOutcome.WRITTEN:
            logger.debug(f"{item.cve_id} -> {decision.state.value}")
        return outcome
