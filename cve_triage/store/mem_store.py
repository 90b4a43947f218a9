"""
Ephemeral record store

Process-lifetime only; used by tests and dry runs. Records are copied on
the way in and out so callers can never mutate stored state outside a
transaction. Each record carries a version number and commits are a
compare-and-swap on it, the same scheme PostgresStore uses.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Optional, Tuple

from ..sources.exceptions import TransactionConflict
from .base import DEFAULT_MAX_RETRIES, StateFilter, UpdateFn, check_update
from .models import TriageRecord

logger = logging.getLogger(__name__)


class MemStore:
    """In-memory TriageStore"""

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES):
        self.max_retries = max_retries
        self._records: Dict[str, Tuple[int, TriageRecord]] = {}
        self._lock = asyncio.Lock()
        self.writes = 0

    async def get(self, cve_id: str) -> Optional[TriageRecord]:
        async with self._lock:
            entry = self._records.get(cve_id)
        return entry[1].copy() if entry else None

    async def list_records(self, state_filter: StateFilter = None) -> List[TriageRecord]:
        async with self._lock:
            snapshot = [record for _, record in self._records.values()]
        return [
            record.copy()
            for record in sorted(snapshot, key=lambda r: r.cve_id)
            if state_filter is None or state_filter(record.triage_state)
        ]

    async def iter_records(self, state_filter: StateFilter = None) -> AsyncIterator[TriageRecord]:
        for record in await self.list_records(state_filter):
            yield record

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)

    async def run_transaction(self, cve_id: str, update_fn: UpdateFn) -> TriageRecord:
        for attempt in range(1, self.max_retries + 1):
            async with self._lock:
                version, current = self._records.get(cve_id, (0, None))
            snapshot = current.copy() if current else TriageRecord(cve_id=cve_id)

            updated = update_fn(snapshot.copy())
            if inspect.isawaitable(updated):
                updated = await updated
            updated = check_update(cve_id, updated)
            if updated is None:
                return snapshot

            async with self._lock:
                latest_version = self._records.get(cve_id, (0, None))[0]
                if latest_version != version:
                    logger.debug(f"Conflict on {cve_id} (attempt {attempt}/{self.max_retries})")
                    continue
                stored = updated.copy()
                stored.updated_at = datetime.now(timezone.utc)
                self._records[cve_id] = (version + 1, stored)
                self.writes += 1
            return stored.copy()

        raise TransactionConflict(
            f"Gave up after {self.max_retries} conflicting attempts",
            cve_id=cve_id, attempts=self.max_retries)

    async def close(self) -> None:
        pass
