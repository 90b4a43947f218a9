"""
Durable record store on PostgreSQL

APPROACH:
- asyncpg connection pool, one short statement per call
- optimistic concurrency: every row carries a version; inserts use
  ON CONFLICT DO NOTHING and updates are guarded by WHERE version = $n,
  so a RETURNING row of None means another writer got there first
- every call is bounded by a timeout; connection trouble and timeouts are
  raised as StoreUnavailable so the caller can retry the whole operation
"""

import asyncio
import inspect
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import asyncpg

from ..config.database_config import create_database_pool
from ..sources.exceptions import StoreUnavailable, TransactionConflict
from .base import DEFAULT_MAX_RETRIES, StateFilter, UpdateFn, check_update
from .models import TriageRecord, TriageState
from . import schema

logger = logging.getLogger(__name__)

# Errors that mean "the backend is not reachable right now"
UNAVAILABLE_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.QueryCanceledError,
)


def _encode_reason(reason) -> Optional[str]:
    return None if reason is None else json.dumps(reason)


def _decode_reason(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


class PostgresStore:
    """asyncpg-backed TriageStore"""

    def __init__(self, pool: asyncpg.Pool, timeout: float = 10.0,
                 max_retries: int = DEFAULT_MAX_RETRIES):
        self.pool = pool
        self.timeout = timeout
        self.max_retries = max_retries
        self.writes = 0

    @classmethod
    async def connect(cls, config: Dict[str, Any], timeout: float = 10.0,
                      max_retries: int = DEFAULT_MAX_RETRIES,
                      create_schema: bool = True) -> "PostgresStore":
        """Create the pool (and the schema) and return a ready store"""
        try:
            pool = await asyncio.wait_for(create_database_pool(config), timeout)
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"❌ Failed to connect to database at {config.get('host')}: {e}")
            raise StoreUnavailable(f"Cannot connect to database: {e}")

        store = cls(pool, timeout=timeout, max_retries=max_retries)
        if create_schema:
            await store.create_schema()
        logger.info(f"✅ Connected to triage store at {config.get('host')}:{config.get('port')}")
        return store

    async def create_schema(self) -> None:
        try:
            async with self.pool.acquire(timeout=self.timeout) as conn:
                async with conn.transaction():
                    for query in schema.SCHEMA_QUERIES:
                        await conn.execute(query, timeout=self.timeout)
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailable(f"Schema creation failed: {e}")
        logger.info(f"📋 Schema ready ({schema.TABLE_NAME})")

    async def close(self) -> None:
        await self.pool.close()
        logger.info("📤 Database pool closed")

    def _row_to_record(self, row) -> TriageRecord:
        return TriageRecord(
            cve_id=row['cve_id'],
            path=row['path'],
            blob_hash=row['blob_hash'],
            commit_hash=row['commit_hash'],
            cve_state=row['cve_state'],
            triage_state=TriageState(row['triage_state']),
            triage_reason=_decode_reason(row['triage_reason']),
            updated_at=row['updated_at'],
        )

    async def _fetchrow(self, query: str, *args):
        try:
            async with self.pool.acquire(timeout=self.timeout) as conn:
                return await conn.fetchrow(query, *args, timeout=self.timeout)
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailable(f"Query failed: {e}", details={'query': query.split()[0]})

    async def _read(self, cve_id: str) -> Tuple[int, Optional[TriageRecord]]:
        row = await self._fetchrow(schema.SELECT_ONE, cve_id)
        if row is None:
            return 0, None
        return row['version'], self._row_to_record(row)

    async def get(self, cve_id: str) -> Optional[TriageRecord]:
        _, record = await self._read(cve_id)
        return record

    async def count(self) -> int:
        row = await self._fetchrow(schema.COUNT_ALL)
        return row[0]

    async def iter_records(self, state_filter: StateFilter = None) -> AsyncIterator[TriageRecord]:
        """Stream records in id order through a server-side cursor"""
        try:
            async with self.pool.acquire(timeout=self.timeout) as conn:
                async with conn.transaction(readonly=True):
                    async for row in conn.cursor(schema.SELECT_ALL, prefetch=500, timeout=self.timeout):
                        record = self._row_to_record(row)
                        if state_filter is None or state_filter(record.triage_state):
                            yield record
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailable(f"Listing records failed: {e}")

    async def list_records(self, state_filter: StateFilter = None) -> List[TriageRecord]:
        return [record async for record in self.iter_records(state_filter)]

    async def run_transaction(self, cve_id: str, update_fn: UpdateFn) -> TriageRecord:
        for attempt in range(1, self.max_retries + 1):
            version, current = await self._read(cve_id)
            snapshot = current if current else TriageRecord(cve_id=cve_id)

            updated = update_fn(snapshot.copy())
            if inspect.isawaitable(updated):
                updated = await updated
            updated = check_update(cve_id, updated)
            if updated is None:
                return snapshot

            values = (
                cve_id,
                updated.path,
                updated.blob_hash,
                updated.commit_hash,
                updated.cve_state,
                updated.triage_state.value,
                _encode_reason(updated.triage_reason),
            )
            if version == 0:
                row = await self._fetchrow(schema.INSERT_RECORD, *values)
            else:
                row = await self._fetchrow(schema.UPDATE_RECORD, *values, version)

            if row is None:
                logger.debug(f"Conflict on {cve_id} (attempt {attempt}/{self.max_retries})")
                continue

            self.writes += 1
            stored = updated.copy()
            stored.updated_at = row['updated_at']
            return stored

        raise TransactionConflict(
            f"Gave up after {self.max_retries} conflicting attempts",
            cve_id=cve_id, attempts=self.max_retries)
