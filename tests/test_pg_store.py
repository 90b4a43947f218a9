"""
PostgreSQL store against the shared store contract.

The contract runs only when TEST_DATABASE_URL points at a scratch database;
the table is truncated before each test.
"""

from __future__ import annotations

import os

import pytest
import pytest_asyncio

from cve_triage.config.database_config import get_database_config
from cve_triage.config.settings import Settings
from cve_triage.sources.exceptions import StoreUnavailable
from cve_triage.store import PostgresStore
from cve_triage.store import schema

from store_contract import StoreContract

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


@pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set")
class TestPostgresStore(StoreContract):

    @pytest_asyncio.fixture
    async def store(self):
        config = get_database_config(Settings(DATABASE_URL=TEST_DATABASE_URL, DB_POOL_SIZE=12))
        store = await PostgresStore.connect(config, max_retries=20)
        async with store.pool.acquire() as conn:
            await conn.execute(f"TRUNCATE {schema.TABLE_NAME}")
        yield store
        await store.close()


@pytest.mark.asyncio
async def test_unreachable_database() -> None:
    """A closed port surfaces as StoreUnavailable within the timeout."""
    config = get_database_config(Settings(DATABASE_URL="postgresql://triage@127.0.0.1:1/triage"))
    with pytest.raises(StoreUnavailable):
        await PostgresStore.connect(config, timeout=5.0)
