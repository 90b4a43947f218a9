"""
Record Store

Keyed, transactional collection of triage records with two interchangeable
backends:
- MemStore: process-lifetime, for tests and dry runs
- PostgresStore: durable, asyncpg on PostgreSQL

Both satisfy the TriageStore protocol in base.py.
"""

from .base import TriageStore, states
from .factory import create_store
from .mem_store import MemStore
from .models import TriageRecord, TriageState
from .pg_store import PostgresStore

__all__ = [
    'TriageStore',
    'states',
    'create_store',
    'MemStore',
    'PostgresStore',
    'TriageRecord',
    'TriageState',
]
