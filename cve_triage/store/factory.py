"""
Store factory: picks the backend named by STORE_BACKEND
"""

import logging
from typing import Optional

from ..config.database_config import get_database_config
from ..config.settings import Settings, get_settings
from ..sources.exceptions import ConfigException
from .base import TriageStore
from .mem_store import MemStore
from .pg_store import PostgresStore

logger = logging.getLogger(__name__)


async def create_store(settings: Optional[Settings] = None) -> TriageStore:
    settings = settings or get_settings()
    backend = settings.STORE_BACKEND.lower()

    if backend == 'memory':
        logger.info("🧪 Using in-memory triage store (records are not persisted)")
        return MemStore(max_retries=settings.TRANSACTION_MAX_RETRIES)
    if backend in ('postgres', 'postgresql'):
        return await PostgresStore.connect(
            get_database_config(settings),
            timeout=settings.STORE_TIMEOUT_SECONDS,
            max_retries=settings.TRANSACTION_MAX_RETRIES,
        )

    raise ConfigException(f"Unknown store backend: {settings.STORE_BACKEND}",
                          config_key='STORE_BACKEND')
