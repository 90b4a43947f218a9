"""
Database Configuration Module

Builds PostgreSQL connection parameters for the durable triage store from
Settings (environment variables / .env) and opens asyncpg pools with them.
"""

from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

import asyncpg

from ..sources.exceptions import ConfigException
from .settings import Settings, get_settings


def get_database_config(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Get database connection parameters

    DATABASE_URL wins over the individual DB_* settings when it is set.

    Returns:
        Dictionary with host, port, database, user, password and pool sizes
    """
    settings = settings or get_settings()

    if settings.DATABASE_URL:
        url = urlparse(settings.DATABASE_URL)
        if url.scheme not in ('postgres', 'postgresql'):
            raise ConfigException(f"Unsupported database URL scheme: {url.scheme}",
                                  config_key='DATABASE_URL')
        config = {
            'host': url.hostname or 'localhost',
            'port': url.port or 5432,
            'database': url.path.lstrip('/'),
            'user': unquote(url.username or ''),
            'password': unquote(url.password or ''),
        }
    else:
        config = {
            'host': settings.DB_HOST,
            'port': settings.DB_PORT,
            'database': settings.DB_NAME,
            'user': settings.DB_USER,
            'password': settings.DB_PASSWORD,
        }

    config['min_connections'] = settings.DB_MIN_CONNECTIONS
    config['max_connections'] = settings.DB_POOL_SIZE
    config['command_timeout'] = settings.STORE_TIMEOUT_SECONDS

    # Validate required fields
    required_fields = ['host', 'port', 'database', 'user']
    missing_fields = [f for f in required_fields if not config.get(f)]
    if missing_fields:
        raise ConfigException(f"Missing required database configuration fields: {missing_fields}",
                              config_key=missing_fields[0])

    return config


def get_database_url(config: Dict[str, Any]) -> str:
    """PostgreSQL connection URL without the password"""
    return f"postgresql://{config['user']}@{config['host']}:{config['port']}/{config['database']}"


async def create_database_pool(config: Dict[str, Any]) -> asyncpg.Pool:
    """
    Create database connection pool

    Args:
        config: Output of get_database_config()

    Returns:
        AsyncPG connection pool
    """
    return await asyncpg.create_pool(
        host=config['host'],
        port=config['port'],
        database=config['database'],
        user=config['user'],
        password=config['password'],
        min_size=config.get('min_connections', 1),
        max_size=config.get('max_connections', 10),
        command_timeout=config.get('command_timeout'),
    )
