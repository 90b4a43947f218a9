# Config package for the CVE triage engine
from .classification import (
    Classification,
    FalsePositiveSource,
    load_classification,
)
from .database_config import get_database_config, get_database_url, create_database_pool
from .logging_config import setup_logging
from .settings import Settings, get_settings

__all__ = [
    'Classification',
    'FalsePositiveSource',
    'load_classification',
    'get_database_config',
    'get_database_url',
    'create_database_pool',
    'setup_logging',
    'Settings',
    'get_settings',
]
