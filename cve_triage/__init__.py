"""
CVE Triage Synchronization Engine

Walks the history of a local cvelist checkout, triages every new or changed
CVE entry against curated classification lists, and commits the decision to
a transactional record store so repeated runs never redo unchanged work.

Key Components:
- sources: content locator, entry parsing, git reader, error taxonomy
- triage: pure triage decision function
- store: TriageStore protocol with MemStore and PostgresStore backends
- orchestration: SyncEngine and false-positive seeding
- config: settings, database config, classification lists, logging
"""

from .config import Classification, Settings, get_settings, load_classification, setup_logging
from .orchestration import SyncEngine, SyncItem, SyncResult, seed_false_positives
from .sources import GitEntryReader, cve_id_to_path
from .store import MemStore, PostgresStore, TriageRecord, TriageState, create_store
from .triage import TriageDecision, triage

__all__ = [
    'Classification',
    'Settings',
    'get_settings',
    'load_classification',
    'setup_logging',
    'SyncEngine',
    'SyncItem',
    'SyncResult',
    'seed_false_positives',
    'GitEntryReader',
    'cve_id_to_path',
    'MemStore',
    'PostgresStore',
    'TriageRecord',
    'TriageState',
    'create_store',
    'TriageDecision',
    'triage',
]

__version__ = '1.0.0'
