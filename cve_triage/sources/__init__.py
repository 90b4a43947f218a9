"""
Upstream Sources

Everything that touches the upstream cvelist checkout:
- locator: CVE id <-> repository path
- cve_entry: CVE JSON 4.0 parsing
- git_reader: reading entries at a commit and diffing commits
- exceptions: error taxonomy shared by the whole package
"""

from .cve_entry import AffectedProduct, CVEEntry, Reference, parse_cve_entry
from .exceptions import (
    ConfigException,
    IdentifierMismatch,
    ItemException,
    MalformedIdentifier,
    NotFound,
    ReadFailure,
    StoreException,
    StoreUnavailable,
    SyncBatchError,
    TransactionConflict,
    TriageException,
)
from .git_reader import GitEntryReader, blob_hash
from .locator import cve_id_to_path, path_to_cve_id

__all__ = [
    'AffectedProduct',
    'CVEEntry',
    'Reference',
    'parse_cve_entry',
    'ConfigException',
    'IdentifierMismatch',
    'ItemException',
    'MalformedIdentifier',
    'NotFound',
    'ReadFailure',
    'StoreException',
    'StoreUnavailable',
    'SyncBatchError',
    'TransactionConflict',
    'TriageException',
    'GitEntryReader',
    'blob_hash',
    'cve_id_to_path',
    'path_to_cve_id',
]
