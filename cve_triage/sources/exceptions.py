"""
Custom Exceptions for the CVE Triage System

Purpose: Standardized error handling across the locator, reader, store and sync engine
Usage: Per-item failures are collected by the sync engine, store failures are retried

Exception Hierarchy:
- TriageException (base)
  ├── ItemException (per-item, batch continues)
  │   ├── MalformedIdentifier
  │   ├── NotFound
  │   ├── IdentifierMismatch
  │   └── ReadFailure
  ├── StoreException (store level, retried)
  │   ├── StoreUnavailable
  │   └── TransactionConflict
  ├── ConfigException
  └── SyncBatchError
"""


class TriageException(Exception):
    """Base exception for all triage operations"""

    def __init__(self, message: str, cve_id: str = None, details: dict = None):
        self.cve_id = cve_id
        self.details = details or {}
        super().__init__(message)

    def __str__(self):
        if self.cve_id:
            return f"[{self.cve_id}] {super().__str__()}"
        return super().__str__()


class ItemException(TriageException):
    """Failure confined to a single identifier"""


class MalformedIdentifier(ItemException):
    """Raised when an identifier is not PREFIX-YEAR-NUMBER"""

    def __init__(self, message: str, cve_id: str = None, **kwargs):
        super().__init__(message, cve_id, kwargs)


class NotFound(ItemException):
    """Raised when a revision or path does not exist upstream"""

    def __init__(self, message: str, cve_id: str = None,
                 commit_ref: str = None, path: str = None, **kwargs):
        self.commit_ref = commit_ref
        self.path = path
        details = {'commit_ref': commit_ref, 'path': path, **kwargs}
        super().__init__(message, cve_id, details)


class IdentifierMismatch(ItemException):
    """Raised when the id embedded in an entry differs from the id implied by its path"""

    def __init__(self, message: str, cve_id: str = None,
                 embedded_id: str = None, path: str = None, **kwargs):
        self.embedded_id = embedded_id
        self.path = path
        details = {'embedded_id': embedded_id, 'path': path, **kwargs}
        super().__init__(message, cve_id, details)


class ReadFailure(ItemException):
    """Raised when an entry cannot be read or decoded"""

    def __init__(self, message: str, cve_id: str = None,
                 path: str = None, raw_data_sample: str = None, **kwargs):
        self.path = path
        self.raw_data_sample = raw_data_sample
        details = {'path': path, 'raw_data_sample': raw_data_sample, **kwargs}
        super().__init__(message, cve_id, details)


class StoreException(TriageException):
    """Failure raised by a record store backend"""


class StoreUnavailable(StoreException):
    """Raised when the backend is unreachable or an operation timed out"""


class TransactionConflict(StoreException):
    """Raised when a transaction kept losing compare-and-swap races"""

    def __init__(self, message: str, cve_id: str = None, attempts: int = None, **kwargs):
        self.attempts = attempts
        details = {'attempts': attempts, **kwargs}
        super().__init__(message, cve_id, details)


class ConfigException(TriageException):
    """Raised when configuration is invalid"""

    def __init__(self, message: str, config_key: str = None, **kwargs):
        self.config_key = config_key
        details = {'config_key': config_key, **kwargs}
        super().__init__(message, None, details)


class SyncBatchError(TriageException):
    """Raised when store errors exhaust their retries; carries the partial result"""

    def __init__(self, message: str, result=None, cause: Exception = None):
        self.result = result
        self.cause = cause
        details = {'cause': repr(cause)} if cause else {}
        super().__init__(message, getattr(cause, 'cve_id', None), details)
