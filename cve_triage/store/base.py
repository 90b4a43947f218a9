"""
Record Store Contract

Every backend (MemStore, PostgresStore) satisfies this protocol
structurally; there is no shared base class. The same contract test
suite runs against each one.

RULES:
- get() returns None for an unknown id, it never raises for absence
- list_records() is ordered by cve_id ascending
- run_transaction() is the only mutation path: read, apply update_fn,
  compare-and-swap, retry on conflict up to a bound, then TransactionConflict
- update_fn returning None means "no write"
- backend trouble surfaces as StoreUnavailable, never as a hang
"""

from typing import (AsyncIterator, Awaitable, Callable, List, Optional,
                    Protocol, Union, runtime_checkable)

from .models import TriageRecord, TriageState

UpdateResult = Optional[TriageRecord]
UpdateFn = Callable[[TriageRecord], Union[UpdateResult, Awaitable[UpdateResult]]]
StateFilter = Optional[Callable[[TriageState], bool]]

DEFAULT_MAX_RETRIES = 10


@runtime_checkable
class TriageStore(Protocol):

    async def get(self, cve_id: str) -> Optional[TriageRecord]:
        ...

    async def list_records(self, state_filter: StateFilter = None) -> List[TriageRecord]:
        ...

    def iter_records(self, state_filter: StateFilter = None) -> AsyncIterator[TriageRecord]:
        ...

    async def run_transaction(self, cve_id: str, update_fn: UpdateFn) -> TriageRecord:
        ...

    async def count(self) -> int:
        ...

    async def close(self) -> None:
        ...


def states(*wanted: TriageState) -> Callable[[TriageState], bool]:
    """Build a state filter matching any of the given states"""
    wanted_set = frozenset(wanted)
    return lambda state: state in wanted_set


def check_update(cve_id: str, record: UpdateResult) -> UpdateResult:
    """Reject updates that try to move a record to another id"""
    if record is not None and record.cve_id != cve_id:
        raise ValueError(f"update_fn changed cve_id from {cve_id} to {record.cve_id}")
    return record
