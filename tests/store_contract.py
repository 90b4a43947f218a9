"""
Behaviour every TriageStore backend must show.

Backends subclass StoreContract and provide a ``store`` fixture that yields
an empty store built with max_retries=20.
"""

from __future__ import annotations

import asyncio

import pytest

from cve_triage.sources.exceptions import TransactionConflict
from cve_triage.store import TriageRecord, TriageState, TriageStore, states


def _set_state(state: TriageState, reason=None):
    def update(record: TriageRecord) -> TriageRecord:
        record.triage_state = state
        record.triage_reason = reason
        record.path = f"path/{record.cve_id}"
        return record
    return update


class StoreContract:
    pytestmark = pytest.mark.asyncio

    async def test_satisfies_protocol(self, store) -> None:
        assert isinstance(store, TriageStore)

    async def test_get_missing(self, store) -> None:
        """Absence is None, not an error."""
        assert await store.get("CVE-2021-0001") is None
        assert await store.count() == 0

    async def test_create_from_zero_value(self, store) -> None:
        """update_fn sees the zero record for a new id."""
        seen = []

        def update(record: TriageRecord) -> TriageRecord:
            seen.append(record.copy())
            record.blob_hash = "abc"
            record.commit_hash = "def"
            record.triage_state = TriageState.NEEDS_REPORT
            return record

        written = await store.run_transaction("CVE-2021-0001", update)

        assert seen == [TriageRecord(cve_id="CVE-2021-0001")]
        assert written.blob_hash == "abc"
        assert written.updated_at is not None
        fetched = await store.get("CVE-2021-0001")
        assert fetched == written
        assert await store.count() == 1

    async def test_update_existing(self, store) -> None:
        await store.run_transaction("CVE-2021-0001", _set_state(TriageState.NEEDS_REPORT))
        await store.run_transaction("CVE-2021-0001", _set_state(TriageState.HAS_EXISTING_REPORT, "GO-2021-0001"))

        record = await store.get("CVE-2021-0001")
        assert record.triage_state is TriageState.HAS_EXISTING_REPORT
        assert record.triage_reason == "GO-2021-0001"
        assert await store.count() == 1

    async def test_none_means_no_write(self, store) -> None:
        """Returning None leaves the store untouched."""
        await store.run_transaction("CVE-2021-0001", _set_state(TriageState.NEEDS_REPORT))
        before = await store.get("CVE-2021-0001")

        current = await store.run_transaction("CVE-2021-0001", lambda record: None)
        result = await store.run_transaction("CVE-2021-0002", lambda record: None)

        assert current == before
        assert result == TriageRecord(cve_id="CVE-2021-0002")
        assert await store.get("CVE-2021-0002") is None
        assert (await store.get("CVE-2021-0001")).updated_at == before.updated_at

    async def test_reason_round_trips(self, store) -> None:
        """String and list reasons come back as written."""
        urls = ["https://a.example", "https://b.example"]
        await store.run_transaction("CVE-2021-0001", _set_state(TriageState.FALSE_POSITIVE, urls))
        await store.run_transaction("CVE-2021-0002", _set_state(TriageState.HAS_EXISTING_REPORT, "GO-2021-0002"))
        await store.run_transaction("CVE-2021-0003", _set_state(TriageState.NEEDS_REPORT))

        assert (await store.get("CVE-2021-0001")).triage_reason == urls
        assert (await store.get("CVE-2021-0002")).triage_reason == "GO-2021-0002"
        assert (await store.get("CVE-2021-0003")).triage_reason is None

    async def test_list_is_ordered_and_filtered(self, store) -> None:
        for cve_id, state in [
            ("CVE-2021-0003", TriageState.NEEDS_REPORT),
            ("CVE-2020-0009", TriageState.FALSE_POSITIVE),
            ("CVE-2021-0001", TriageState.NEEDS_REPORT),
            ("CVE-2021-0002", TriageState.HAS_EXISTING_REPORT),
        ]:
            await store.run_transaction(cve_id, _set_state(state))

        all_ids = [r.cve_id for r in await store.list_records()]
        assert all_ids == ["CVE-2020-0009", "CVE-2021-0001", "CVE-2021-0002", "CVE-2021-0003"]

        needs = await store.list_records(states(TriageState.NEEDS_REPORT))
        assert [r.cve_id for r in needs] == ["CVE-2021-0001", "CVE-2021-0003"]

        streamed = [r.cve_id async for r in store.iter_records(
            states(TriageState.FALSE_POSITIVE, TriageState.HAS_EXISTING_REPORT))]
        assert streamed == ["CVE-2020-0009", "CVE-2021-0002"]

    async def test_returned_records_are_copies(self, store) -> None:
        """Mutating a returned record does not touch the stored one."""
        written = await store.run_transaction(
            "CVE-2021-0001", _set_state(TriageState.FALSE_POSITIVE, ["https://a.example"]))
        written.triage_reason.append("https://evil.example")

        fetched = await store.get("CVE-2021-0001")
        fetched.triage_state = TriageState.NEEDS_REPORT
        fetched.triage_reason.append("https://evil.example")

        again = await store.get("CVE-2021-0001")
        assert again.triage_state is TriageState.FALSE_POSITIVE
        assert again.triage_reason == ["https://a.example"]

    async def test_concurrent_increments_serialize(self, store) -> None:
        """Concurrent read-modify-write transactions lose no updates."""

        async def increment(record: TriageRecord) -> TriageRecord:
            value = int(record.triage_reason or 0)
            await asyncio.sleep(0)
            record.triage_reason = str(value + 1)
            return record

        await asyncio.gather(*(store.run_transaction("CVE-2021-0001", increment) for _ in range(10)))

        assert (await store.get("CVE-2021-0001")).triage_reason == "10"

    async def test_changing_id_is_rejected(self, store) -> None:
        def update(record: TriageRecord) -> TriageRecord:
            record.cve_id = "CVE-2021-9999"
            return record

        with pytest.raises(ValueError):
            await store.run_transaction("CVE-2021-0001", update)
        assert await store.count() == 0

    async def test_conflicts_exhaust_retries(self, store) -> None:
        """A writer that always loses the race gives up with TransactionConflict."""
        calls = 0

        async def compete(record: TriageRecord) -> TriageRecord:
            nonlocal calls
            calls += 1
            await store.run_transaction("CVE-2021-0001", _set_state(TriageState.NEEDS_REPORT, str(calls)))
            record.triage_state = TriageState.FALSE_POSITIVE
            return record

        with pytest.raises(TransactionConflict) as excinfo:
            await store.run_transaction("CVE-2021-0001", compete)

        assert excinfo.value.cve_id == "CVE-2021-0001"
        assert calls == excinfo.value.attempts
        record = await store.get("CVE-2021-0001")
        assert record.triage_state is TriageState.NEEDS_REPORT
