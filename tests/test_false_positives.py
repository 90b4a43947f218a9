"""Tests for seeding the curated false positives."""

from __future__ import annotations

import pytest

from cve_triage.config.classification import Classification, FalsePositiveSource
from cve_triage.orchestration import SyncEngine, false_positive_items, seed_false_positives
from cve_triage.orchestration.sync_engine import SyncItem
from cve_triage.store import TriageState, states


def _classification(triaged_at: str, reviewed_at: str) -> Classification:
    listed = FalsePositiveSource("triaged-cve-list file", triaged_at)
    reviewed = FalsePositiveSource("internal doc", reviewed_at)
    return Classification(
        covered={"CVE-2020-29243": "GO-2021-0097"},
        false_positives={
            "CVE-2013-2124": listed,
            "CVE-2020-29243": listed,
            "CVE-2021-0005": reviewed,
        },
    )


def test_items_follow_their_source_commit() -> None:
    items = false_positive_items(_classification("a" * 40, "b" * 40))
    assert sorted(items, key=lambda item: item.cve_id) == [
        SyncItem("CVE-2013-2124", "a" * 40),
        SyncItem("CVE-2020-29243", "a" * 40),
        SyncItem("CVE-2021-0005", "b" * 40),
    ]


@pytest.mark.asyncio
async def test_seed_at_source_commits(upstream, reader, mem_store) -> None:
    """Each id is triaged at the commit its source names, not at HEAD."""
    upstream.write_entry("CVE-2013-2124", urls=["https://old.example"])
    upstream.write_entry("CVE-2020-29243", urls=["https://issue.example"])
    first = upstream.commit()
    upstream.write_entry("CVE-2013-2124", urls=["https://new.example"])
    upstream.write_entry("CVE-2021-0005", urls=["https://five.example"])
    second = upstream.commit()

    engine = SyncEngine(reader, mem_store, _classification(first, second))
    result = await seed_false_positives(engine)

    assert result.written == ["CVE-2013-2124", "CVE-2020-29243", "CVE-2021-0005"]

    old = await mem_store.get("CVE-2013-2124")
    assert old.commit_hash == first
    assert old.triage_state is TriageState.FALSE_POSITIVE
    assert old.triage_reason == ["https://old.example"]

    covered = await mem_store.get("CVE-2020-29243")
    assert covered.triage_state is TriageState.HAS_EXISTING_REPORT
    assert covered.triage_reason == "GO-2021-0097"

    false_positives = await mem_store.list_records(states(TriageState.FALSE_POSITIVE))
    assert [r.cve_id for r in false_positives] == ["CVE-2013-2124", "CVE-2021-0005"]

    again = await seed_false_positives(engine)
    assert again.unchanged == result.written
