"""Shared fixtures."""

from __future__ import annotations

import pytest

from cve_triage.config.classification import Classification, FalsePositiveSource
from cve_triage.sources.git_reader import GitEntryReader
from cve_triage.store.mem_store import MemStore

from upstream import UpstreamRepo


@pytest.fixture
def upstream(tmp_path) -> UpstreamRepo:
    """Empty upstream repository."""
    return UpstreamRepo(tmp_path / "cvelist.git")


@pytest.fixture
def reader(upstream: UpstreamRepo) -> GitEntryReader:
    """Reader over the upstream fixture."""
    return GitEntryReader(upstream.repo)


@pytest.fixture
def mem_store() -> MemStore:
    """Fresh in-memory store."""
    return MemStore(max_retries=20)


@pytest.fixture
def classification() -> Classification:
    """Small classification lists mirroring the historical data."""
    provenance = FalsePositiveSource(source="triaged-cve-list file", commit="0" * 40)
    return Classification(
        covered={"CVE-2020-29243": "GO-2021-0097", "CVE-2020-15112": "GO-2020-0005"},
        false_positives={
            "CVE-2013-2124": provenance,
            "CVE-2020-29243": provenance,
        },
    )
