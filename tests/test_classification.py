"""Tests for loading the classification lists."""

from __future__ import annotations

import json

import pytest

from cve_triage.config.classification import (Classification, FalsePositiveSource,
                                              load_classification)
from cve_triage.sources.exceptions import ConfigException


def test_bundled_lists() -> None:
    """The bundled file carries the historical lists and their commits."""
    classification = load_classification()

    assert classification.covered["CVE-2020-29243"] == "GO-2021-0097"
    assert classification.covered["CVE-2020-15112"] == "GO-2020-0005"

    provenance = classification.false_positives["CVE-2013-2124"]
    assert provenance.source == "triaged-cve-list file"
    assert provenance.commit == "17294f1a2af61a2a2df52ac89cbd7c516f0c4e6a"

    commits = {source.commit for source in classification.false_positive_batches()}
    assert commits == {
        "17294f1a2af61a2a2df52ac89cbd7c516f0c4e6a",
        "f2e420732374f84baa2c4a5b7a84be9ff7e46f88",
    }


def test_first_source_keeps_duplicate_id(tmp_path) -> None:
    """An id listed by two sources keeps the first provenance."""
    path = tmp_path / "lists.json"
    path.write_text(json.dumps({
        "false_positive_sources": [
            {"source": "a", "commit": "1" * 40, "ids": ["CVE-2021-0002", "CVE-2021-0001"]},
            {"source": "b", "commit": "2" * 40, "ids": ["CVE-2021-0001", "CVE-2021-0003"]},
        ],
    }))

    classification = load_classification(path)

    assert classification.covered == {}
    assert classification.false_positives["CVE-2021-0001"].source == "a"
    batches = classification.false_positive_batches()
    assert batches[FalsePositiveSource("a", "1" * 40)] == ["CVE-2021-0001", "CVE-2021-0002"]
    assert batches[FalsePositiveSource("b", "2" * 40)] == ["CVE-2021-0003"]


def test_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigException) as excinfo:
        load_classification(tmp_path / "missing.json")
    assert excinfo.value.config_key == "CLASSIFICATION_FILE"


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps({"covered": ["CVE-2021-0001"]}),
     json.dumps({"false_positive_sources": [{"source": "a"}]})],
)
def test_invalid_file(tmp_path, content: str) -> None:
    """Broken or mis-shaped files raise ConfigException."""
    path = tmp_path / "lists.json"
    path.write_text(content)
    with pytest.raises(ConfigException):
        load_classification(path)


def test_empty_classification_has_no_batches() -> None:
    assert Classification().false_positive_batches() == {}
