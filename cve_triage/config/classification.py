"""
Classification Inputs

The static lists the triage engine decides with:
- covered: CVE id -> id of the vulnerability report that already covers it
- false_positives: CVE id -> where and at which upstream commit it was marked

They are plain data handed to the engine, never module-level state. The
bundled data/classification.json holds the historically curated lists.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from ..sources.exceptions import ConfigException

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFICATION_FILE = Path(__file__).resolve().parent.parent / "data" / "classification.json"


class FalsePositiveSourceModel(BaseModel):
    source: str
    commit: str
    ids: List[str]


class ClassificationFileModel(BaseModel):
    false_positive_sources: List[FalsePositiveSourceModel] = []
    covered: Dict[str, str] = {}


@dataclass(frozen=True)
class FalsePositiveSource:
    """Provenance of a false-positive decision"""
    source: str
    commit: str


@dataclass
class Classification:
    covered: Dict[str, str] = field(default_factory=dict)
    false_positives: Dict[str, FalsePositiveSource] = field(default_factory=dict)

    def false_positive_batches(self) -> Dict[FalsePositiveSource, List[str]]:
        """Group false-positive ids by the source that marked them"""
        batches: Dict[FalsePositiveSource, List[str]] = {}
        for cve_id, source in self.false_positives.items():
            batches.setdefault(source, []).append(cve_id)
        for ids in batches.values():
            ids.sort()
        return batches

    @classmethod
    def from_model(cls, model: ClassificationFileModel) -> "Classification":
        false_positives = {}
        for source_model in model.false_positive_sources:
            provenance = FalsePositiveSource(source=source_model.source, commit=source_model.commit)
            for cve_id in source_model.ids:
                # First source to list an id keeps it
                false_positives.setdefault(cve_id, provenance)
        return cls(covered=dict(model.covered), false_positives=false_positives)


def load_classification(path: Optional[Union[str, Path]] = None) -> Classification:
    """
    Load classification lists from a JSON file

    Args:
        path: JSON file; the bundled lists are used when omitted

    Raises:
        ConfigException: If the file is missing or does not validate
    """
    path = Path(path) if path else DEFAULT_CLASSIFICATION_FILE
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        model = ClassificationFileModel.model_validate(data)
    except FileNotFoundError:
        raise ConfigException(f"Classification file not found: {path}",
                              config_key='CLASSIFICATION_FILE')
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigException(f"Invalid classification file {path}: {e}",
                              config_key='CLASSIFICATION_FILE')

    classification = Classification.from_model(model)
    logger.info(f"📋 Loaded {len(classification.false_positives):,} false positives and "
                f"{len(classification.covered):,} covered ids from {path}")
    return classification
