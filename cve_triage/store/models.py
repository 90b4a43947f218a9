"""
Triage record model shared by every store backend
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union


class TriageState(Enum):
    """Closed set of triage outcomes"""
    UNCLASSIFIED = "unclassified"
    HAS_EXISTING_REPORT = "has_existing_report"    # A vulnerability report already covers it
    FALSE_POSITIVE = "false_positive"              # Curated as not relevant
    NEEDS_REPORT = "needs_report"                  # Waiting for a report to be written


@dataclass
class TriageRecord:
    """
    One record per CVE id

    triage_reason is the linked report id for HAS_EXISTING_REPORT, the list
    of reference URLs for FALSE_POSITIVE and None otherwise.
    """
    cve_id: str
    path: str = ''
    blob_hash: str = ''
    commit_hash: str = ''
    cve_state: str = ''
    triage_state: TriageState = TriageState.UNCLASSIFIED
    triage_reason: Optional[Union[str, List[str]]] = None
    updated_at: Optional[datetime] = field(default=None, compare=False)

    def copy(self) -> "TriageRecord":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            'cve_id': self.cve_id,
            'path': self.path,
            'blob_hash': self.blob_hash,
            'commit_hash': self.commit_hash,
            'cve_state': self.cve_state,
            'triage_state': self.triage_state.value,
            'triage_reason': self.triage_reason,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
