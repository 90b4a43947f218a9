"""
Triage Engine

Pure decision function from a parsed entry and the classification lists to a
triage state plus evidence. First match wins:

1. covered by an existing report  -> HAS_EXISTING_REPORT, reason = report id
2. curated false positive         -> FALSE_POSITIVE, reason = reference URLs
3. anything else                  -> NEEDS_REPORT

A covered id that is also a historical false positive resolves to
HAS_EXISTING_REPORT.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from .config.classification import Classification
from .sources.cve_entry import CVEEntry
from .store.models import TriageState

TriageReason = Optional[Union[str, List[str]]]


@dataclass(frozen=True)
class TriageDecision:
    state: TriageState
    reason: TriageReason = None


def triage(entry: CVEEntry, classification: Classification) -> TriageDecision:
    report_id = classification.covered.get(entry.cve_id)
    if report_id:
        return TriageDecision(TriageState.HAS_EXISTING_REPORT, report_id)
    if entry.cve_id in classification.false_positives:
        return TriageDecision(TriageState.FALSE_POSITIVE, entry.reference_urls)
    return TriageDecision(TriageState.NEEDS_REPORT)
