"""
False-positive seeding

The curated false-positive lists were each decided against a specific
upstream commit. Seeding syncs every listed id at the commit its source
names, so the stored records carry the commit they were triaged at and
later syncs only rewrite them when the entry actually changed.

Ids that are also covered by a report still come out as
HAS_EXISTING_REPORT: seeding goes through the normal triage path.
"""

import logging
from typing import List

from ..config.classification import Classification
from .sync_engine import SyncEngine, SyncItem, SyncResult

logger = logging.getLogger(__name__)


def false_positive_items(classification: Classification) -> List[SyncItem]:
    """One SyncItem per false-positive id, at the commit of its source"""
    items = []
    for source, cve_ids in classification.false_positive_batches().items():
        logger.info(f"📋 {len(cve_ids):,} false positives from '{source.source}' "
                    f"at {source.commit[:12]}")
        items.extend(SyncItem(cve_id, source.commit) for cve_id in cve_ids)
    return items


async def seed_false_positives(engine: SyncEngine) -> SyncResult:
    """Sync the engine's false-positive ids at their source commits"""
    return await engine.sync(false_positive_items(engine.classification))
