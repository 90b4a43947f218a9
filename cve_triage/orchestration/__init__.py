from .false_positives import false_positive_items, seed_false_positives
from .sync_engine import ItemFailure, ItemOutcome, SyncEngine, SyncItem, SyncResult

__all__ = [
    'false_positive_items',
    'seed_false_positives',
    'ItemFailure',
    'ItemOutcome',
    'SyncEngine',
    'SyncItem',
    'SyncResult',
]
