"""Live collection synchronization."""

from .live import LiveCollectionSync, SubscriptionHandle, SyncState, SyncStatus
from .sources import CollectionSource, InMemoryCollectionSource, MutationCollaborator

__all__ = [
    "CollectionSource",
    "InMemoryCollectionSource",
    "LiveCollectionSync",
    "MutationCollaborator",
    "SubscriptionHandle",
    "SyncState",
    "SyncStatus",
]
