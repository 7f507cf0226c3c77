"""
Store Module - Segment Stores

Async read access to meetings and segments, plus writes for indexing.
"""

from transcript_search.store.base import BaseSegmentStore
from transcript_search.store.memory import InMemorySegmentStore
from transcript_search.store.qdrant_store import QdrantSegmentStore

__all__ = [
    "BaseSegmentStore",
    "InMemorySegmentStore",
    "QdrantSegmentStore",
]
