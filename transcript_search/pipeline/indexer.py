"""
Pipeline - Segment Indexer

Embeds freshly transcribed segments in batch and writes them to the store.
"""

import logging
from typing import TYPE_CHECKING, Dict, List

from transcript_search.schemas import Segment
from transcript_search.store.base import BaseSegmentStore

if TYPE_CHECKING:
    from transcript_search.services.embedding_service import EmbeddingClient


logger = logging.getLogger(__name__)


class SegmentIndexer:
    """Attaches embeddings to segments and upserts them."""

    def __init__(self, store: BaseSegmentStore, embedding_client: "EmbeddingClient"):
        self.store = store
        self.embedding_client = embedding_client

    async def index_segments(self, segments: List[Segment]) -> Dict[str, int]:
        """
        Embed and store segments.

        Segments whose embedding failed are stored without one; they stay
        searchable through the keyword path and can be backfilled later.

        Args:
            segments: Segments to (re)index

        Returns:
            Stats dict with indexed and embedded counts
        """
        if not segments:
            return {"indexed": 0, "embedded": 0}

        vectors = await self.embedding_client.embed_batch([s.text for s in segments])

        prepared = [
            segment.model_copy(update={"embedding": vector})
            for segment, vector in zip(segments, vectors)
        ]
        indexed = await self.store.upsert_segments(prepared)
        embedded = sum(1 for v in vectors if v is not None)

        logger.info("Indexed %d segments (%d with embeddings)", indexed, embedded)
        return {"indexed": indexed, "embedded": embedded}
