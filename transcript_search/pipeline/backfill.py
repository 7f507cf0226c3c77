"""
Pipeline - Embedding Backfill

Generates embeddings for stored segments that were indexed without one
(provider outage, embeddings enabled later, model change).
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from transcript_search.store.base import BaseSegmentStore

if TYPE_CHECKING:
    from transcript_search.services.embedding_service import EmbeddingClient


logger = logging.getLogger(__name__)


class EmbeddingBackfill:
    """Batch re-embedding of stored segments."""

    def __init__(self, store: BaseSegmentStore, embedding_client: "EmbeddingClient"):
        self.store = store
        self.embedding_client = embedding_client

    async def run(
        self,
        meeting_id: Optional[str] = None,
        batch_size: int = 100,
        limit: Optional[int] = None,
        skip_existing: bool = True,
        dry_run: bool = False,
    ) -> dict:
        """
        Backfill embeddings.

        Args:
            meeting_id: Only process this meeting
            batch_size: Segments per embedding/update round
            limit: Maximum total segments to process
            skip_existing: Only segments without an embedding
            dry_run: Count what would be processed without writing

        Returns:
            Statistics dict
        """
        stats = {
            "total": 0,
            "processed": 0,
            "skipped": 0,
            "failed": 0,
            "start_time": datetime.now(timezone.utc).isoformat(),
        }

        segments = await self.store.list_segments_for_backfill(
            meeting_id=meeting_id,
            missing_only=skip_existing,
            limit=limit,
        )
        stats["total"] = len(segments)

        logger.info(
            "Starting embedding backfill (segments=%d, meeting=%s, batch_size=%d, dry_run=%s)",
            len(segments), meeting_id, batch_size, dry_run,
        )

        if dry_run or not segments:
            stats["skipped"] = len(segments) if dry_run else 0
            stats["end_time"] = datetime.now(timezone.utc).isoformat()
            return stats

        for start in range(0, len(segments), batch_size):
            batch = segments[start:start + batch_size]
            vectors = await self.embedding_client.embed_batch([s.text for s in batch])

            updates = {}
            for segment, vector in zip(batch, vectors):
                if vector is None:
                    if segment.text.strip():
                        stats["failed"] += 1
                    else:
                        stats["skipped"] += 1
                    continue
                updates[segment.id] = vector

            stats["processed"] += await self.store.update_embeddings(updates)

            logger.info(
                "Backfill progress %d/%d (failed=%d)",
                min(start + batch_size, len(segments)), len(segments), stats["failed"],
            )

        stats["end_time"] = datetime.now(timezone.utc).isoformat()
        logger.info("Backfill complete: %s", stats)
        return stats
