"""
Pipeline - Run Pipeline

CLI entry point for indexing transcript exports and backfilling embeddings.
"""

import asyncio
import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from transcript_search.config import get_settings
from transcript_search.pipeline.backfill import EmbeddingBackfill
from transcript_search.pipeline.indexer import SegmentIndexer
from transcript_search.schemas import Meeting, Project, Segment
from transcript_search.services.embedding_service import EmbeddingClient
from transcript_search.store.base import BaseSegmentStore


logger = logging.getLogger(__name__)


class PipelineRunner:
    """Orchestrates indexing and backfill against the configured store."""

    def __init__(
        self,
        settings=None,
        store: Optional[BaseSegmentStore] = None,
        embedding_client: Optional[EmbeddingClient] = None,
    ):
        self.settings = settings or get_settings()
        if store is None:
            from transcript_search.store.qdrant_store import QdrantSegmentStore
            store = QdrantSegmentStore(self.settings)
        self.store = store
        self.embedding_client = embedding_client or EmbeddingClient(self.settings)
        self.indexer = SegmentIndexer(self.store, self.embedding_client)
        self.backfill = EmbeddingBackfill(self.store, self.embedding_client)

    async def _ensure_schema(self) -> None:
        ensure = getattr(self.store, "ensure_collections", None)
        if ensure is not None:
            await ensure()

    async def run_index(self, export: dict) -> dict:
        """
        Index a transcript export.

        Args:
            export: {"projects": [...], "meetings": [...], "segments": [...]}

        Returns:
            Statistics dict
        """
        await self._ensure_schema()

        projects = [Project.model_validate(p) for p in export.get("projects", [])]
        meetings = [Meeting.model_validate(m) for m in export.get("meetings", [])]
        segments = [Segment.model_validate(s) for s in export.get("segments", [])]

        logger.info(
            "Indexing export (projects=%d, meetings=%d, segments=%d)",
            len(projects), len(meetings), len(segments),
        )

        for project in projects:
            await self.store.upsert_project(project)
        for meeting in meetings:
            await self.store.upsert_meeting(meeting)

        stats = {"projects": len(projects), "meetings": len(meetings), "indexed": 0, "embedded": 0}
        batch_size = self.settings.embedding.batch_size
        for start in range(0, len(segments), batch_size):
            result = await self.indexer.index_segments(segments[start:start + batch_size])
            stats["indexed"] += result["indexed"]
            stats["embedded"] += result["embedded"]

        logger.info("Indexing complete: %s", stats)
        return stats

    async def run_backfill(
        self,
        meeting_id: Optional[str] = None,
        batch_size: int = 100,
        limit: Optional[int] = None,
        skip_existing: bool = True,
        dry_run: bool = False,
    ) -> dict:
        """Backfill embeddings; refuses to run when embeddings are disabled."""
        if not self.embedding_client.is_enabled():
            raise RuntimeError(
                "Embedding generation is disabled. Configure EMBEDDING_API_KEY or EMBEDDING_PROVIDER."
            )
        logger.info("Embedding provider: %s", self.embedding_client.get_config().model_dump())
        return await self.backfill.run(
            meeting_id=meeting_id,
            batch_size=batch_size,
            limit=limit,
            skip_existing=skip_existing,
            dry_run=dry_run,
        )


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Transcript Search Data Pipeline")
    parser.add_argument(
        "--index",
        type=Path,
        help="Index a JSON export of projects, meetings and segments",
    )
    parser.add_argument(
        "--backfill",
        action="store_true",
        help="Generate embeddings for stored segments",
    )
    parser.add_argument(
        "--meeting-id",
        type=str,
        help="Only backfill this meeting",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=100,
        help="Segments per backfill batch (default: 100)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum segments to backfill",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Re-embed segments that already have an embedding",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be processed without writing",
    )

    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log.level)
    runner = PipelineRunner(settings)

    if args.index:
        export = json.loads(args.index.read_text(encoding="utf-8"))
        print(asyncio.run(runner.run_index(export)))
    elif args.backfill:
        result = asyncio.run(runner.run_backfill(
            meeting_id=args.meeting_id,
            batch_size=args.batch_size,
            limit=args.limit,
            skip_existing=not args.all,
            dry_run=args.dry_run,
        ))
        print(result)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
