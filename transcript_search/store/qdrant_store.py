"""
Store - Qdrant Segment Store

Segments live in a Qdrant collection with a named cosine "dense" vector;
meetings and projects are payload-only points in sibling collections.
"""

import hashlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    PointVectors,
    VectorParams,
)

from transcript_search.config import get_settings
from transcript_search.errors import SegmentStoreError
from transcript_search.schemas import Meeting, Project, Segment, SegmentFilters
from transcript_search.store.base import BaseSegmentStore, as_utc, in_date_range


logger = logging.getLogger(__name__)

VECTOR_NAME = "dense"
SCROLL_PAGE_SIZE = 256


class QdrantSegmentStore(BaseSegmentStore):
    """Reads and writes transcript segments in Qdrant."""

    def __init__(self, settings=None, client: Optional[AsyncQdrantClient] = None):
        self.settings = settings or get_settings()
        self.collection = self.settings.qdrant.collection
        self.meetings_collection = f"{self.collection}_meetings"
        self.projects_collection = f"{self.collection}_projects"
        self.dimensions = self.settings.embedding.dimensions
        self._client = client

    @property
    def client(self) -> AsyncQdrantClient:
        """Lazy load Qdrant client."""
        if self._client is None:
            self._client = AsyncQdrantClient(
                host=self.settings.qdrant.host,
                port=self.settings.qdrant.port,
                api_key=self.settings.qdrant.api_key,
            )
        return self._client

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except (UnexpectedResponse, ResponseHandlingException) as e:
            logger.error("Qdrant %s failed: %s", operation, e)
            raise SegmentStoreError(f"Segment store {operation} failed: {e}") from e

    @staticmethod
    def _point_id(key: str) -> int:
        """Generate deterministic int64 point ID from a string id."""
        return int(hashlib.sha256(key.encode()).hexdigest()[:15], 16)

    # ─────────────────────────────────────────────
    #  Schema
    # ─────────────────────────────────────────────

    async def ensure_collections(self) -> None:
        """Create collections and payload indexes if they don't exist."""
        async with self._guard("ensure_collections"):
            if not await self.client.collection_exists(self.collection):
                await self.client.create_collection(
                    collection_name=self.collection,
                    vectors_config={
                        VECTOR_NAME: VectorParams(
                            size=self.dimensions,
                            distance=Distance.COSINE,
                        )
                    },
                )
                for field, schema in [
                    ("meeting_id", PayloadSchemaType.KEYWORD),
                    ("speaker_label", PayloadSchemaType.KEYWORD),
                    ("person_id", PayloadSchemaType.KEYWORD),
                    ("has_embedding", PayloadSchemaType.BOOL),
                ]:
                    await self.client.create_payload_index(
                        collection_name=self.collection,
                        field_name=field,
                        field_schema=schema,
                    )

            for name in (self.meetings_collection, self.projects_collection):
                if not await self.client.collection_exists(name):
                    await self.client.create_collection(
                        collection_name=name,
                        vectors_config={},
                    )
                    if name == self.meetings_collection:
                        await self.client.create_payload_index(
                            collection_name=name,
                            field_name="project_id",
                            field_schema=PayloadSchemaType.KEYWORD,
                        )

    # ─────────────────────────────────────────────
    #  Payload mapping
    # ─────────────────────────────────────────────

    @staticmethod
    def _segment_payload(segment: Segment) -> Dict[str, Any]:
        return {
            "segment_id": segment.id,
            "meeting_id": segment.meeting_id,
            "speaker_label": segment.speaker_label,
            "person_id": segment.person_id,
            "start_time_ms": segment.start_time_ms,
            "end_time_ms": segment.end_time_ms,
            "text": segment.text,
            "confidence": segment.confidence,
            "has_embedding": segment.embedding is not None,
        }

    @staticmethod
    def _to_segment(point) -> Segment:
        payload = point.payload or {}
        vector = None
        if isinstance(point.vector, dict):
            vector = point.vector.get(VECTOR_NAME)
        return Segment(
            id=payload["segment_id"],
            meeting_id=payload["meeting_id"],
            speaker_label=payload.get("speaker_label") or "",
            person_id=payload.get("person_id"),
            start_time_ms=payload["start_time_ms"],
            end_time_ms=payload["end_time_ms"],
            text=payload["text"],
            embedding=list(vector) if vector else None,
            confidence=payload.get("confidence", 1.0),
        )

    @staticmethod
    def _to_meeting(payload: Dict[str, Any]) -> Meeting:
        return Meeting(
            id=payload["meeting_id"],
            project_id=payload["project_id"],
            user_id=payload.get("user_id"),
            title=payload.get("title", ""),
            created_at=datetime.fromisoformat(payload["created_at"]),
        )

    async def _scroll(self, collection: str, scroll_filter: Optional[Filter], with_vectors: bool, limit: Optional[int] = None):
        points = []
        offset = None
        while True:
            batch, offset = await self.client.scroll(
                collection_name=collection,
                scroll_filter=scroll_filter,
                limit=SCROLL_PAGE_SIZE,
                offset=offset,
                with_payload=True,
                with_vectors=[VECTOR_NAME] if with_vectors else False,
            )
            points.extend(batch)
            if offset is None or (limit is not None and len(points) >= limit):
                break
        return points[:limit] if limit is not None else points

    # ─────────────────────────────────────────────
    #  Reads
    # ─────────────────────────────────────────────

    async def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        async with self._guard("get_meeting"):
            points = await self.client.retrieve(
                collection_name=self.meetings_collection,
                ids=[self._point_id(meeting_id)],
                with_payload=True,
            )
        return self._to_meeting(points[0].payload) if points else None

    async def get_project(self, project_id: str) -> Optional[Project]:
        async with self._guard("get_project"):
            points = await self.client.retrieve(
                collection_name=self.projects_collection,
                ids=[self._point_id(project_id)],
                with_payload=True,
            )
        if not points:
            return None
        payload = points[0].payload or {}
        return Project(
            id=payload["project_id"],
            user_id=payload.get("user_id"),
            name=payload.get("name", ""),
        )

    async def list_meetings(
        self,
        project_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Meeting]:
        async with self._guard("list_meetings"):
            points = await self._scroll(
                self.meetings_collection,
                Filter(must=[FieldCondition(key="project_id", match=MatchValue(value=project_id))]),
                with_vectors=False,
            )
        meetings = [
            m for m in (self._to_meeting(p.payload) for p in points)
            if in_date_range(m.created_at, date_from, date_to)
        ]
        return sorted(meetings, key=lambda m: (as_utc(m.created_at), m.id))

    async def list_segments(
        self,
        meeting_id: str,
        filters: Optional[SegmentFilters] = None,
    ) -> List[Segment]:
        conditions = [FieldCondition(key="meeting_id", match=MatchValue(value=meeting_id))]
        if filters is not None and filters.speaker_label is not None:
            conditions.append(
                FieldCondition(key="speaker_label", match=MatchValue(value=filters.speaker_label))
            )
        if filters is not None and filters.person_id is not None:
            conditions.append(
                FieldCondition(key="person_id", match=MatchValue(value=filters.person_id))
            )

        async with self._guard("list_segments"):
            points = await self._scroll(self.collection, Filter(must=conditions), with_vectors=True)

        segments = [self._to_segment(p) for p in points]
        return sorted(segments, key=lambda s: (s.start_time_ms, s.id))

    async def list_segments_for_backfill(
        self,
        meeting_id: Optional[str] = None,
        missing_only: bool = True,
        limit: Optional[int] = None,
    ) -> List[Segment]:
        conditions = []
        if meeting_id is not None:
            conditions.append(FieldCondition(key="meeting_id", match=MatchValue(value=meeting_id)))
        if missing_only:
            conditions.append(FieldCondition(key="has_embedding", match=MatchValue(value=False)))

        async with self._guard("list_segments_for_backfill"):
            points = await self._scroll(
                self.collection,
                Filter(must=conditions) if conditions else None,
                with_vectors=True,
                limit=limit,
            )
        return [self._to_segment(p) for p in points]

    # ─────────────────────────────────────────────
    #  Writes (indexing and backfill only)
    # ─────────────────────────────────────────────

    async def upsert_project(self, project: Project) -> None:
        async with self._guard("upsert_project"):
            await self.client.upsert(
                collection_name=self.projects_collection,
                points=[PointStruct(
                    id=self._point_id(project.id),
                    vector={},
                    payload={"project_id": project.id, "user_id": project.user_id, "name": project.name},
                )],
            )

    async def upsert_meeting(self, meeting: Meeting) -> None:
        async with self._guard("upsert_meeting"):
            await self.client.upsert(
                collection_name=self.meetings_collection,
                points=[PointStruct(
                    id=self._point_id(meeting.id),
                    vector={},
                    payload={
                        "meeting_id": meeting.id,
                        "project_id": meeting.project_id,
                        "user_id": meeting.user_id,
                        "title": meeting.title,
                        "created_at": meeting.created_at.isoformat(),
                    },
                )],
            )

    async def upsert_segments(self, segments: List[Segment]) -> int:
        if not segments:
            return 0
        points = [
            PointStruct(
                id=self._point_id(s.id),
                vector={VECTOR_NAME: s.embedding} if s.embedding is not None else {},
                payload=self._segment_payload(s),
            )
            for s in segments
        ]
        async with self._guard("upsert_segments"):
            await self.client.upsert(collection_name=self.collection, points=points)
        return len(points)

    async def update_embeddings(self, embeddings: Dict[str, List[float]]) -> int:
        if not embeddings:
            return 0
        ids = [self._point_id(segment_id) for segment_id in embeddings]
        async with self._guard("update_embeddings"):
            await self.client.update_vectors(
                collection_name=self.collection,
                points=[
                    PointVectors(id=point_id, vector={VECTOR_NAME: vector})
                    for point_id, vector in zip(ids, embeddings.values())
                ],
            )
            await self.client.set_payload(
                collection_name=self.collection,
                payload={"has_embedding": True},
                points=ids,
            )
        return len(ids)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
