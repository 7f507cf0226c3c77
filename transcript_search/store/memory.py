"""
Store - In-Memory Segment Store

Dictionary-backed store for tests and for embedding the search core in
processes that already hold transcripts in memory.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from transcript_search.schemas import Meeting, Project, Segment, SegmentFilters
from transcript_search.store.base import BaseSegmentStore, as_utc, in_date_range


class InMemorySegmentStore(BaseSegmentStore):
    """Holds projects, meetings and segments in plain dicts."""

    def __init__(
        self,
        projects: Iterable[Project] = (),
        meetings: Iterable[Meeting] = (),
        segments: Iterable[Segment] = (),
    ):
        self._projects: Dict[str, Project] = {p.id: p for p in projects}
        self._meetings: Dict[str, Meeting] = {m.id: m for m in meetings}
        self._segments: Dict[str, Segment] = {s.id: s for s in segments}

    async def upsert_project(self, project: Project) -> None:
        self._projects[project.id] = project

    async def upsert_meeting(self, meeting: Meeting) -> None:
        self._meetings[meeting.id] = meeting

    async def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        return self._meetings.get(meeting_id)

    async def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    async def list_meetings(
        self,
        project_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Meeting]:
        meetings = [
            m for m in self._meetings.values()
            if m.project_id == project_id and in_date_range(m.created_at, date_from, date_to)
        ]
        return sorted(meetings, key=lambda m: (as_utc(m.created_at), m.id))

    async def list_segments(
        self,
        meeting_id: str,
        filters: Optional[SegmentFilters] = None,
    ) -> List[Segment]:
        segments = [
            s for s in self._segments.values()
            if s.meeting_id == meeting_id and (filters is None or filters.matches(s))
        ]
        return sorted(segments, key=lambda s: (s.start_time_ms, s.id))

    async def upsert_segments(self, segments: List[Segment]) -> int:
        for segment in segments:
            self._segments[segment.id] = segment
        return len(segments)

    async def update_embeddings(self, embeddings: Dict[str, List[float]]) -> int:
        updated = 0
        for segment_id, vector in embeddings.items():
            segment = self._segments.get(segment_id)
            if segment is None:
                continue
            self._segments[segment_id] = segment.model_copy(update={"embedding": vector})
            updated += 1
        return updated

    async def list_segments_for_backfill(
        self,
        meeting_id: Optional[str] = None,
        missing_only: bool = True,
        limit: Optional[int] = None,
    ) -> List[Segment]:
        segments = [
            s for s in sorted(self._segments.values(), key=lambda s: (s.meeting_id, s.start_time_ms, s.id))
            if (meeting_id is None or s.meeting_id == meeting_id)
            and (not missing_only or s.embedding is None)
        ]
        return segments[:limit] if limit is not None else segments
