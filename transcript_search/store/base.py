"""
Store - Base Segment Store

Abstract async interface over meetings and their transcript segments.
The search path only reads; writes exist for indexing and backfill.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from transcript_search.schemas import Meeting, Project, Segment, SegmentFilters


class BaseSegmentStore(ABC):
    """Base class for segment store implementations."""

    @abstractmethod
    async def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        pass

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    async def list_meetings(
        self,
        project_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Meeting]:
        """
        List the meetings of a project.

        Args:
            project_id: Owning project
            date_from: Inclusive lower bound on created_at
            date_to: Inclusive upper bound on created_at

        Returns:
            Meetings ordered by created_at, then id
        """
        pass

    @abstractmethod
    async def list_segments(
        self,
        meeting_id: str,
        filters: Optional[SegmentFilters] = None,
    ) -> List[Segment]:
        """
        List the segments of one meeting, embeddings included.

        Args:
            meeting_id: Meeting to read
            filters: Optional exact-match speaker/person filters

        Returns:
            Segments ordered by start time
        """
        pass

    @abstractmethod
    async def upsert_project(self, project: Project) -> None:
        pass

    @abstractmethod
    async def upsert_meeting(self, meeting: Meeting) -> None:
        pass

    @abstractmethod
    async def upsert_segments(self, segments: List[Segment]) -> int:
        pass

    @abstractmethod
    async def update_embeddings(self, embeddings: Dict[str, List[float]]) -> int:
        pass

    @abstractmethod
    async def list_segments_for_backfill(
        self,
        meeting_id: Optional[str] = None,
        missing_only: bool = True,
        limit: Optional[int] = None,
    ) -> List[Segment]:
        pass


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed inputs compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def in_date_range(
    created_at: datetime,
    date_from: Optional[datetime],
    date_to: Optional[datetime],
) -> bool:
    """Inclusive created_at range check."""
    created_at = as_utc(created_at)
    if date_from is not None and created_at < as_utc(date_from):
        return False
    if date_to is not None and created_at > as_utc(date_to):
        return False
    return True
