"""
Schemas Module - Pydantic Models

Data models for segments, meetings, queries and result pages.
"""

from transcript_search.schemas.segment import Segment, Meeting, Project, SegmentFilters
from transcript_search.schemas.search import (
    SearchQuery,
    ScoredResult,
    MeetingGroup,
    Pagination,
    SearchResultPage,
    EmbeddingConfig,
)

__all__ = [
    "Segment",
    "Meeting",
    "Project",
    "SegmentFilters",
    "SearchQuery",
    "ScoredResult",
    "MeetingGroup",
    "Pagination",
    "SearchResultPage",
    "EmbeddingConfig",
]
