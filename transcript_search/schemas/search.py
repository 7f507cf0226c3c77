"""
Schemas - Search Models

Pydantic models for search queries, scored results and result pages.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Literal, Optional, Union
from datetime import datetime, timezone

from transcript_search.schemas.segment import Segment, SegmentFilters


class SearchQuery(BaseModel):
    """Validated search request."""
    text: str = Field(min_length=1)
    score_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    speaker: Optional[str] = None
    person_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    hybrid: bool = True
    group_by_meeting: bool = True

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Search query cannot be empty")
        return value

    @field_validator("date_from", "date_to")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_dates(self) -> "SearchQuery":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    @property
    def filters(self) -> SegmentFilters:
        return SegmentFilters(speaker_label=self.speaker, person_id=self.person_id)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ScoredResult(BaseModel):
    """A segment with its component and fused scores."""
    segment: Segment
    vector_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    keyword_score: float = Field(ge=0.0, le=1.0)
    combined_score: float = Field(ge=0.0, le=1.0)

    def sort_key(self):
        """Total order: best score first, earlier utterance on ties."""
        return (
            -self.combined_score,
            self.segment.start_time_ms,
            self.segment.meeting_id,
            self.segment.id,
        )


class MeetingGroup(BaseModel):
    """Results of one meeting inside a cross-meeting page."""
    meeting_id: str
    meeting_title: str = ""
    meeting_date: Optional[datetime] = None
    match_count: int = 0
    top_score: float = 0.0
    results: List[ScoredResult] = []


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


class SearchResultPage(BaseModel):
    """One page of ranked results."""
    results: Union[List[ScoredResult], Dict[str, MeetingGroup]]
    pagination: Pagination
    meetings_searched: Optional[int] = None
    strategy: Literal["hybrid", "keyword-only"] = "hybrid"
    degraded: bool = False

    def flat_results(self) -> List[ScoredResult]:
        """Results in rank order regardless of grouping."""
        if isinstance(self.results, dict):
            merged = [r for group in self.results.values() for r in group.results]
            return sorted(merged, key=ScoredResult.sort_key)
        return list(self.results)


class EmbeddingConfig(BaseModel):
    """Embedding status for health reporting."""
    provider: str
    model: str
    dimensions: int
    enabled: bool
