"""
Schemas - Segment Models

Pydantic models for transcript segments and the meetings that own them.
"""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime


class Segment(BaseModel):
    """A single transcribed utterance."""
    id: str
    meeting_id: str
    speaker_label: str = ""
    person_id: Optional[str] = None
    start_time_ms: int = Field(ge=0)
    end_time_ms: int = Field(ge=0)
    text: str
    embedding: Optional[List[float]] = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_times(self) -> "Segment":
        if self.end_time_ms < self.start_time_ms:
            raise ValueError("end_time_ms must not precede start_time_ms")
        return self


class Meeting(BaseModel):
    """Meeting metadata used for scoping, date filters and grouping."""
    id: str
    project_id: str
    user_id: Optional[str] = None
    title: str = ""
    created_at: datetime


class Project(BaseModel):
    """Project that owns a set of meetings."""
    id: str
    user_id: Optional[str] = None
    name: str = ""


class SegmentFilters(BaseModel):
    """Exact-match filters on segment attribution."""
    speaker_label: Optional[str] = None
    person_id: Optional[str] = None

    def matches(self, segment: Segment) -> bool:
        if self.speaker_label is not None and segment.speaker_label != self.speaker_label:
            return False
        if self.person_id is not None and segment.person_id != self.person_id:
            return False
        return True

    def is_empty(self) -> bool:
        return self.speaker_label is None and self.person_id is None
