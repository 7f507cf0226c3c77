"""
Shared fixtures: settings overrides, segment factories and a scripted
embedding provider.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from transcript_search.config import Settings
from transcript_search.embeddings import BaseEmbeddingProvider
from transcript_search.schemas import Meeting, Project, Segment
from transcript_search.store import InMemorySegmentStore


class FakeEmbeddingProvider(BaseEmbeddingProvider):
    """
    Returns vectors from a text lookup, falling back to `default`.

    `failures` is a list of exceptions raised by successive calls before
    the provider starts answering.
    """

    name = "fake"

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        failures: Optional[list] = None,
        available: bool = True,
    ):
        self.vectors = vectors or {}
        self.default = default if default is not None else [0.0, 0.0, 1.0]
        self.failures = list(failures or [])
        self.available = available
        self.calls: List[List[str]] = []

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.failures:
            raise self.failures.pop(0)
        return [self.vectors.get(t, self.default) for t in texts]

    def is_available(self) -> bool:
        return self.available


def _override(model, updates):
    return model.model_copy(update=updates) if updates else model


@pytest.fixture
def make_settings():
    """Settings with per-section overrides applied by field name."""
    def factory(embedding=None, search=None, cache=None) -> Settings:
        settings = Settings()
        settings.embedding = _override(
            settings.embedding,
            {"enabled": True, "dimensions": 3, "retry_delay_seconds": 0.0, **(embedding or {})},
        )
        settings.search = _override(settings.search, search)
        settings.cache = _override(settings.cache, {"enabled": True, **(cache or {})})
        return settings
    return factory


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def fake_provider():
    return FakeEmbeddingProvider


@pytest.fixture
def make_segment():
    def factory(
        segment_id: str,
        text: str,
        meeting_id: str = "m1",
        start: int = 0,
        embedding: Optional[List[float]] = None,
        speaker: str = "Speaker 1",
        person_id: Optional[str] = None,
    ) -> Segment:
        return Segment(
            id=segment_id,
            meeting_id=meeting_id,
            speaker_label=speaker,
            person_id=person_id,
            start_time_ms=start,
            end_time_ms=start + 1000,
            text=text,
            embedding=embedding,
        )
    return factory


@pytest.fixture
def make_meeting():
    def factory(meeting_id: str, project_id: str = "p1", day: int = 1, title: str = "") -> Meeting:
        return Meeting(
            id=meeting_id,
            project_id=project_id,
            title=title or f"Meeting {meeting_id}",
            created_at=datetime(2024, 3, day, 10, 0, tzinfo=timezone.utc),
        )
    return factory


@pytest.fixture
def project():
    return Project(id="p1", name="Platform")


@pytest.fixture
def make_store(project):
    def factory(meetings=(), segments=()) -> InMemorySegmentStore:
        return InMemorySegmentStore(projects=[project], meetings=meetings, segments=segments)
    return factory
