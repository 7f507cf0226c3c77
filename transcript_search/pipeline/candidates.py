"""
Pipeline - Candidate Retriever

Stage 1 of per-meeting retrieval: rank a meeting's segments by cosine
similarity to the query vector and keep an over-fetched candidate pool.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from transcript_search.config import get_settings
from transcript_search.pipeline.keyword_scorer import KeywordScorer
from transcript_search.schemas import Segment, SegmentFilters
from transcript_search.store.base import BaseSegmentStore


@dataclass
class Candidate:
    """A provisional match and its vector score (None outside the vector path)."""
    segment: Segment
    vector_score: Optional[float] = None
    keyword_score: Optional[float] = None


def cosine_scores(query_vector: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of each matrix row to the query, mapped to [0, 1].

    Returns (1 + cos) / 2, clipped; zero-norm rows score 0.
    """
    query = np.asarray(query_vector, dtype=np.float32)
    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)
    if query_norm == 0:
        return np.zeros(len(matrix), dtype=np.float32)

    denom = np.where(row_norms == 0, 1.0, row_norms) * query_norm
    cosine = (matrix @ query) / denom
    scores = np.clip((1.0 + cosine) / 2.0, 0.0, 1.0)
    return np.where(row_norms == 0, 0.0, scores)


class CandidateRetriever:
    """Vector candidate generation over one meeting's segments."""

    def __init__(self, store: BaseSegmentStore, settings=None, keyword_scorer: Optional[KeywordScorer] = None):
        self.settings = settings or get_settings()
        self.store = store
        self.floor = self.settings.search.candidate_floor
        self.keyword_scorer = keyword_scorer or KeywordScorer()

    async def retrieve_candidates(
        self,
        meeting_id: str,
        query_vector: Optional[List[float]],
        candidate_limit: int,
        filters: Optional[SegmentFilters] = None,
        segments: Optional[List[Segment]] = None,
    ) -> List[Candidate]:
        """
        Top segments of a meeting by vector similarity.

        Args:
            meeting_id: Meeting to search
            query_vector: Query embedding, or None to skip this stage
            candidate_limit: Pool size (larger than the requested page)
            filters: Optional speaker/person filters
            segments: Already-loaded segments of the meeting; read from the
                store when omitted

        Returns:
            Candidates ordered by descending vector score
        """
        if query_vector is None:
            return []
        if segments is None:
            segments = await self.store.list_segments(meeting_id, filters)
        return self.rank_by_vector(segments, query_vector, candidate_limit)

    def rank_by_vector(
        self,
        segments: List[Segment],
        query_vector: List[float],
        candidate_limit: int,
    ) -> List[Candidate]:
        """Score embedded segments, drop those under the floor, keep the best."""
        dims = len(query_vector)
        embedded = [
            s for s in segments
            if s.embedding is not None and len(s.embedding) == dims
        ]
        if not embedded or candidate_limit <= 0:
            return []

        matrix = np.array([s.embedding for s in embedded], dtype=np.float32)
        scores = cosine_scores(query_vector, matrix)

        candidates = [
            Candidate(segment=segment, vector_score=float(score))
            for segment, score in zip(embedded, scores)
            if score > 0 and score >= self.floor
        ]
        candidates.sort(key=lambda c: (-c.vector_score, c.segment.start_time_ms, c.segment.id))
        return candidates[:candidate_limit]

    def keyword_candidates(
        self,
        segments: List[Segment],
        query_text: str,
        candidate_limit: int,
    ) -> List[Candidate]:
        """
        Keyword-path pool: segments with any term overlap, best first.

        Used alone when there is no query vector, and for segments the
        vector path cannot see (no usable embedding).
        """
        scored = []
        for segment in segments:
            keyword_score = self.keyword_scorer.score(query_text, segment.text)
            if keyword_score > 0:
                scored.append((keyword_score, segment))
        scored.sort(key=lambda item: (-item[0], item[1].start_time_ms, item[1].id))
        return [
            Candidate(segment=segment, keyword_score=keyword_score)
            for keyword_score, segment in scored[:candidate_limit]
        ]
