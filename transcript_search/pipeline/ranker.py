"""
Pipeline - Hybrid Ranker

Per-meeting two-stage retrieval: vector candidates, keyword rerank,
weighted score fusion, threshold, deterministic sort and pagination.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from transcript_search.config import get_settings
from transcript_search.pipeline.candidates import Candidate, CandidateRetriever
from transcript_search.pipeline.keyword_scorer import KeywordScorer
from transcript_search.schemas import Pagination, ScoredResult, SearchQuery, SearchResultPage
from transcript_search.store.base import BaseSegmentStore

if TYPE_CHECKING:
    from transcript_search.services.embedding_service import EmbeddingClient


logger = logging.getLogger(__name__)


@dataclass
class RankedMeeting:
    """Full ranked result list of one meeting (before pagination)."""
    meeting_id: str
    results: List[ScoredResult] = field(default_factory=list)
    total: int = 0


class HybridRanker:
    """
    Ranks one meeting's segments against a query.

    combined = (vector_weight * vector + keyword_weight * keyword)
               / (vector_weight + keyword_weight)
    when both scores exist, otherwise whichever score is available.
    """

    def __init__(
        self,
        store: BaseSegmentStore,
        embedding_client: "EmbeddingClient",
        settings=None,
        keyword_scorer: Optional[KeywordScorer] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.embedding_client = embedding_client
        self.keyword_scorer = keyword_scorer or KeywordScorer()
        self.retriever = CandidateRetriever(store, self.settings, self.keyword_scorer)

        search = self.settings.search
        self.vector_weight = search.vector_weight
        self.keyword_weight = search.keyword_weight
        self.candidate_multiplier = search.candidate_multiplier
        self.max_candidates = search.max_candidates
        self.query_embed_timeout = search.query_embed_timeout_ms / 1000

    def fuse(self, vector_score: Optional[float], keyword_score: float) -> float:
        """Weighted fusion of the two signals, clipped to [0, 1]."""
        if vector_score is None:
            combined = keyword_score
        else:
            combined = (
                self.vector_weight * vector_score + self.keyword_weight * keyword_score
            ) / (self.vector_weight + self.keyword_weight)
        return min(1.0, max(0.0, combined))

    def candidate_limit(self, query: SearchQuery) -> int:
        """
        Over-fetched pool size, derived from the page size only.

        Every page of one query slices the same ranked pool, so pages never
        overlap and the reported total is the same on each of them.
        """
        return max(query.limit, min(self.max_candidates, query.limit * self.candidate_multiplier))

    async def embed_query(self, query: SearchQuery) -> Tuple[Optional[List[float]], bool]:
        """
        Embed the query text for the vector path.

        Returns:
            (vector or None, degraded) where degraded means hybrid ranking
            was requested but no vector is available
        """
        if not query.hybrid:
            return None, False
        if not self.embedding_client.is_enabled():
            return None, True

        try:
            vector = await asyncio.wait_for(
                self.embedding_client.embed(query.text),
                timeout=self.query_embed_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Query embedding exceeded %.1fs, falling back to keyword-only",
                self.query_embed_timeout,
            )
            vector = None

        if vector is None:
            logger.warning("No query embedding available, using keyword-only ranking")
            return None, True
        return vector, False

    async def rank_meeting(
        self,
        meeting_id: str,
        query: SearchQuery,
        query_vector: Optional[List[float]],
    ) -> RankedMeeting:
        """
        Score, filter and sort every qualifying segment of a meeting.

        Args:
            meeting_id: Meeting to rank
            query: Validated query
            query_vector: Query embedding or None for keyword-only

        Returns:
            RankedMeeting with the full ordered list
        """
        filters = query.filters
        segments = await self.store.list_segments(meeting_id, filters)
        if not segments:
            return RankedMeeting(meeting_id=meeting_id)

        limit = self.candidate_limit(query)
        pool: List[Candidate]
        if query_vector is not None:
            pool = await self.retriever.retrieve_candidates(
                meeting_id, query_vector, limit, filters, segments=segments
            )
            dims = len(query_vector)
            unembedded = [
                s for s in segments
                if s.embedding is None or len(s.embedding) != dims
            ]
            pool += self.retriever.keyword_candidates(unembedded, query.text, limit)
        else:
            pool = self.retriever.keyword_candidates(segments, query.text, limit)

        results = []
        for candidate in pool:
            segment = candidate.segment
            keyword_score = candidate.keyword_score
            if keyword_score is None:
                keyword_score = self.keyword_scorer.score(query.text, segment.text)
            combined = self.fuse(candidate.vector_score, keyword_score)

            if combined < query.score_threshold:
                continue
            if not filters.matches(segment):
                continue

            results.append(ScoredResult(
                segment=segment,
                vector_score=candidate.vector_score,
                keyword_score=keyword_score,
                combined_score=combined,
            ))

        results.sort(key=ScoredResult.sort_key)

        logger.debug(
            "Ranked meeting %s (segments=%d, candidates=%d, results=%d)",
            meeting_id, len(segments), len(pool), len(results),
        )
        return RankedMeeting(meeting_id=meeting_id, results=results, total=len(results))

    async def search_meeting(
        self,
        meeting_id: str,
        query: SearchQuery,
    ) -> SearchResultPage:
        """Run the full per-meeting pipeline and return one page."""
        query_vector, degraded = await self.embed_query(query)
        ranked = await self.rank_meeting(meeting_id, query, query_vector)

        page = ranked.results[query.offset:query.offset + query.limit]
        strategy = "hybrid" if query_vector is not None else "keyword-only"

        logger.info(
            "Meeting search completed (meeting=%s, total=%d, returned=%d, strategy=%s)",
            meeting_id, ranked.total, len(page), strategy,
        )

        return SearchResultPage(
            results=page,
            pagination=Pagination(page=query.page, limit=query.limit, total=ranked.total),
            strategy=strategy,
            degraded=degraded,
        )
