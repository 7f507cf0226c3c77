"""
Services - Search Service

Query interface of the search core: single-meeting search, project-wide
search and embedding status reporting.
"""

import logging
from datetime import datetime
from typing import Optional

import pydantic

from transcript_search.config import get_settings
from transcript_search.errors import NotFoundError, ValidationError
from transcript_search.pipeline.keyword_scorer import KeywordScorer
from transcript_search.pipeline.ranker import HybridRanker
from transcript_search.schemas import EmbeddingConfig, SearchQuery, SearchResultPage
from transcript_search.services.aggregator import CrossMeetingAggregator
from transcript_search.services.cache_service import CacheService
from transcript_search.services.embedding_service import EmbeddingClient
from transcript_search.store.base import BaseSegmentStore


logger = logging.getLogger(__name__)


class SearchService:
    """
    Hybrid transcript search.

    Usage:
        service = SearchService(store=store)
        page = await service.search("meeting-1", "authentication feature")
        page = await service.search_across_meetings("project-1", "budget", group_by_meeting=False)
    """

    def __init__(
        self,
        settings=None,
        store: Optional[BaseSegmentStore] = None,
        embedding_client: Optional[EmbeddingClient] = None,
        cache: Optional[CacheService] = None,
    ):
        self.settings = settings or get_settings()
        if store is None:
            from transcript_search.store.qdrant_store import QdrantSegmentStore
            store = QdrantSegmentStore(self.settings)
        self.store = store
        self.embedding_client = embedding_client or EmbeddingClient(self.settings)
        self.cache = cache or CacheService(self.settings)
        self.ranker = HybridRanker(
            self.store, self.embedding_client, self.settings, KeywordScorer()
        )
        self.aggregator = CrossMeetingAggregator(self.store, self.ranker, self.settings)

    # ─────────────────────────────────────────────
    #  Query validation
    # ─────────────────────────────────────────────

    def build_query(
        self,
        text: str,
        default_limit: int,
        page: int = 1,
        limit: Optional[int] = None,
        score_threshold: Optional[float] = None,
        speaker: Optional[str] = None,
        person_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        hybrid: bool = True,
        group_by_meeting: bool = True,
    ) -> SearchQuery:
        """
        Validate raw search options into a SearchQuery.

        Raises:
            ValidationError: Empty or too long text, bad pagination or dates
        """
        search = self.settings.search
        if text is None or not str(text).strip():
            raise ValidationError("Search query is required and cannot be empty")
        if len(text) > search.max_query_length:
            raise ValidationError(
                f"Search query cannot exceed {search.max_query_length} characters"
            )
        limit = default_limit if limit is None else limit
        if limit < 1 or limit > search.max_limit:
            raise ValidationError(f"Limit must be between 1 and {search.max_limit}")

        try:
            return SearchQuery(
                text=text,
                page=page,
                limit=limit,
                score_threshold=(
                    search.score_threshold if score_threshold is None else score_threshold
                ),
                speaker=speaker,
                person_id=person_id,
                date_from=date_from,
                date_to=date_to,
                hybrid=hybrid,
                group_by_meeting=group_by_meeting,
            )
        except pydantic.ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ]
            raise ValidationError("Invalid search query", errors=errors) from e

    # ─────────────────────────────────────────────
    #  Search
    # ─────────────────────────────────────────────

    async def search(self, meeting_id: str, query: str, **options) -> SearchResultPage:
        """
        Hybrid search within a single meeting.

        Args:
            meeting_id: Already-authorized meeting
            query: Search text
            **options: page, limit, score_threshold, speaker, person_id, hybrid

        Returns:
            SearchResultPage with a flat ranked list

        Raises:
            ValidationError: Invalid query
            NotFoundError: Meeting does not exist
        """
        search_query = self.build_query(
            query, default_limit=self.settings.search.meeting_limit, **options
        )

        meeting = await self.store.get_meeting(meeting_id)
        if meeting is None:
            raise NotFoundError(f"Meeting {meeting_id} not found")

        cache_key = self.cache.make_key("meeting", meeting_id, search_query)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached.model_copy(deep=True)

        logger.info(
            "Performing meeting search (meeting=%s, query=%r, page=%d, limit=%d)",
            meeting_id, search_query.text[:50], search_query.page, search_query.limit,
        )
        page = await self.ranker.search_meeting(meeting_id, search_query)

        if not page.degraded:
            self.cache.set(cache_key, page.model_copy(deep=True))
        return page

    async def search_across_meetings(self, project_id: str, query: str, **options) -> SearchResultPage:
        """
        Hybrid search across all meetings in a project.

        Args:
            project_id: Already-authorized project
            query: Search text
            **options: page, limit, score_threshold, speaker, person_id,
                date_from, date_to, hybrid, group_by_meeting

        Returns:
            SearchResultPage grouped by meeting or flat, with meetings_searched

        Raises:
            ValidationError: Invalid query
            NotFoundError: Project does not exist
        """
        search_query = self.build_query(
            query, default_limit=self.settings.search.project_limit, **options
        )

        if await self.store.get_project(project_id) is None:
            raise NotFoundError(f"Project {project_id} not found")

        cache_key = self.cache.make_key("project", project_id, search_query)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached.model_copy(deep=True)

        page = await self.aggregator.search_across_meetings(project_id, search_query)

        if not page.degraded:
            self.cache.set(cache_key, page.model_copy(deep=True))
        return page

    # ─────────────────────────────────────────────
    #  Status
    # ─────────────────────────────────────────────

    def is_embedding_enabled(self) -> bool:
        return self.embedding_client.is_enabled()

    def get_embedding_config(self) -> EmbeddingConfig:
        return self.embedding_client.get_config()

    def health_check(self) -> dict:
        """
        Report the state of the search core.

        Returns:
            Dict with status, embedding config and cache stats
        """
        config = self.get_embedding_config()
        return {
            "status": "healthy" if config.enabled else "degraded",
            "embedding": config.model_dump(),
            "cache": self.cache.get_stats(),
        }


_service: Optional[SearchService] = None


def get_search_service() -> SearchService:
    """Process-wide SearchService so the result cache is shared across tool calls."""
    global _service
    if _service is None:
        _service = SearchService()
    return _service
