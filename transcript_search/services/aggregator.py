"""
Services - Cross-Meeting Aggregator

Fans the per-meeting pipeline out across a project's meetings with
bounded concurrency, then merges everything into one global page.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from transcript_search.config import get_settings
from transcript_search.errors import NotFoundError
from transcript_search.pipeline.ranker import HybridRanker, RankedMeeting
from transcript_search.schemas import (
    Meeting,
    MeetingGroup,
    Pagination,
    ScoredResult,
    SearchQuery,
    SearchResultPage,
)
from transcript_search.store.base import BaseSegmentStore


logger = logging.getLogger(__name__)


class CrossMeetingAggregator:
    """Project-wide search over every meeting the project owns."""

    def __init__(self, store: BaseSegmentStore, ranker: HybridRanker, settings=None):
        self.settings = settings or get_settings()
        self.store = store
        self.ranker = ranker
        self.concurrency = self.settings.search.concurrency

    async def search_across_meetings(
        self,
        project_id: str,
        query: SearchQuery,
    ) -> SearchResultPage:
        """
        Search all meetings of a project.

        Args:
            project_id: Already-authorized project
            query: Validated query (date_from/date_to filter meetings)

        Returns:
            SearchResultPage with global ranking and meetings_searched

        Raises:
            NotFoundError: Project does not exist
        """
        project = await self.store.get_project(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")

        meetings = await self.store.list_meetings(project_id, query.date_from, query.date_to)

        logger.info(
            "Performing cross-meeting search (project=%s, meetings=%d, page=%d, limit=%d, hybrid=%s)",
            project_id, len(meetings), query.page, query.limit, query.hybrid,
        )

        strategy = "keyword-only"
        degraded = False
        ranked: List[RankedMeeting] = []

        if meetings:
            # One query embedding shared by every meeting pipeline
            query_vector, degraded = await self.ranker.embed_query(query)
            if query_vector is not None:
                strategy = "hybrid"
            ranked = await self._fan_out(meetings, query, query_vector)

        merged: List[ScoredResult] = []
        for meeting_result in ranked:
            merged.extend(meeting_result.results)
        merged.sort(key=ScoredResult.sort_key)

        total = sum(r.total for r in ranked)
        page = merged[query.offset:query.offset + query.limit]

        if query.group_by_meeting:
            results = self.group_by_meeting(page, {m.id: m for m in meetings})
        else:
            results = page

        logger.info(
            "Cross-meeting search completed (project=%s, total=%d, returned=%d, strategy=%s)",
            project_id, total, len(page), strategy,
        )

        return SearchResultPage(
            results=results,
            pagination=Pagination(page=query.page, limit=query.limit, total=total),
            meetings_searched=len(meetings),
            strategy=strategy,
            degraded=degraded,
        )

    async def _fan_out(
        self,
        meetings: List[Meeting],
        query: SearchQuery,
        query_vector: Optional[List[float]],
    ) -> List[RankedMeeting]:
        """Run per-meeting pipelines under a semaphore; cancel all on failure."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(meeting: Meeting) -> RankedMeeting:
            # Whole ranked pool per meeting; every page slices the same merge
            async with semaphore:
                return await self.ranker.rank_meeting(meeting.id, query, query_vector)

        tasks = [asyncio.create_task(run(m)) for m in meetings]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    @staticmethod
    def group_by_meeting(
        results: List[ScoredResult],
        meetings: Dict[str, Meeting],
    ) -> Dict[str, MeetingGroup]:
        """
        Group a ranked page by meeting.

        Groups are ordered by their best result; results keep their
        relative rank inside each group.
        """
        grouped: Dict[str, MeetingGroup] = {}
        for result in results:
            meeting_id = result.segment.meeting_id
            group = grouped.get(meeting_id)
            if group is None:
                meeting = meetings.get(meeting_id)
                group = MeetingGroup(
                    meeting_id=meeting_id,
                    meeting_title=meeting.title if meeting else "",
                    meeting_date=meeting.created_at if meeting else None,
                )
                grouped[meeting_id] = group
            group.results.append(result)
            group.match_count += 1
            group.top_score = max(group.top_score, result.combined_score)
        return grouped
