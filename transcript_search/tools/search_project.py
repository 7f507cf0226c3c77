"""
MCP Tool - search_project

Hybrid search across every meeting in a project.
"""

from fastmcp import FastMCP
from typing import Optional

from transcript_search.errors import SearchError
from transcript_search.services import get_search_service
from transcript_search.tools.search_transcripts import serialize_page

router = FastMCP("search_project")


@router.tool()
async def search_project(
    project_id: str,
    query: str,
    page: int = 1,
    limit: Optional[int] = None,
    score_threshold: Optional[float] = None,
    speaker: Optional[str] = None,
    person_id: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    hybrid: bool = True,
    group_by_meeting: bool = True,
) -> dict:
    """
    Search all meetings of a project.

    Args:
        project_id: Project whose meetings are searched
        query: Search text (at most SEARCH_MAX_QUERY_LENGTH characters)
        page: Page number, starting at 1
        limit: Results per page (default SEARCH_PROJECT_LIMIT, at most SEARCH_MAX_LIMIT)
        score_threshold: Minimum combined score (0-1, default 0.7)
        speaker: Only segments with this speaker label
        person_id: Only segments attributed to this person
        date_from: ISO date, meetings created on or after
        date_to: ISO date, meetings created on or before
        hybrid: Set false for keyword-only search
        group_by_meeting: Group results under their meeting

    Returns:
        Results grouped by meeting (or flat), pagination and meetings_searched
    """
    service = get_search_service()

    try:
        result = await service.search_across_meetings(
            project_id,
            query,
            page=page,
            limit=limit,
            score_threshold=score_threshold,
            speaker=speaker,
            person_id=person_id,
            date_from=date_from,
            date_to=date_to,
            hybrid=hybrid,
            group_by_meeting=group_by_meeting,
        )
    except SearchError as e:
        return e.to_dict()

    return serialize_page(result)
