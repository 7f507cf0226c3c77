"""
MCP Tool - search_transcripts

Hybrid search within a single meeting transcript.
"""

from fastmcp import FastMCP
from typing import Optional

from transcript_search.errors import SearchError
from transcript_search.services import get_search_service

router = FastMCP("search_transcripts")


def serialize_page(page) -> dict:
    """Convert a SearchResultPage into a JSON-friendly dict without raw vectors."""
    data = page.model_dump(mode="json")
    results = data["results"]
    if isinstance(results, dict):
        items = [r for group in results.values() for r in group["results"]]
    else:
        items = results
    for item in items:
        item["segment"].pop("embedding", None)
    return data


@router.tool()
async def search_transcripts(
    meeting_id: str,
    query: str,
    page: int = 1,
    limit: Optional[int] = None,
    score_threshold: Optional[float] = None,
    speaker: Optional[str] = None,
    person_id: Optional[str] = None,
    hybrid: bool = True,
) -> dict:
    """
    Search one meeting's transcript.

    Combines embedding similarity with keyword matching so both
    paraphrases and exact phrases are found.

    Args:
        meeting_id: Meeting to search
        query: Search text (at most SEARCH_MAX_QUERY_LENGTH characters)
        page: Page number, starting at 1
        limit: Results per page (default SEARCH_MEETING_LIMIT, at most SEARCH_MAX_LIMIT)
        score_threshold: Minimum combined score (0-1, default 0.7)
        speaker: Only segments with this speaker label
        person_id: Only segments attributed to this person
        hybrid: Set false for keyword-only search

    Returns:
        Ranked segments with vector, keyword and combined scores
    """
    service = get_search_service()

    try:
        result = await service.search(
            meeting_id,
            query,
            page=page,
            limit=limit,
            score_threshold=score_threshold,
            speaker=speaker,
            person_id=person_id,
            hybrid=hybrid,
        )
    except SearchError as e:
        return e.to_dict()

    return serialize_page(result)
