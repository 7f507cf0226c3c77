"""
MCP Tool - embedding_status

Report whether semantic search is available.
"""

from fastmcp import FastMCP

from transcript_search.services import get_search_service

router = FastMCP("embedding_status")


@router.tool()
async def embedding_status() -> dict:
    """
    Show the embedding provider configuration and search health.

    Returns:
        Status, provider, model, dimensions and cache statistics
    """
    return get_search_service().health_check()
