"""
Tools Module - MCP Tool Implementations

Search tools exposed over MCP.
"""

from transcript_search.tools import search_transcripts
from transcript_search.tools import search_project
from transcript_search.tools import embedding_status

__all__ = [
    "search_transcripts",
    "search_project",
    "embedding_status",
]
