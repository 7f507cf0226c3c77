"""
Services Module - Business Logic Layer

Provides embedding generation, cross-meeting aggregation, caching and
the search facade.
"""

from transcript_search.services.embedding_service import EmbeddingClient
from transcript_search.services.cache_service import CacheService
from transcript_search.services.aggregator import CrossMeetingAggregator
from transcript_search.services.search_service import SearchService, get_search_service

__all__ = [
    "EmbeddingClient",
    "CacheService",
    "CrossMeetingAggregator",
    "SearchService",
    "get_search_service",
]
