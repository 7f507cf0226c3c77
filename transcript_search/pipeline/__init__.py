"""
Pipeline Module - Retrieval and Ingestion Stages

Per-meeting ranking:
Query embedding → Candidate retrieval → Keyword rerank → Fusion → Page

Ingestion:
Segments → Embed → Store, plus embedding backfill
"""

from transcript_search.pipeline.keyword_scorer import KeywordScorer
from transcript_search.pipeline.candidates import Candidate, CandidateRetriever
from transcript_search.pipeline.ranker import HybridRanker, RankedMeeting
from transcript_search.pipeline.indexer import SegmentIndexer
from transcript_search.pipeline.backfill import EmbeddingBackfill

__all__ = [
    "KeywordScorer",
    "Candidate",
    "CandidateRetriever",
    "HybridRanker",
    "RankedMeeting",
    "SegmentIndexer",
    "EmbeddingBackfill",
]
