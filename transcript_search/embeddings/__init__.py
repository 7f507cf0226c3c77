"""
Embeddings Module - Provider Abstraction Layer

Supports OpenAI, LM Studio and local fastembed providers.
"""

from transcript_search.embeddings.base_provider import BaseEmbeddingProvider
from transcript_search.embeddings.openai_provider import OpenAIEmbeddingProvider
from transcript_search.embeddings.lm_studio_provider import LMStudioEmbeddingProvider
from transcript_search.embeddings.fastembed_provider import FastEmbedProvider

__all__ = [
    "BaseEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "LMStudioEmbeddingProvider",
    "FastEmbedProvider",
    "get_provider",
]


def get_provider(settings=None) -> BaseEmbeddingProvider:
    """Factory function to get configured embedding provider."""
    from transcript_search.config import get_settings
    settings = settings or get_settings()

    if settings.embedding.provider == "openai":
        return OpenAIEmbeddingProvider(settings)
    elif settings.embedding.provider == "lm_studio":
        return LMStudioEmbeddingProvider(settings)
    elif settings.embedding.provider == "fastembed":
        return FastEmbedProvider(settings)
    else:
        raise ValueError(f"Unknown embedding provider: {settings.embedding.provider}")
