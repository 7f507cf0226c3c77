"""
Embeddings - FastEmbed Provider

Local dense embeddings using fastembed, no network involved.
"""

import asyncio
from typing import List

from transcript_search.embeddings.base_provider import BaseEmbeddingProvider
from transcript_search.errors import ProviderFatalError
from transcript_search.config import get_settings


class FastEmbedProvider(BaseEmbeddingProvider):
    """Runs a fastembed TextEmbedding model in a worker thread."""

    name = "fastembed"

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._model = None

    @property
    def model(self):
        """Lazy load dense embedding model."""
        if self._model is None:
            from fastembed import TextEmbedding
            self._model = TextEmbedding(
                model_name=self.settings.embedding.model,
                cache_dir=str(self.settings.embedding.cache_dir),
            )
        return self._model

    def _embed_sync(self, texts: List[str]) -> List[List[float]]:
        return [emb.tolist() for emb in self.model.embed(texts)]

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Generate dense embeddings off the event loop."""
        try:
            return await asyncio.to_thread(self._embed_sync, texts)
        except (ValueError, RuntimeError, OSError) as e:
            raise ProviderFatalError(f"fastembed failed: {e}")

    def is_available(self) -> bool:
        """Check if fastembed is importable."""
        try:
            import fastembed  # noqa: F401
        except ImportError:
            return False
        return True
