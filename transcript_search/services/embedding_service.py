"""
Services - Embedding Client

Wraps an embedding provider with input normalization, batching and
retry with exponential backoff. Failures degrade to None so search can
fall back to keyword-only ranking.
"""

import asyncio
import logging
from typing import List, Optional

from transcript_search.config import get_settings
from transcript_search.embeddings import BaseEmbeddingProvider, get_provider
from transcript_search.errors import ProviderError, ProviderTransientError
from transcript_search.schemas import EmbeddingConfig


logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS]


class EmbeddingClient:
    """
    Embedding generation that never raises.

    Every entry point returns None (or a list with None entries) when the
    provider is disabled, the input is blank, or the provider keeps failing.
    """

    def __init__(self, settings=None, provider: Optional[BaseEmbeddingProvider] = None):
        self.settings = settings or get_settings()
        cfg = self.settings.embedding
        self.provider_name = cfg.provider
        self.model = cfg.model
        self.dimensions = cfg.dimensions
        self.max_retries = cfg.max_retries
        self.retry_delay = cfg.retry_delay_seconds
        self.batch_size = cfg.batch_size
        self.max_input_chars = cfg.max_input_chars

        self.enabled = cfg.enabled
        self.provider = None
        if self.enabled:
            self.provider = provider or get_provider(self.settings)
            if not self.provider.is_available():
                logger.warning(
                    "Embedding provider %s not configured, embedding generation disabled",
                    self.provider_name,
                )
                self.enabled = False
            else:
                logger.info(
                    "Embedding client initialized (provider=%s, model=%s, dimensions=%d)",
                    self.provider_name, self.model, self.dimensions,
                )

    def is_enabled(self) -> bool:
        """Check if embedding generation is enabled and configured."""
        return self.enabled

    def get_config(self) -> EmbeddingConfig:
        """Get embedding configuration info."""
        return EmbeddingConfig(
            provider=self.provider_name,
            model=self.model,
            dimensions=self.dimensions,
            enabled=self.enabled,
        )

    def _normalize(self, text: Optional[str]) -> Optional[str]:
        if not text or not text.strip():
            return None
        return text[:self.max_input_chars]

    async def embed(self, text: str) -> Optional[List[float]]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector, or None when disabled, blank or failed
        """
        if not self.enabled:
            logger.debug("Embedding generation disabled, skipping")
            return None

        normalized = self._normalize(text)
        if normalized is None:
            logger.warning("Empty text provided for embedding generation")
            return None

        vectors = await self._embed_chunk([normalized])
        vector = vectors[0] if vectors else None
        if vector is None:
            logger.error("Failed to generate embedding (preview=%r)", _preview(text))
        return vector

    async def embed_batch(self, texts: List[str]) -> List[Optional[List[float]]]:
        """
        Generate embeddings for multiple texts.

        Texts are sent in chunks of at most batch_size; a failing chunk only
        nulls out its own items.

        Args:
            texts: Texts to embed

        Returns:
            List index-aligned with texts; None for blank or failed items
        """
        if not texts:
            return []

        result: List[Optional[List[float]]] = [None] * len(texts)

        if not self.enabled:
            logger.debug("Embedding generation disabled, skipping batch")
            return result

        valid_texts = []
        valid_indices = []
        for i, text in enumerate(texts):
            normalized = self._normalize(text)
            if normalized is not None:
                valid_texts.append(normalized)
                valid_indices.append(i)

        if not valid_texts:
            return result

        total_batches = (len(valid_texts) + self.batch_size - 1) // self.batch_size
        succeeded = 0

        for batch_index, start in enumerate(range(0, len(valid_texts), self.batch_size)):
            chunk = valid_texts[start:start + self.batch_size]
            chunk_indices = valid_indices[start:start + self.batch_size]

            logger.debug(
                "Generating batch embeddings (batch %d/%d, size=%d)",
                batch_index + 1, total_batches, len(chunk),
            )

            vectors = await self._embed_chunk(chunk)
            for original_idx, vector in zip(chunk_indices, vectors):
                result[original_idx] = vector
                if vector is not None:
                    succeeded += 1

        logger.info(
            "Generated batch embeddings (total=%d, successful=%d)",
            len(texts), succeeded,
        )
        return result

    async def _embed_chunk(self, texts: List[str]) -> List[Optional[List[float]]]:
        """One provider call with retries; all-None on failure."""
        try:
            vectors = await self._call_with_retry(texts)
        except ProviderError as e:
            logger.error(
                "Embedding chunk failed (size=%d, status=%s): %s",
                len(texts), e.status_code, e,
            )
            return [None] * len(texts)
        except Exception:
            logger.exception("Unexpected embedding provider failure (size=%d)", len(texts))
            return [None] * len(texts)

        return [self._check_dimensions(v) for v in vectors]

    def _check_dimensions(self, vector: List[float]) -> Optional[List[float]]:
        if len(vector) != self.dimensions:
            logger.warning(
                "Discarding embedding with %d dimensions, expected %d",
                len(vector), self.dimensions,
            )
            return None
        return vector

    async def _call_with_retry(self, texts: List[str]) -> List[List[float]]:
        """Bounded retry loop; delay doubles from retry_delay each attempt."""
        attempt = 1
        while True:
            try:
                return await self.provider.embed(texts)
            except ProviderTransientError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.compute_delay(attempt)
                logger.warning(
                    "Retrying embedding generation (attempt %d/%d, delay=%.1fs, size=%d): %s",
                    attempt, self.max_retries, delay, len(texts), e,
                )
                await asyncio.sleep(delay)
                attempt += 1

    def compute_delay(self, attempt: int) -> float:
        """Backoff before the retry that follows the given attempt."""
        return self.retry_delay * (2 ** (attempt - 1))
