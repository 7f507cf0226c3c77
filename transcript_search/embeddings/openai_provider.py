"""
Embeddings - OpenAI Provider

OpenAI (and Azure-compatible) embeddings over HTTPS.
"""

from typing import List
import httpx

from transcript_search.embeddings.base_provider import (
    BaseEmbeddingProvider,
    parse_openai_embeddings,
    post_embeddings,
)
from transcript_search.config import get_settings


class OpenAIEmbeddingProvider(BaseEmbeddingProvider):
    """OpenAI embeddings provider."""

    name = "openai"

    def __init__(self, settings=None, transport: httpx.AsyncBaseTransport = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.embedding.base_url.rstrip("/")
        self.api_key = self.settings.embedding.api_key
        self.model = self.settings.embedding.model
        self.dimensions = self.settings.embedding.dimensions
        self.timeout = self.settings.embedding.timeout_ms / 1000
        self._transport = transport

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings using the OpenAI API."""
        url = f"{self.base_url}/embeddings"

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.model,
            "input": texts,
            "dimensions": self.dimensions,
        }

        data = await post_embeddings(url, payload, headers, self.timeout, self._transport)
        return parse_openai_embeddings(data, len(texts))

    def is_available(self) -> bool:
        """Check if API key is configured."""
        return bool(self.api_key)
