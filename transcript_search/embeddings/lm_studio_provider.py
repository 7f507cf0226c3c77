"""
Embeddings - LM Studio Provider

Local embedding model served through LM Studio's OpenAI-compatible API.
"""

from typing import List
import httpx

from transcript_search.embeddings.base_provider import (
    BaseEmbeddingProvider,
    parse_openai_embeddings,
    post_embeddings,
)
from transcript_search.config import get_settings


class LMStudioEmbeddingProvider(BaseEmbeddingProvider):
    """LM Studio local embeddings provider."""

    name = "lm_studio"

    def __init__(self, settings=None, transport: httpx.AsyncBaseTransport = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.embedding.base_url.rstrip("/")
        self.model = self.settings.embedding.model
        self.timeout = self.settings.embedding.timeout_ms / 1000
        self._transport = transport

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings using LM Studio."""
        url = f"{self.base_url}/embeddings"

        payload = {
            "model": self.model,
            "input": texts,
        }

        data = await post_embeddings(
            url, payload, {"Content-Type": "application/json"}, self.timeout, self._transport
        )
        return parse_openai_embeddings(data, len(texts))

    def is_available(self) -> bool:
        """Check if LM Studio is running."""
        try:
            with httpx.Client(timeout=2.0) as client:
                response = client.get(f"{self.base_url}/models")
                return response.status_code == 200
        except httpx.HTTPError:
            return False
