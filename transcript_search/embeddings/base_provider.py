"""
Embeddings - Base Provider

Abstract base class for embedding providers.
"""

from abc import ABC, abstractmethod
from typing import List

import httpx

from transcript_search.errors import ProviderFatalError, ProviderTransientError


RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class BaseEmbeddingProvider(ABC):
    """Base class for embedding provider implementations."""

    name = "base"

    @abstractmethod
    async def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate one embedding per input text.

        Args:
            texts: Non-empty, pre-truncated texts

        Returns:
            List of vectors, index-aligned with texts

        Raises:
            ProviderTransientError: Rate limit, 5xx, timeout or connection reset
            ProviderFatalError: Any other failure
        """
        pass

    def is_available(self) -> bool:
        """Check if provider is configured."""
        return True


def raise_for_provider_status(response: httpx.Response) -> None:
    """Translate an HTTP error response into the provider error taxonomy."""
    if response.is_success:
        return
    status = response.status_code
    message = f"Embedding provider returned HTTP {status}"
    if status in RETRYABLE_STATUS_CODES or status >= 500:
        raise ProviderTransientError(message, status_code=status)
    raise ProviderFatalError(message, status_code=status)


def parse_openai_embeddings(data: dict, expected: int) -> List[List[float]]:
    """Extract vectors from an OpenAI-style /embeddings response."""
    try:
        items = sorted(data["data"], key=lambda item: item.get("index", 0))
        vectors = [[float(x) for x in item["embedding"]] for item in items]
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderFatalError(f"Malformed embedding response: {e}")

    if len(vectors) != expected:
        raise ProviderFatalError(
            f"Embedding response has {len(vectors)} vectors, expected {expected}"
        )
    return vectors


async def post_embeddings(
    url: str,
    payload: dict,
    headers: dict,
    timeout: float,
    transport: httpx.AsyncBaseTransport = None,
) -> dict:
    """POST an embeddings request, mapping transport failures to provider errors."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException as e:
        raise ProviderTransientError(f"Embedding request timed out: {e!r}")
    except httpx.NetworkError as e:
        raise ProviderTransientError(f"Embedding request network error: {e!r}")
    except httpx.RemoteProtocolError as e:
        raise ProviderTransientError(f"Embedding connection dropped: {e!r}")
    except httpx.HTTPError as e:
        raise ProviderFatalError(f"Embedding request failed: {e!r}")

    raise_for_provider_status(response)

    try:
        return response.json()
    except ValueError as e:
        raise ProviderFatalError(f"Embedding response is not JSON: {e}")
