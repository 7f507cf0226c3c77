"""
Transcript Search - Errors

Error taxonomy shared by the search core and its callers.
"""

from typing import Any, Dict, List, Optional


class SearchError(Exception):
    """Base class for errors surfaced by the search core."""

    status_code = 500

    def __init__(self, message: str = "Search failed"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "status": self.status_code}


class ValidationError(SearchError):
    """Invalid query text or pagination bounds."""

    status_code = 422

    def __init__(self, message: str = "Validation failed", errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class NotFoundError(SearchError):
    """Referenced meeting or project does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class SegmentStoreError(SearchError):
    """Segment store is unreachable or returned unusable data."""

    status_code = 503

    def __init__(self, message: str = "Segment store unavailable"):
        super().__init__(message)


class ProviderError(Exception):
    """Embedding provider failure. Never escapes the embedding client."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderTransientError(ProviderError):
    """Rate limit, 5xx or network failure; worth retrying."""


class ProviderFatalError(ProviderError):
    """Malformed request, auth failure or unusable response; not retried."""
