"""
Transcript Search - Configuration

Pydantic Settings for all configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, model_validator
from typing import Optional, Literal
from pathlib import Path


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration."""
    enabled: bool = Field(
        True,
        validation_alias=AliasChoices("EMBEDDING_ENABLED", "VECTOR_SEARCH_ENABLED"),
    )
    provider: Literal["openai", "lm_studio", "fastembed"] = Field(
        "openai", alias="EMBEDDING_PROVIDER"
    )
    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("EMBEDDING_API_KEY", "OPENAI_API_KEY"),
    )
    base_url: str = Field("https://api.openai.com/v1", alias="EMBEDDING_BASE_URL")
    model: str = Field("text-embedding-3-small", alias="EMBEDDING_MODEL")
    dimensions: int = Field(1536, ge=1, alias="EMBEDDING_DIMENSIONS")
    timeout_ms: int = Field(10000, ge=1, alias="EMBEDDING_TIMEOUT_MS")
    max_retries: int = Field(3, ge=1, alias="EMBEDDING_MAX_RETRIES")
    retry_delay_seconds: float = Field(1.0, ge=0.0, alias="EMBEDDING_RETRY_DELAY_SECONDS")
    batch_size: int = Field(100, ge=1, le=2048, alias="EMBEDDING_BATCH_SIZE")
    max_input_chars: int = Field(8000, ge=1, alias="EMBEDDING_MAX_INPUT_CHARS")
    cache_dir: Path = Field(
        Path("./models_cache"), alias="MODELS_CACHE_DIR"
    )

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


class SearchSettings(BaseSettings):
    """Ranking and fan-out configuration."""
    vector_weight: float = Field(0.6, ge=0.0, alias="SEARCH_VECTOR_WEIGHT")
    keyword_weight: float = Field(0.4, ge=0.0, alias="SEARCH_KEYWORD_WEIGHT")
    score_threshold: float = Field(0.7, ge=0.0, le=1.0, alias="SEARCH_SCORE_THRESHOLD")
    meeting_limit: int = Field(50, ge=1, alias="SEARCH_MEETING_LIMIT")
    project_limit: int = Field(20, ge=1, alias="SEARCH_PROJECT_LIMIT")
    max_limit: int = Field(100, ge=1, alias="SEARCH_MAX_LIMIT")
    max_query_length: int = Field(200, ge=1, alias="SEARCH_MAX_QUERY_LENGTH")
    candidate_multiplier: int = Field(5, ge=1, alias="SEARCH_CANDIDATE_MULTIPLIER")
    max_candidates: int = Field(1000, ge=1, alias="SEARCH_MAX_CANDIDATES")
    candidate_floor: float = Field(0.5, ge=0.0, le=1.0, alias="SEARCH_CANDIDATE_FLOOR")
    concurrency: int = Field(8, ge=1, alias="SEARCH_CONCURRENCY")
    query_embed_timeout_ms: int = Field(10000, ge=1, alias="SEARCH_QUERY_EMBED_TIMEOUT_MS")

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def _check_weights(self) -> "SearchSettings":
        if self.vector_weight + self.keyword_weight <= 0:
            raise ValueError("SEARCH_VECTOR_WEIGHT + SEARCH_KEYWORD_WEIGHT must be positive")
        return self


class QdrantSettings(BaseSettings):
    """Qdrant segment store configuration."""
    host: str = Field("localhost", alias="QDRANT_HOST")
    port: int = Field(6333, alias="QDRANT_PORT")
    collection: str = Field("transcript_segments", alias="QDRANT_COLLECTION")
    api_key: Optional[str] = Field(None, alias="QDRANT_API_KEY")

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


class MCPSettings(BaseSettings):
    """MCP server configuration."""
    transport: Literal["sse", "stdio"] = Field("sse", alias="MCP_TRANSPORT")
    port: int = Field(8080, alias="MCP_PORT")
    host: str = Field("0.0.0.0", alias="MCP_HOST")

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


class CacheSettings(BaseSettings):
    """Search result caching configuration."""
    enabled: bool = Field(True, alias="CACHE_ENABLED")
    ttl_query: int = Field(300, alias="CACHE_TTL_QUERY_SECONDS")
    max_entries: int = Field(1000, ge=1, alias="CACHE_MAX_ENTRIES")

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()
