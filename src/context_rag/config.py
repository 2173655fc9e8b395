"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for a local server)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat completion model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for the LLM API. Leave empty to use OpenAI cloud. "
            "Set to any OpenAI-compatible endpoint, e.g. 'http://localhost:8001/v1'"
        ),
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_model: str = "text-embedding-ada-002"
    embedding_dimensions: int = Field(default=1536, description="Expected vector length; 0 disables the check")

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "context_documents"

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 250
    text_buffer_limit: int = Field(default=2000, description="Line buffer size for plain-text ingestion")

    # Fetching
    fetch_max_retries: int = 3
    fetch_retry_delay: float = Field(default=1.0, description="Fixed delay in seconds between attempts")
    fetch_timeout: float = 30.0

    # Retrieval
    match_threshold: float = 0.78
    match_count: int = 5

    # Serving
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import `settings` wherever needed.
settings = Settings()
