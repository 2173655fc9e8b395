"""Embedding client — text in, validated dense vector out."""

from __future__ import annotations

import logging

from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from context_rag.config import Settings, settings
from context_rag.errors import DataIntegrityError, UpstreamServiceError

logger = logging.getLogger(__name__)


def get_embedding_function(config: Settings | None = None) -> OpenAIEmbeddings:
    """Return the OpenAI embedding model described by *config* (default: :data:`settings`)."""
    config = config or settings
    kwargs: dict = {"model": config.embedding_model}
    if config.llm_base_url:
        kwargs["base_url"] = config.llm_base_url
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = config.openai_api_key
    return OpenAIEmbeddings(**kwargs)


class EmbeddingClient:
    """Thin async wrapper that validates provider output.

    Parameters
    ----------
    embeddings:
        Any LangChain :class:`~langchain_core.embeddings.Embeddings`.
        Defaults to :func:`get_embedding_function`.
    expected_dimensions:
        When non-zero, vectors of any other length are rejected.
    provider_name:
        Reported on raised errors.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        expected_dimensions: int = settings.embedding_dimensions,
        provider_name: str = "openai",
    ) -> None:
        self._embeddings = embeddings if embeddings is not None else get_embedding_function()
        self.expected_dimensions = expected_dimensions
        self.provider_name = provider_name

    async def embed(self, text: str) -> list[float]:
        """Embed *text* as a single vector.

        Raises
        ------
        UpstreamServiceError
            The provider call failed.
        DataIntegrityError
            The provider returned no vector or one of the wrong length.
        """
        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as exc:
            logger.warning("Embedding request failed: %s", exc)
            raise UpstreamServiceError(f"Embedding request failed: {exc}", self.provider_name) from exc

        if not vector:
            raise DataIntegrityError("Invalid embedding response", self.provider_name)
        if self.expected_dimensions and len(vector) != self.expected_dimensions:
            raise DataIntegrityError(
                f"Invalid embedding response: expected {self.expected_dimensions} dimensions, got {len(vector)}",
                self.provider_name,
            )
        return list(vector)
