"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible server** — set ``LLM_BASE_URL`` (vLLM, Ollama,
   LM Studio …).  ``ChatOpenAI`` works unchanged against any
   ``/v1/chat/completions`` endpoint.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from langchain_openai import ChatOpenAI

from context_rag.config import Settings, settings
from context_rag.errors import UpstreamServiceError

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None, config: Settings | None = None) -> ChatOpenAI:
    """Return the streaming chat model described by *config* (default: :data:`settings`).

    *temperature* overrides ``config.llm_temperature``.  When
    ``config.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.  A dummy API key
    (``"EMPTY"``) is used because self-hosted servers usually do not
    require authentication.
    """
    config = config or settings
    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature if temperature is None else temperature,
        "streaming": True,
    }

    if config.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        # Self-hosted servers ignore the key; LangChain requires a non-empty value.
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = config.openai_api_key

    return ChatOpenAI(**kwargs)


class CompletionClient:
    """Streams token deltas from a LangChain chat model.

    Parameters
    ----------
    llm:
        Any chat model supporting ``astream``; defaults to :func:`get_llm`.
    provider_name:
        Reported on raised errors.
    """

    def __init__(self, llm: BaseChatModel | None = None, *, provider_name: str = "openai") -> None:
        self._llm = llm if llm is not None else get_llm()
        self.provider_name = provider_name

    async def stream(self, messages: list[BaseMessage]) -> AsyncIterator[str]:
        """Yield non-empty text deltas in generation order.

        Raises
        ------
        UpstreamServiceError
            The provider call failed before or during streaming.
        """
        try:
            async for chunk in self._llm.astream(messages):
                text = chunk.content if isinstance(chunk.content, str) else _flatten(chunk.content)
                if text:
                    yield text
        except UpstreamServiceError:
            raise
        except Exception as exc:
            raise UpstreamServiceError(f"Completion request failed: {exc}", self.provider_name) from exc


def _flatten(content: list) -> str:
    # Some providers return content blocks instead of a plain string.
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
