"""Retrieval-augmented responder.

Event order on the channel for one chat request::

    {"type": "context", "documents": [...]}     exactly once, always first
    {"type": "content", "content": "..."}       zero or more token deltas
    {"error": "..."}                            only on failure

There is no success terminator; the stream simply closes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from context_rag.chat.prompts import build_grounding_prompt

if TYPE_CHECKING:
    from context_rag.chat.llm import CompletionClient
    from context_rag.retrieval.retriever import ContextRetriever
    from context_rag.serving.streaming import EventChannel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatQuery:
    """One chat turn.

    ``messages`` holds the prior conversation as ``(role, content)`` pairs.
    """

    query: str
    messages: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    use_only_my_context: bool = False
    user_id: str | None = None
    language: str = "English"

    @property
    def owner_scope(self) -> str | None:
        """User id to restrict retrieval to, or ``None`` for all owners."""
        return self.user_id if self.use_only_my_context else None


class RetrievalResponder:
    """Answer a chat turn from retrieved context, streaming tokens.

    Parameters
    ----------
    retriever:
        Embeds the query and ranks stored chunks.
    completion:
        Streams the answer from the chat model.
    """

    def __init__(self, retriever: ContextRetriever, completion: CompletionClient) -> None:
        self._retriever = retriever
        self._completion = completion

    async def respond(self, request: ChatQuery, channel: EventChannel) -> None:
        async with channel.terminal():
            documents = await self._retriever.retrieve(request.query, user_id=request.owner_scope)
            logger.info("%d contexts found for user %s", len(documents), request.user_id)
            await channel.send(
                {"type": "context", "documents": [doc.model_dump() for doc in documents]}
            )

            messages = build_grounding_prompt(request.messages, request.query, documents, request.language)
            async for delta in self._completion.stream(messages):
                await channel.send({"type": "content", "content": delta})
