"""Prompt assembly for grounded chat.

The retrieved chunks go into a single system instruction; the prior
conversation follows verbatim.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from context_rag.retrieval.models import RetrievedDocument

GROUNDING_SYSTEM = """\
Context: {context}
Answer based on this context.
If no context, answer using general knowledge.
Always respond in {language}, translating response if necessary."""

_ROLE_TO_MESSAGE = {
    "user": HumanMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
    "ai": AIMessage,
    "system": SystemMessage,
}


def format_context(documents: Sequence[RetrievedDocument]) -> str:
    """Join chunk contents with blank lines, best match first."""
    return "\n\n".join(doc.content for doc in documents)


def to_message(role: str, content: str) -> BaseMessage:
    """Map a ``{role, content}`` turn onto a LangChain message."""
    try:
        message_cls = _ROLE_TO_MESSAGE[role.lower()]
    except KeyError:
        raise ValueError(f"Unsupported message role: {role!r}") from None
    return message_cls(content=content)


def build_grounding_prompt(
    history: Sequence[tuple[str, str]],
    query: str,
    documents: Sequence[RetrievedDocument],
    language: str,
) -> list[BaseMessage]:
    """Assemble the messages sent to the completion service.

    Parameters
    ----------
    history:
        Prior ``(role, content)`` turns, oldest first.
    query:
        The current user question.  Appended as a final user turn unless
        *history* already ends with it.
    documents:
        Retrieved context chunks.
    language:
        Language the answer must be written in.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.astream()``.
    """
    messages: list[BaseMessage] = [
        SystemMessage(content=GROUNDING_SYSTEM.format(context=format_context(documents), language=language))
    ]
    messages.extend(to_message(role, content) for role, content in history)

    last = history[-1] if history else None
    if query and not (last and to_message(*last).type == "human" and last[1] == query):
        messages.append(HumanMessage(content=query))
    return messages
