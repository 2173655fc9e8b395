"""
Chat — grounded answer generation over retrieved context.

:class:`~context_rag.chat.responder.RetrievalResponder` retrieves context,
builds the prompt, and streams tokens from the chat model.
"""
