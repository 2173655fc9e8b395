"""Exception hierarchy for context-rag.

All application errors inherit from :class:`ContextRAGError`, which carries
an optional ``provider_name`` identifying the external service involved
(e.g. ``"openai"``, ``"chroma"``)::

    ContextRAGError
    +-- ValidationError          missing or malformed request input
    +-- TransportError           page fetch / network failure
    +-- UpstreamServiceError     embedding, completion or vector-store failure
        +-- DataIntegrityError   provider answered with an unusable payload

Only :class:`TransportError` is ever retried, and only by the fetcher.
"""

from __future__ import annotations


class ContextRAGError(Exception):
    """Base exception for all context-rag errors.

    ``str(exc)`` prefixes the provider in brackets, e.g.
    ``[openai] Invalid embedding response``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ValidationError(ContextRAGError):
    """Raised for missing text, a non-http(s) URL, or other bad input."""

    def __init__(self, message: str = "Invalid input", provider_name: str | None = None) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TransportError(ContextRAGError):
    """Raised when a page could not be fetched after all retries."""

    def __init__(self, message: str = "Network request failed", provider_name: str | None = None) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpstreamServiceError(ContextRAGError):
    """Raised when the embedding, completion or vector-store service fails."""

    def __init__(self, message: str = "Upstream service failed", provider_name: str | None = None) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DataIntegrityError(UpstreamServiceError):
    """Raised when a provider response is missing or has the wrong shape."""

    def __init__(self, message: str = "Invalid provider response", provider_name: str | None = None) -> None:
        super().__init__(message=message, provider_name=provider_name)
