"""
Serving — FastAPI application streaming NDJSON events.

Ingestion progress and chat tokens are delivered through a bounded
:class:`~context_rag.serving.streaming.EventChannel`.
"""
