"""
Ingestion — fetching, structuring, chunking, and embedding into the vector store.

Text or a single web page goes in; breadcrumb-prefixed chunks come out,
are embedded, and are persisted with their ``(source, by)`` provenance.
"""
