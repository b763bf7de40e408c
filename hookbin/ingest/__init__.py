"""Webhook ingestion: per-delivery capture into durable sink artifacts."""

from hookbin.ingest.ingestor import HookIngestor, IngestResult, RequestMetadata, new_sink_id
from hookbin.ingest.sink import SinkHandle, SinkStore

__all__ = [
    "HookIngestor",
    "IngestResult",
    "RequestMetadata",
    "SinkHandle",
    "SinkStore",
    "new_sink_id",
]
