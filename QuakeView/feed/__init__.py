"""
Feed Package - Getting earthquake records from a CSV source

This package turns a delimited-text feed into validated records with:
- Row validation and typed records (RecordCodec, Record, Rejected)
- Incremental, chunked ingestion with cancellation (StreamIngestor)
- HTTP fetching with retries and backoff (FetchClient)
- Injected TTL caching of responses (ResponseCache)

Package Structure:
- record_codec: Row parsing and validation
- stream_ingestor: Sources, ingestion events and the ingestor
- fetch_client: Network access
- response_cache: Response caching
- loader: Applying ingestion events to a CollectionView (FeedLoader)
"""

from .record_codec import Record, RecordCodec, Rejected, RejectReason, parse_row
from .response_cache import ResponseCache
from .fetch_client import FetchClient, SourceUnavailableError
from .stream_ingestor import (
    ChunkEvent,
    CompleteEvent,
    FailedEvent,
    FailureReason,
    FileSource,
    IngestOptions,
    StreamIngestor,
    TextBufferSource,
    UrlSource,
    WarningEvent,
)

__all__ = [
    # Records
    'Record',
    'RecordCodec',
    'Rejected',
    'RejectReason',
    'parse_row',

    # Network
    'FetchClient',
    'ResponseCache',
    'SourceUnavailableError',

    # Ingestion
    'StreamIngestor',
    'IngestOptions',
    'TextBufferSource',
    'FileSource',
    'UrlSource',
    'ChunkEvent',
    'WarningEvent',
    'CompleteEvent',
    'FailedEvent',
    'FailureReason',
]
