"""
Feed Loader Module - Applies ingestion events to the collection view

Handles:
- Starting ingestions (each one a new generation)
- Dropping events from superseded generations
- Applying chunks to the CollectionView as they arrive
- Pruning records missing from a completed refresh
- Keeping previous data when a refresh fails
- Status tracking for the ingest status panel
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, List, Optional, Set

from QuakeView.browse.collection_view import CollectionView
from .stream_ingestor import (
    ChunkEvent, CompleteEvent, FailedEvent, FailureReason, IngestEvent,
    IngestOptions, StreamIngestor, TextSource, WarningEvent,
)


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class IngestStatus:
    """Progress of the most recent ingestion"""
    generation: int = 0
    state: LoadState = LoadState.IDLE
    source: str = ""
    rows_seen: int = 0
    valid: int = 0
    rejected: int = 0
    chunks: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    failure_reason: Optional[FailureReason] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_loading(self) -> bool:
        return self.state == LoadState.LOADING


class FeedLoader:
    """Glue between a StreamIngestor and the CollectionView it fills"""

    def __init__(self, view: CollectionView, ingestor: Optional[StreamIngestor] = None,
                 options: Optional[IngestOptions] = None):
        self.view = view
        self.ingestor = ingestor or StreamIngestor()
        self.options = options or IngestOptions()
        self.status = IngestStatus()
        self._seen_ids: Set[str] = set()
        self._listeners: List[Callable[[IngestStatus], None]] = []
        self.logger = logging.getLogger(__name__)

    def subscribe(self, listener: Callable[[IngestStatus], None]) -> Callable[[], None]:
        """
        Register a status listener

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, source: TextSource) -> Iterator[IngestEvent]:
        """
        Begin a new ingestion, superseding any in-flight one

        Returns:
            The event generator; feed each event back through handle()
        """
        events = self.ingestor.ingest(source, self.options)
        self._seen_ids = set()
        self.status = IngestStatus(
            generation=self.ingestor.generation,
            state=LoadState.LOADING,
            source=source.name,
            started_at=datetime.now(),
        )
        self.logger.info(f"Loading generation {self.status.generation} from {source.name}")
        self._notify()
        return events

    def handle(self, event: IngestEvent) -> bool:
        """
        Apply one event to the view

        Returns:
            False when the event belonged to a superseded generation
        """
        if not self.ingestor.is_current(event):
            self.logger.debug(f"Dropping stale event from generation {event.generation}")
            return False

        status = self.status
        if isinstance(event, ChunkEvent):
            self._seen_ids.update(record.id for record in event.records)
            self.view.apply(event)
            status.rows_seen = event.rows_seen
            status.valid += len(event.records)
            status.rejected += event.rejected
            status.chunks += 1

        elif isinstance(event, WarningEvent):
            status.warnings.append(event.message)

        elif isinstance(event, CompleteEvent):
            removed = self.view.retain(self._seen_ids)
            if removed:
                self.logger.info(f"Removed {removed} records no longer in the feed")
            status.rows_seen = event.total_rows_seen
            status.valid = event.total_valid
            status.rejected = event.total_rejected
            status.state = LoadState.COMPLETE
            status.finished_at = datetime.now()

        elif isinstance(event, FailedEvent):
            # Previously loaded records stay in the view
            status.state = LoadState.FAILED
            status.error = event.message
            status.failure_reason = event.reason
            status.finished_at = datetime.now()
            self.logger.error(f"Load failed ({event.reason.value}): {event.message}")

        self._notify()
        return True

    def run(self, source: TextSource) -> IngestStatus:
        """Drive a whole ingestion synchronously"""
        for event in self.start(source):
            self.handle(event)
        return self.status

    def cancel(self) -> None:
        """Abandon the in-flight ingestion, keeping what was applied"""
        if not self.status.is_loading:
            return
        self.ingestor.cancel()
        self.status.state = LoadState.CANCELLED
        self.status.finished_at = datetime.now()
        self.logger.info(f"Generation {self.status.generation} cancelled")
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.status)
