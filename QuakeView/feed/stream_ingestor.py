"""
Stream Ingestor Module - Incremental CSV ingestion with bounded chunks

Handles:
- Line-by-line CSV parsing from a buffer, a file or a live download
- Per-row validation through the RecordCodec
- Bounded chunk emission (default 100 records) for fast first paint
- Rejection-rate warnings that never abort ingestion
- Generation tagging so superseded ingestions are dropped
"""
import csv
import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .fetch_client import FetchClient, SourceUnavailableError
from .record_codec import Record, RecordCodec


logger = logging.getLogger(__name__)


# --- Sources ---------------------------------------------------------------

class TextSource:
    """A delimited-text source that can be read line by line"""

    name = "source"

    def lines(self) -> Iterable[str]:
        raise NotImplementedError


class TextBufferSource(TextSource):
    """Already-downloaded CSV text"""

    def __init__(self, text: str, name: str = "buffer"):
        self.text = text or ""
        self.name = name

    def lines(self) -> Iterable[str]:
        return io.StringIO(self.text, newline='')


class FileSource(TextSource):
    """Local CSV file, read lazily"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.name = str(self.path)

    def lines(self) -> Iterator[str]:
        try:
            handle = open(self.path, 'r', encoding='utf-8', errors='replace', newline='')
        except OSError as e:
            raise SourceUnavailableError(f"Cannot open {self.path}: {e}") from e

        with handle:
            yield from handle


class UrlSource(TextSource):
    """Remote CSV feed streamed through the fetch client"""

    def __init__(self, url: str, client: Optional[FetchClient] = None):
        self.url = url
        self.name = url
        self.client = client or FetchClient()

    def lines(self) -> Iterator[str]:
        return self.client.stream_lines(self.url)


# --- Events ----------------------------------------------------------------

class FailureReason(Enum):
    """Ingestion-fatal error classes"""
    EMPTY_SOURCE = "empty_source"
    UNREACHABLE = "unreachable"
    NO_VALID_ROWS = "no_valid_rows"


@dataclass(frozen=True)
class ChunkEvent:
    """A bounded batch of newly validated records"""
    generation: int
    records: Tuple[Record, ...]
    rows_seen: int
    rejected: int
    is_final: bool = False


@dataclass(frozen=True)
class WarningEvent:
    """High rejection rate since the previous chunk (non-fatal)"""
    generation: int
    rows: int
    rejected: int
    rows_seen: int

    @property
    def rate(self) -> float:
        return self.rejected / self.rows if self.rows else 0.0

    @property
    def message(self) -> str:
        return f"{self.rejected} of {self.rows} rows rejected ({self.rate:.0%})"


@dataclass(frozen=True)
class CompleteEvent:
    """Terminal event: the source was fully consumed"""
    generation: int
    total_rows_seen: int
    total_valid: int
    total_rejected: int


@dataclass(frozen=True)
class FailedEvent:
    """Terminal event: the ingestion could not produce data"""
    generation: int
    reason: FailureReason
    message: str


IngestEvent = Union[ChunkEvent, WarningEvent, CompleteEvent, FailedEvent]
TERMINAL_EVENTS = (CompleteEvent, FailedEvent)


@dataclass
class IngestOptions:
    """Chunking and warning policy for one ingestion"""
    chunk_size: int = 100
    rejection_warning_threshold: float = 0.10

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")


# --- Ingestor --------------------------------------------------------------

class StreamIngestor:
    """
    Drives incremental consumption of a CSV source

    ingest() returns a lazy generator. Each step reads rows until one chunk
    is ready and then suspends, so the caller controls pacing. Starting a
    new ingestion invalidates every earlier generator: they stop at their
    next step and their events report a stale generation.
    """

    def __init__(self, codec: Optional[RecordCodec] = None):
        self.codec = codec or RecordCodec()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, event: IngestEvent) -> bool:
        """True if event belongs to the latest ingestion"""
        return event.generation == self._generation

    def cancel(self) -> None:
        """Invalidate the in-flight ingestion without starting a new one"""
        self._generation += 1

    def ingest(self, source: TextSource, options: Optional[IngestOptions] = None) -> Iterator[IngestEvent]:
        """
        Start a new ingestion generation

        Args:
            source: Where to read CSV lines from
            options: Chunking/warning policy

        Returns:
            Generator of IngestEvents ending with CompleteEvent or FailedEvent
        """
        self._generation += 1
        return self._run(source, options or IngestOptions(), self._generation)

    def _run(self, source: TextSource, options: IngestOptions, generation: int) -> Iterator[IngestEvent]:
        logger.info(f"Ingestion {generation} started from {source.name}")

        pending: List[Record] = []
        rows_seen = 0
        total_valid = 0
        total_rejected = 0
        rows_since_flush = 0
        rejected_since_flush = 0

        try:
            for row in self._rows(source):
                if generation != self._generation:
                    logger.info(f"Ingestion {generation} superseded, stopping")
                    return

                rows_seen += 1
                rows_since_flush += 1

                result = self.codec.parse(row) if row is not None else None
                if isinstance(result, Record):
                    pending.append(result)
                    total_valid += 1
                else:
                    total_rejected += 1
                    rejected_since_flush += 1
                    logger.debug(f"Row {rows_seen} rejected: {result or 'malformed CSV line'}")

                if len(pending) >= options.chunk_size:
                    yield ChunkEvent(generation, tuple(pending), rows_seen, rejected_since_flush)
                    if generation != self._generation:
                        return
                    warning = self._check_rejections(
                        generation, options, rows_since_flush, rejected_since_flush, rows_seen
                    )
                    pending = []
                    rows_since_flush = 0
                    rejected_since_flush = 0
                    if warning is not None:
                        yield warning

        except SourceUnavailableError as e:
            if generation == self._generation:
                logger.error(f"Ingestion {generation} failed: {e}")
                yield FailedEvent(generation, FailureReason.UNREACHABLE, str(e))
            return

        if generation != self._generation:
            return

        if rows_seen == 0:
            logger.error(f"Ingestion {generation} failed: source {source.name} is empty")
            yield FailedEvent(generation, FailureReason.EMPTY_SOURCE, "No data rows found in CSV")
            return

        if total_valid == 0:
            logger.error(f"Ingestion {generation} failed: none of {rows_seen} rows were valid")
            yield FailedEvent(
                generation, FailureReason.NO_VALID_ROWS,
                f"No valid earthquake records found in {rows_seen} rows"
            )
            return

        if pending:
            yield ChunkEvent(generation, tuple(pending), rows_seen, rejected_since_flush, is_final=True)

        warning = self._check_rejections(generation, options, rows_since_flush, rejected_since_flush, rows_seen)
        if warning is not None:
            yield warning

        logger.info(
            f"Ingestion {generation} complete: {rows_seen} rows, "
            f"{total_valid} valid, {total_rejected} rejected"
        )
        yield CompleteEvent(generation, rows_seen, total_valid, total_rejected)

    def _check_rejections(self, generation: int, options: IngestOptions, rows: int,
                          rejected: int, rows_seen: int) -> Optional[WarningEvent]:
        if rows == 0 or rejected / rows <= options.rejection_warning_threshold:
            return None
        warning = WarningEvent(generation, rows, rejected, rows_seen)
        logger.warning(f"Ingestion {generation}: {warning.message}")
        return warning

    def _rows(self, source: TextSource) -> Iterator[Optional[dict]]:
        """
        Yield one dict per non-blank data row, or None for a line the CSV
        reader could not parse
        """
        reader = csv.reader(iter(source.lines()))
        header: Optional[List[str]] = None

        while True:
            try:
                values = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                if header is None:
                    continue
                logger.debug(f"Malformed CSV line {reader.line_num}: {e}")
                yield None
                continue

            if not values or all(not value.strip() for value in values):
                continue

            if header is None:
                header = [name.strip().lstrip('\ufeff') for name in values]
                continue

            padded = values + [''] * (len(header) - len(values))
            yield dict(zip(header, padded))
