"""
Collection View Module - Ordered, filtered, deduplicated record collection

Handles:
- Dedup by id, keeping the most recently updated record
- Externally supplied comparator and predicate (opaque pure functions)
- Positional queries (index -> record, id -> index)
- Change notification for paginators/windows bound to the view
"""
import functools
import logging
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Set

from QuakeView.feed.record_codec import Record


Comparator = Callable[[Record, Record], int]
Predicate = Callable[[Record], bool]


class ViewChange(Enum):
    """What kind of mutation a view listener is being told about"""
    APPENDED = "appended"
    SORTED = "sorted"
    FILTERED = "filtered"
    RESET = "reset"


class ViewInvariantError(Exception):
    """index_of() and query() disagree - a defect, not a runtime condition"""


class CollectionView:
    """
    The current ordered collection shared by every consuming view

    All mutation goes through apply / set_comparator / set_predicate /
    retain / clear. Each call rebuilds the ordered list and the id->position
    index exactly once, so positional queries never pay a rebuild cost.
    """

    def __init__(self, comparator: Optional[Comparator] = None,
                 predicate: Optional[Predicate] = None, strict: bool = False):
        """
        Initialize the view

        Args:
            comparator: (a, b) -> -1|0|1, None keeps ingestion order
            predicate: record -> bool, None accepts everything
            strict: Verify index consistency after every mutation
        """
        self._comparator = comparator
        self._predicate = predicate
        self.strict = strict

        self._store: Dict[str, Record] = {}  # Dedup store, ingestion order
        self._ordered: List[Record] = []
        self._positions: Dict[str, int] = {}

        self._listeners: List[Callable[[ViewChange], None]] = []
        self.version = 0
        self.logger = logging.getLogger(__name__)

    # Mutation

    def apply(self, chunk) -> None:
        """
        Merge a chunk of records (ChunkEvent or iterable of Records)

        Records whose id is already known replace the stored one unless
        their updated timestamp is older. On a tie the later arrival wins.
        """
        records = getattr(chunk, 'records', chunk)
        changed = 0
        for record in records:
            existing = self._store.get(record.id)
            if existing is None or not self._is_older(record, existing):
                if record != existing:
                    changed += 1
                self._store[record.id] = record

        if changed:
            self._recompute(ViewChange.APPENDED)

    def set_comparator(self, comparator: Optional[Comparator]) -> None:
        """Replace the sort order and recompute"""
        self._comparator = comparator
        self._recompute(ViewChange.SORTED)

    def set_predicate(self, predicate: Optional[Predicate]) -> None:
        """Replace the filter and recompute"""
        self._predicate = predicate
        self._recompute(ViewChange.FILTERED)

    def retain(self, ids: Set[str]) -> int:
        """
        Drop every stored record whose id is not in ids

        Returns:
            Number of records removed
        """
        stale = [record_id for record_id in self._store if record_id not in ids]
        for record_id in stale:
            del self._store[record_id]
        if stale:
            self._recompute(ViewChange.RESET)
        return len(stale)

    def clear(self) -> None:
        """Remove all records"""
        self._store.clear()
        self._recompute(ViewChange.RESET)

    # Queries

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._ordered)

    @property
    def total_count(self) -> int:
        """Number of deduplicated records before filtering"""
        return len(self._store)

    @property
    def comparator(self) -> Optional[Comparator]:
        return self._comparator

    @property
    def predicate(self) -> Optional[Predicate]:
        return self._predicate

    def query(self, index: int) -> Record:
        """Record at a position of the ordered collection"""
        if not 0 <= index < len(self._ordered):
            raise IndexError(f"index {index} out of range for view of {len(self._ordered)} records")
        return self._ordered[index]

    def index_of(self, record_id: str) -> int:
        """Position of record_id, or -1 when absent or filtered out"""
        return self._positions.get(record_id, -1)

    def get(self, record_id: str) -> Optional[Record]:
        """Stored record by id, even when the predicate hides it"""
        return self._store.get(record_id)

    def slice(self, start: int, end: int) -> List[Record]:
        """Records in [start, end), clamped to the collection"""
        start = max(0, start)
        end = max(start, end)
        return self._ordered[start:end]

    # Listeners

    def subscribe(self, listener: Callable[[ViewChange], None]) -> Callable[[], None]:
        """
        Register a change listener

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Internals

    @staticmethod
    def _is_older(candidate: Record, existing: Record) -> bool:
        if candidate.updated_at is not None and existing.updated_at is not None:
            return candidate.updated_at < existing.updated_at
        return candidate.updated < existing.updated

    def _recompute(self, change: ViewChange) -> None:
        if self._predicate is not None:
            ordered = [record for record in self._store.values() if self._predicate(record)]
        else:
            ordered = list(self._store.values())

        if self._comparator is not None:
            # list.sort is stable, ties keep ingestion order
            ordered.sort(key=functools.cmp_to_key(self._comparator))

        self._ordered = ordered
        self._positions = {record.id: position for position, record in enumerate(ordered)}
        self.version += 1

        if self.strict:
            self._check_consistency()

        self.logger.debug(
            f"View recomputed ({change.value}): {len(ordered)} of {len(self._store)} records, "
            f"version {self.version}"
        )
        for listener in list(self._listeners):
            listener(change)

    def _check_consistency(self) -> None:
        if len(self._positions) != len(self._ordered):
            raise ViewInvariantError(
                f"Index holds {len(self._positions)} ids for {len(self._ordered)} records"
            )
        for position, record in enumerate(self._ordered):
            if self._positions.get(record.id) != position:
                raise ViewInvariantError(f"Record {record.id} at {position} indexed elsewhere")
