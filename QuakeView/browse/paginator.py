"""
Paginator Module - Fixed-size pages over a CollectionView

Handles:
- Page navigation with clamping to [1, total_pages]
- Locating the page that contains a global index
- Page reset on sort/filter change, clamp-down on shrink
- Slice access relative to the active page for windowing
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, List

from QuakeView.feed.record_codec import Record
from .collection_view import CollectionView, ViewChange


DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class Page:
    """Half-open index range [start, end) of one page"""
    number: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


class Paginator:
    """Partitions the ordered collection into pages of page_size records"""

    def __init__(self, view: CollectionView, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        self.view = view
        self._page_size = page_size
        self._current = 1
        self._listeners: List[Callable[[Page], None]] = []
        self.logger = logging.getLogger(__name__)

        self._unsubscribe = view.subscribe(self._on_view_change)

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def current_page(self) -> int:
        return self._current

    @property
    def total_pages(self) -> int:
        return math.ceil(len(self.view) / self._page_size)

    @property
    def page(self) -> Page:
        start = (self._current - 1) * self._page_size
        end = min(start + self._page_size, len(self.view))
        return Page(self._current, min(start, end), end)

    def set_page_size(self, page_size: int) -> Page:
        """Change the page size, clamping the current page down if needed"""
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._page_size = page_size
        return self._move_to(self._clamp(self._current), force=True)

    def go_to_page(self, number: int) -> Page:
        """Show page number, clamped to [1, total_pages] (1 when empty)"""
        return self._move_to(self._clamp(number))

    def next_page(self) -> Page:
        return self.go_to_page(self._current + 1)

    def previous_page(self) -> Page:
        return self.go_to_page(self._current - 1)

    def page_containing(self, index: int) -> int:
        """1-based page number holding the global index"""
        if index < 0:
            raise IndexError(f"index {index} is negative")
        return index // self._page_size + 1

    def to_page_index(self, index: int) -> int:
        """Translate a global index into a position within its page"""
        return index - (self.page_containing(index) - 1) * self._page_size

    # Slice source protocol, relative to the active page

    def __len__(self) -> int:
        return self.page.size

    def slice(self, start: int, end: int) -> List[Record]:
        page = self.page
        start = page.start + max(0, start)
        end = page.start + min(max(0, end), page.size)
        return self.view.slice(start, end)

    def query(self, index: int) -> Record:
        page = self.page
        if not 0 <= index < page.size:
            raise IndexError(f"index {index} out of range for page of {page.size} records")
        return self.view.query(page.start + index)

    def subscribe(self, listener: Callable[[Page], None]) -> Callable[[], None]:
        """
        Register a page-change listener

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def detach(self) -> None:
        """Stop following the collection view"""
        self._unsubscribe()

    def _clamp(self, number: int) -> int:
        return min(max(1, number), max(1, self.total_pages))

    def _move_to(self, number: int, force: bool = False) -> Page:
        changed = number != self._current
        self._current = number
        page = self.page
        if changed or force:
            self.logger.debug(f"Page {page.number}/{self.total_pages} [{page.start}, {page.end})")
            for listener in list(self._listeners):
                listener(page)
        return page

    def _on_view_change(self, change: ViewChange) -> None:
        if change in (ViewChange.SORTED, ViewChange.FILTERED):
            self._move_to(1, force=True)
        else:
            self._move_to(self._clamp(self._current))
