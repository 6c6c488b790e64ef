"""
Window Manager Module - Visible window over a large ordered collection

Handles:
- Visible index range from scroll offset, item height and overscan
- Offset translation and total scroll extent for the rendering surface
- Offset clamping when the underlying collection shrinks
- Centering a given item (reposition requests from selection)
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

from QuakeView.feed.record_codec import Record


@dataclass(frozen=True)
class WindowRange:
    """Index range [start, end) to materialize"""
    start: int
    end: int
    offset_for_range: float
    total_extent: float

    def __contains__(self, index: int) -> bool:
        return self.start <= index < self.end

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class ViewportState:
    scroll_offset: float = 0.0
    item_height: float = 1.0
    container_height: float = 0.0
    overscan: int = 0


@dataclass(frozen=True)
class WindowSnapshot:
    """Everything the rendering surface needs to draw one frame"""
    visible_slice: Sequence[Record]
    offset_for_range: float
    total_extent: float
    start: int
    end: int


def compute_window(scroll_offset: float, item_height: float, container_height: float,
                   overscan: int, n: int) -> WindowRange:
    """
    Compute the materialized range for a viewport

    Args:
        scroll_offset: Current scroll position (>= 0)
        item_height: Height of one item (> 0)
        container_height: Visible height of the container
        overscan: Extra items rendered on each side
        n: Number of items in the source

    Returns:
        WindowRange with start <= end, both within [0, n]
    """
    if item_height <= 0:
        raise ValueError("item_height must be positive")

    start = max(0, math.floor(scroll_offset / item_height) - overscan)
    end = min(n, math.ceil((scroll_offset + container_height) / item_height) + overscan)
    start = min(start, end)
    return WindowRange(start, end, start * item_height, n * item_height)


class WindowManager:
    """
    Tracks one viewport over a slice source

    The source is anything with __len__ and slice(start, end), typically a
    CollectionView (unpaginated) or a Paginator (the active page). The range
    is recomputed only on scroll, resize, sync and reposition.
    """

    def __init__(self, source, item_height: float = 1.0, container_height: float = 0.0,
                 overscan: int = 3):
        if item_height <= 0:
            raise ValueError("item_height must be positive")
        if container_height < 0:
            raise ValueError("container_height must not be negative")
        if overscan < 0:
            raise ValueError("overscan must not be negative")

        self.source = source
        self.state = ViewportState(0.0, item_height, container_height, overscan)
        self._n = len(source)
        self._range = self._compute()
        self.logger = logging.getLogger(__name__)

    @property
    def scroll_offset(self) -> float:
        return self.state.scroll_offset

    @property
    def item_height(self) -> float:
        return self.state.item_height

    @property
    def container_height(self) -> float:
        return self.state.container_height

    @property
    def item_count(self) -> int:
        return self._n

    @property
    def max_scroll(self) -> float:
        return max(0.0, self._n * self.state.item_height - self.state.container_height)

    @property
    def visible_range(self) -> WindowRange:
        return self._range

    def scroll_to(self, offset: float) -> WindowRange:
        """Scroll to an absolute offset, clamped to [0, max_scroll]"""
        self.state.scroll_offset = min(max(0.0, offset), self.max_scroll)
        return self._update()

    def scroll_by(self, delta: float) -> WindowRange:
        return self.scroll_to(self.state.scroll_offset + delta)

    def resize(self, container_height: float) -> WindowRange:
        if container_height < 0:
            raise ValueError("container_height must not be negative")
        self.state.container_height = container_height
        self.state.scroll_offset = min(self.state.scroll_offset, self.max_scroll)
        return self._update()

    def sync(self) -> WindowRange:
        """Re-read the source length after the collection changed"""
        previous = self._n
        self._n = len(self.source)
        if self._n < previous:
            self.state.scroll_offset = min(self.state.scroll_offset, self.max_scroll)
        return self._update()

    def reset(self) -> WindowRange:
        """Back to the top (new page, new ordering)"""
        self._n = len(self.source)
        self.state.scroll_offset = 0.0
        return self._update()

    def center_on(self, index: int) -> WindowRange:
        """
        Scroll so that the item at index (within this source) is centred

        Items near the end are shown as far down as the scroll extent
        allows.

        Args:
            index: Position of the item in the source

        Returns:
            The new visible range, which contains index
        """
        self._n = len(self.source)
        state = self.state
        centred = index * state.item_height - state.container_height / 2 + state.item_height / 2
        state.scroll_offset = min(max(0.0, centred), self.max_scroll)
        return self._update()

    def snapshot(self) -> WindowSnapshot:
        """Materialize the current window"""
        window = self._range
        records: List[Record] = self.source.slice(window.start, window.end)
        return WindowSnapshot(records, window.offset_for_range, window.total_extent,
                              window.start, window.end)

    def _compute(self) -> WindowRange:
        state = self.state
        return compute_window(state.scroll_offset, state.item_height, state.container_height,
                              state.overscan, self._n)

    def _update(self) -> WindowRange:
        self._range = self._compute()
        self.logger.debug(
            f"Window [{self._range.start}, {self._range.end}) of {self._n} at offset {self.state.scroll_offset}"
        )
        return self._range
