"""
Quake Table Module - DataTables that only hold the materialized window

Handles:
- Rendering a WindowSnapshot as table rows keyed by record id
- Color-coded magnitudes and quality flags
- Turning wheel/cursor movement past the window edge into scroll requests
- Reporting the usable viewport height
"""
from typing import Optional, Tuple

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widgets import DataTable

from QuakeView.browse.window_manager import WindowSnapshot
from QuakeView.feed.record_codec import Record, parse_timestamp


WHEEL_STEP = 3


def magnitude_style(magnitude: float) -> str:
    """Rich style for a magnitude value"""
    if magnitude >= 6.0:
        return "bold red"
    if magnitude >= 4.5:
        return "dark_orange"
    if magnitude >= 3.0:
        return "yellow"
    return "grey62"


def format_time(value: str) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or "-"
    return parsed.strftime('%Y-%m-%d %H:%M:%S')


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[:length - 3] + "..."


def format_record_row(record: Record, max_place_length: int = 48) -> Tuple:
    """
    Format a record for the primary table

    Args:
        record: Record to format
        max_place_length: Truncate place names beyond this

    Returns:
        Tuple of cell values
    """
    magnitude = Text(f"{record.magnitude:.1f}", style=magnitude_style(record.magnitude))
    place = truncate(record.place, max_place_length)
    place_text = Text(place, style="yellow") if record.is_flagged else place

    return (
        format_time(record.time),
        magnitude,
        record.mag_type,
        f"{record.depth:.1f} km",
        place_text,
        f"{record.latitude:.3f}, {record.longitude:.3f}",
        record.status.capitalize(),
    )


def format_compact_row(record: Record) -> Tuple:
    """Magnitude and place only, for the event list"""
    magnitude = Text(f"{record.magnitude:.1f}", style=magnitude_style(record.magnitude))
    return (magnitude, truncate(record.place, 32))


class WindowedTable(DataTable):
    """
    DataTable that shows one window of a larger source

    The owning view keeps the WindowManager; this widget only draws the
    snapshot it is given and asks the view to move the window.
    """

    COLUMNS: Tuple[str, ...] = ()

    class ScrollRequested(Message):
        """The user tried to move past the materialized rows"""

        def __init__(self, table: "WindowedTable", delta: int, cursor_position: int):
            super().__init__()
            self.table = table
            self.delta = delta
            self.cursor_position = cursor_position

    class ViewportResized(Message):
        """Number of rows that fit in the table changed"""

        def __init__(self, table: "WindowedTable", height: int):
            super().__init__()
            self.table = table
            self.height = height

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.window_start = 0
        self.source_length = 0

    def on_mount(self) -> None:
        """Initialize table columns when mounted"""
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(*self.COLUMNS)

    def format_row(self, record: Record) -> Tuple:
        raise NotImplementedError

    def show_window(self, snapshot: WindowSnapshot, source_length: int,
                    cursor_position: Optional[int] = None, selected_id: Optional[str] = None) -> None:
        """
        Replace the rows with the snapshot's records

        Args:
            snapshot: Window to draw
            source_length: Number of items in the windowed source
            cursor_position: Source position to put the cursor on
            selected_id: Record to put the cursor on when no position is given
        """
        self.clear()
        self.window_start = snapshot.start
        self.source_length = source_length

        cursor_row = None
        for row, record in enumerate(snapshot.visible_slice):
            self.add_row(*self.format_row(record), key=record.id)
            if record.id == selected_id:
                cursor_row = row

        if cursor_position is not None and snapshot.start <= cursor_position < snapshot.end:
            cursor_row = cursor_position - snapshot.start

        if cursor_row is not None:
            self.move_cursor(row=cursor_row)

    def _request_scroll(self, delta: int, step: int) -> None:
        position = self.window_start + self.cursor_row + step
        position = min(max(0, position), max(0, self.source_length - 1))
        self.post_message(self.ScrollRequested(self, delta, position))

    # Cursor movement past the first/last materialized row moves the window

    def action_cursor_down(self) -> None:
        if self.row_count and self.cursor_row >= self.row_count - 1:
            self._request_scroll(1, 1)
        else:
            super().action_cursor_down()

    def action_cursor_up(self) -> None:
        if self.row_count and self.cursor_row <= 0:
            self._request_scroll(-1, -1)
        else:
            super().action_cursor_up()

    def action_page_down(self) -> None:
        page = max(1, self.size.height - 1)
        self._request_scroll(page, page)

    def action_page_up(self) -> None:
        page = max(1, self.size.height - 1)
        self._request_scroll(-page, -page)

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.prevent_default()
        self._request_scroll(WHEEL_STEP, 0)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.prevent_default()
        self._request_scroll(-WHEEL_STEP, 0)

    def on_resize(self, event: events.Resize) -> None:
        # One line is taken by the header
        self.post_message(self.ViewportResized(self, max(0, event.size.height - 1)))


class QuakeTable(WindowedTable):
    """Primary view: full event rows for the active page"""

    COLUMNS = ("Time (UTC)", "Mag", "Type", "Depth", "Location", "Coordinates", "Status")

    def __init__(self, max_place_length: int = 48, **kwargs):
        super().__init__(**kwargs)
        self.max_place_length = max_place_length

    def format_row(self, record: Record) -> Tuple:
        return format_record_row(record, self.max_place_length)


class EventList(WindowedTable):
    """Secondary view: compact list over the whole collection"""

    COLUMNS = ("Mag", "Location")

    def format_row(self, record: Record) -> Tuple:
        return format_compact_row(record)
