"""
Quake Browser Components Module - UI widgets and panels

Handles:
- Search, magnitude, date range and sort controls
- Pagination controls
- Ingestion status with retry
- Compact event list panel
- Selected record details
"""
from typing import Optional

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import Button, Checkbox, Input, Label, Select, Static

from QuakeView.browse.ordering import DATE_RANGES, MAGNITUDE_RANGES, SORT_FIELDS
from QuakeView.feed.loader import IngestStatus, LoadState
from QuakeView.feed.record_codec import Record
from .quake_table import EventList, format_time, magnitude_style


class QuakeFilterPanel(Vertical):
    """Search, magnitude, date and sort controls"""

    def compose(self) -> ComposeResult:
        """Compose the filter panel"""
        with Horizontal(classes="filter-row"):
            yield Label("[bold]Search:[/bold]", classes="control-label")
            yield Input(placeholder="Place, id or network...", id="quake-search-input")
            yield Label("[bold]Mag:[/bold]", classes="control-label")
            yield Input(placeholder="min", id="min-magnitude-input", classes="narrow-input")
            yield Input(placeholder="max", id="max-magnitude-input", classes="narrow-input")
            yield Select(
                options=[(label, name) for name, (label, _, _) in MAGNITUDE_RANGES.items()],
                prompt="All magnitudes",
                id="magnitude-range-select",
            )
            yield Select(
                options=[(label, name) for name, (label, _) in DATE_RANGES.items()],
                prompt="All time",
                id="date-range-select",
            )

        with Horizontal(classes="filter-row"):
            yield Label("[bold]Sort:[/bold]", classes="control-label")
            yield Select(
                options=[(label, field) for field, label in SORT_FIELDS.items()],
                value="time",
                allow_blank=False,
                id="sort-field-select",
            )
            yield Checkbox("Descending", value=True, id="sort-descending-checkbox")
            yield Button("Reset Filters", id="reset-filters-btn", variant="default")


class PaginationPanel(Horizontal):
    """Previous / next buttons and page indicator"""

    current_page: reactive[int] = reactive(1)
    total_pages: reactive[int] = reactive(0)
    record_count: reactive[int] = reactive(0)

    def compose(self) -> ComposeResult:
        """Compose the pagination panel"""
        yield Button("◀ Prev", id="prev-page-btn", variant="default")
        yield Static(self._format_page(), id="page-indicator")
        yield Button("Next ▶", id="next-page-btn", variant="default")

    def _format_page(self) -> str:
        return (
            f"Page {self.current_page} of {max(1, self.total_pages)} "
            f"({self.record_count} records)"
        )

    def watch_current_page(self, value: int) -> None:
        self._update_display()

    def watch_total_pages(self, value: int) -> None:
        self._update_display()

    def watch_record_count(self, value: int) -> None:
        self._update_display()

    def _update_display(self) -> None:
        try:
            indicator = self.query_one("#page-indicator", Static)
        except NoMatches:
            return
        indicator.update(self._format_page())
        self.query_one("#prev-page-btn", Button).disabled = self.current_page <= 1
        self.query_one("#next-page-btn", Button).disabled = self.current_page >= self.total_pages


class IngestStatusPanel(Vertical):
    """Progress of the current load, with a retry button on failure"""

    def compose(self) -> ComposeResult:
        """Compose the status panel"""
        yield Label("[bold]Feed Status[/bold]", classes="panel-title")
        yield Static("Idle", id="ingest-status-content")
        yield Button("⟳ Retry", id="retry-load-btn", variant="warning")

    def on_mount(self) -> None:
        self.query_one("#retry-load-btn", Button).display = False

    def show_status(self, status: IngestStatus, total_records: int) -> None:
        """
        Display the status of an ingestion

        Args:
            status: Current loader status
            total_records: Records currently held by the collection
        """
        lines = [
            f"State: {self._format_state(status.state)}",
            f"Rows read: {status.rows_seen}",
            f"Valid: {status.valid}",
            f"[yellow]Rejected: {status.rejected}[/yellow]",
            f"Records held: {total_records}",
        ]
        if status.warnings:
            lines.append(f"[yellow]Warning: {escape(status.warnings[-1])}[/yellow]")
        if status.error:
            lines.append(f"[red]Error: {escape(status.error)}[/red]")
            if total_records:
                lines.append("[dim]Showing previously loaded data[/dim]")

        try:
            content = self.query_one("#ingest-status-content", Static)
        except NoMatches:
            return
        content.update("\n".join(lines))
        self.query_one("#retry-load-btn", Button).display = status.state == LoadState.FAILED

    @staticmethod
    def _format_state(state: LoadState) -> str:
        colors = {
            LoadState.LOADING: "cyan",
            LoadState.COMPLETE: "green",
            LoadState.FAILED: "red",
            LoadState.CANCELLED: "yellow",
        }
        color = colors.get(state)
        label = state.value.capitalize()
        return f"[{color}]{label}[/{color}]" if color else label


class EventListPanel(Vertical):
    """Secondary view: the whole collection as a compact list"""

    def compose(self) -> ComposeResult:
        """Compose the event list panel"""
        yield Label("[bold]All Events[/bold]", classes="panel-title")
        yield EventList(id="event-list")


def _optional(value: Optional[object]) -> str:
    return "N/A" if value is None else str(value)


def format_record_details(record: Record, visible: bool = True) -> str:
    """
    Rich markup for the details panel

    Feed values are escaped so brackets in them show up as text.

    Args:
        record: Record to describe
        visible: False when the current filter hides it
    """
    style = magnitude_style(record.magnitude)
    details = (
        f"[bold]Id:[/bold] {escape(record.id)}\n"
        f"[bold]Time:[/bold] {escape(format_time(record.time))}\n"
        f"[bold]Location:[/bold] {escape(record.place)}\n"
        f"[bold]Magnitude:[/bold] [{style}]{record.magnitude:.1f}[/{style}] ({escape(record.mag_type)})\n"
        f"[bold]Depth:[/bold] {record.depth:.1f} km\n"
        f"[bold]Coordinates:[/bold] {record.latitude:.3f}, {record.longitude:.3f}\n"
        f"[bold]Type:[/bold] {escape(record.event_type)}\n"
        f"[bold]Status:[/bold] {escape(record.status)}\n"
        f"[bold]Network:[/bold] {escape(record.network)}\n"
        f"[bold]Updated:[/bold] {escape(format_time(record.updated))}\n"
        f"[bold]Stations (nst):[/bold] {_optional(record.nst)}\n"
        f"[bold]Gap:[/bold] {_optional(record.gap)}\n"
        f"[bold]RMS:[/bold] {_optional(record.rms)}\n"
        f"[bold]Horizontal Error:[/bold] {_optional(record.horizontal_error)}\n"
        f"[bold]Depth Error:[/bold] {_optional(record.depth_error)}\n"
        f"[bold]Mag Error:[/bold] {_optional(record.mag_error)}"
    )
    if record.flags:
        details += "\n\n[yellow]" + escape("\n".join(record.flags)) + "[/yellow]"
    if not visible:
        details += "\n\n[dim]Hidden by the current filter[/dim]"
    return details


class RecordDetailsPanel(Vertical):
    """Detailed view of the selected record"""

    EMPTY_TEXT = "Select an event to view details"

    def compose(self) -> ComposeResult:
        """Compose the details panel"""
        yield Label("[bold]Event Details[/bold]", classes="panel-title")
        yield Static(self.EMPTY_TEXT, id="record-details-content")

    def show_record(self, record: Record, visible: bool = True) -> None:
        """Display details for a record"""
        self._update(format_record_details(record, visible))

    def clear_details(self) -> None:
        """Clear the details display"""
        self._update(self.EMPTY_TEXT)

    def _update(self, text: str) -> None:
        try:
            content = self.query_one("#record-details-content", Static)
        except NoMatches:
            return
        content.update(text)
