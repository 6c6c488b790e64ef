"""
Quake Browser View Module - Main UI orchestration

Handles:
- Main view composition and layout
- Background ingestion with chunk-by-chunk display
- Search, magnitude, date range and sort coordination
- Windowing of the primary (paginated) and secondary (full) views
- Cross-view selection and details display
- Export of the filtered collection
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.timer import Timer
from textual.widgets import Button, Checkbox, Input, Label, Select

from QuakeView.browse.collection_view import CollectionView, ViewChange
from QuakeView.browse.ordering import ALL, build_filter, compare_by_field
from QuakeView.browse.paginator import Page, Paginator
from QuakeView.browse.selection import SelectionCoordinator, SelectionState, ViewRole
from QuakeView.browse.window_manager import WindowManager
from QuakeView.config import ViewerSettings
from QuakeView.feed.fetch_client import FetchClient
from QuakeView.feed.loader import FeedLoader, IngestStatus
from QuakeView.feed.response_cache import ResponseCache
from QuakeView.feed.stream_ingestor import (
    FileSource, IngestEvent, IngestOptions, StreamIngestor, TextSource, UrlSource,
)
from .components import (
    EventListPanel,
    IngestStatusPanel,
    PaginationPanel,
    QuakeFilterPanel,
    RecordDetailsPanel,
)
from .quake_table import EventList, QuakeTable, WindowedTable


logger = logging.getLogger(__name__)


class QuakeBrowserView(Vertical):
    """
    Earthquake catalogue browser

    Features:
    - Streaming load, rows appear as soon as the first chunk is parsed
    - Paginated primary table and a full-collection event list
    - Both views only materialize their visible window
    - Selecting an event in one view reveals it in the other
    """

    def __init__(self, settings: Optional[ViewerSettings] = None,
                 source_location: Optional[str] = None, **kwargs):
        """
        Initialize the browser

        Args:
            settings: Viewer settings, read from the environment when None
            source_location: Local CSV path or URL, the configured feed when None
        """
        super().__init__(**kwargs)
        self.settings = settings or ViewerSettings.from_env()
        self.source_location = source_location or self.settings.csv_url

        # Data pipeline
        self.cache = ResponseCache(ttl_seconds=self.settings.cache_ttl)
        self.client = FetchClient(
            timeout=self.settings.timeout,
            max_retries=self.settings.max_retries,
            retry_delay=self.settings.retry_delay,
            cache=self.cache,
        )
        self.collection = CollectionView(comparator=compare_by_field('time', descending=True))
        self.loader = FeedLoader(
            self.collection,
            StreamIngestor(),
            IngestOptions(
                chunk_size=self.settings.chunk_size,
                rejection_warning_threshold=self.settings.rejection_warning_threshold,
            ),
        )

        # Views over the collection
        self.paginator = Paginator(self.collection, page_size=self.settings.page_size)
        self.primary_window = WindowManager(
            self.paginator, item_height=1, container_height=20, overscan=self.settings.overscan
        )
        self.secondary_window = WindowManager(
            self.collection, item_height=1, container_height=20, overscan=self.settings.overscan
        )
        self.selection = SelectionCoordinator(self.collection)
        self.selection.register_view(ViewRole.PRIMARY, self.primary_window, self.paginator)
        self.selection.register_view(ViewRole.SECONDARY, self.secondary_window)

        # Filter state
        self.search_query = ""
        self.min_magnitude: Optional[float] = None
        self.max_magnitude: Optional[float] = None
        self.magnitude_range = ALL
        self.date_range = ALL
        self.sort_field = 'time'
        self.sort_descending = True
        self._search_timer: Optional[Timer] = None

        self._unsubscribers = [
            self.collection.subscribe(self._on_collection_changed),
            self.paginator.subscribe(self._on_page_changed),
            self.selection.subscribe(self._on_selection_changed),
            self.loader.subscribe(self._on_status_changed),
        ]

    def compose(self) -> ComposeResult:
        """Compose the browser layout"""
        with Container(id="quake-controls"):
            yield QuakeFilterPanel(id="quake-filter-panel")

        with Horizontal(id="quake-content"):
            # Primary table with pagination (65%)
            with Vertical(classes="main-panel", id="quake-main-panel"):
                yield Label("[bold]Earthquakes[/bold]", classes="section-title")
                yield QuakeTable(id="quake-table")
                yield PaginationPanel(id="pagination-panel")

            # Event list (15%)
            yield EventListPanel(classes="list-panel", id="event-list-panel")

            # Right sidebar (20%)
            with Vertical(classes="right-panel", id="quake-sidebar"):
                yield IngestStatusPanel(id="ingest-status-panel")
                yield RecordDetailsPanel(id="record-details-panel")

    def on_mount(self) -> None:
        """Start loading when the view is mounted"""
        self.start_loading()

    # Loading

    def make_source(self) -> TextSource:
        """Build the ingestion source for the configured location"""
        location = self.source_location
        if location.startswith(("http://", "https://")):
            return UrlSource(location, self.client)
        return FileSource(Path(location).expanduser())

    def start_loading(self) -> None:
        """Start a new ingestion generation in a background thread"""
        events = self.loader.start(self.make_source())
        self._run_ingestion(events)

    @work(exclusive=True, thread=True)
    def _run_ingestion(self, events: Iterator[IngestEvent]) -> None:
        """
        Pull ingestion events in a background thread

        Each event is applied on the UI thread before the next chunk is
        parsed.
        """
        try:
            for event in events:
                self.app.call_from_thread(self.loader.handle, event)
        except Exception as e:
            logger.exception("Ingestion worker crashed")
            if self.is_mounted:
                self.app.call_from_thread(self.notify, f"Error loading feed: {e}", severity="error")

    def handle_refresh(self) -> None:
        """Reload from the source, bypassing the response cache"""
        self.cache.invalidate(self.source_location)
        self.start_loading()
        self.notify("Refreshing earthquake feed", severity="information")

    # Collection, page, selection and status listeners

    def _on_collection_changed(self, change: ViewChange) -> None:
        if change in (ViewChange.SORTED, ViewChange.FILTERED):
            self.primary_window.reset()
            self.secondary_window.reset()
        else:
            self.primary_window.sync()
            self.secondary_window.sync()
        self.selection.refresh_visibility()
        self._render_views()

    def _on_page_changed(self, page: Page) -> None:
        self.primary_window.reset()
        self._render_views()

    def _on_selection_changed(self, state: SelectionState) -> None:
        self._render_views()
        self._show_details(state)

    def _on_status_changed(self, status: IngestStatus) -> None:
        panel = self.query_one("#ingest-status-panel", IngestStatusPanel)
        panel.show_status(status, self.collection.total_count)

    # Rendering

    def _render_views(self, primary_cursor: Optional[int] = None,
                      secondary_cursor: Optional[int] = None) -> None:
        if not self.is_mounted:
            return
        selected_id = self.selection.state.selected_id

        table = self.query_one("#quake-table", QuakeTable)
        table.show_window(self.primary_window.snapshot(), len(self.paginator),
                          primary_cursor, selected_id)

        event_list = self.query_one("#event-list", EventList)
        event_list.show_window(self.secondary_window.snapshot(), len(self.collection),
                               secondary_cursor, selected_id)

        pagination = self.query_one("#pagination-panel", PaginationPanel)
        pagination.current_page = self.paginator.current_page
        pagination.total_pages = self.paginator.total_pages
        pagination.record_count = len(self.collection)

    def _show_details(self, state: SelectionState) -> None:
        details = self.query_one("#record-details-panel", RecordDetailsPanel)
        record = self.selection.selected_record
        if record is None:
            details.clear_details()
        else:
            details.show_record(record, state.visible)

    def _settle_primary(self) -> None:
        """Reveal the selection on a page that was just shown"""
        if self.selection.settle(ViewRole.PRIMARY) is not None:
            self._render_views()

    # Filtering and sorting

    def _apply_filters(self) -> None:
        try:
            predicate = build_filter(
                search=self.search_query,
                min_magnitude=self.min_magnitude,
                max_magnitude=self.max_magnitude,
                magnitude_range=self.magnitude_range,
                date_range=self.date_range,
            )
        except ValueError as e:
            self.notify(str(e), severity="warning")
            return
        self.collection.set_predicate(predicate)

    def _read_magnitude_bounds(self) -> bool:
        """Read the min / max inputs, False when they are not a usable range"""
        bounds = []
        for input_id in ("#min-magnitude-input", "#max-magnitude-input"):
            text = self.query_one(input_id, Input).value.strip()
            if not text:
                bounds.append(None)
                continue
            try:
                bounds.append(float(text))
            except ValueError:
                self.notify(f"Invalid magnitude: {text}", severity="warning")
                return False
        minimum, maximum = bounds
        if minimum is not None and maximum is not None and minimum > maximum:
            self.notify("Min magnitude is above max magnitude", severity="warning")
            return False
        self.min_magnitude, self.max_magnitude = minimum, maximum
        return True

    def _apply_sort(self) -> None:
        self.collection.set_comparator(compare_by_field(self.sort_field, self.sort_descending))

    # Event Handlers

    @on(Input.Changed, "#quake-search-input")
    def handle_search_changed(self, event: Input.Changed) -> None:
        """Handle search input changes with debouncing"""
        self.search_query = event.value

        if self._search_timer:
            self._search_timer.stop()

        # Debounce search - wait 300ms after last keystroke
        self._search_timer = self.set_timer(0.3, self._perform_search)

    def _perform_search(self) -> None:
        self._search_timer = None
        self._apply_filters()

    @on(Input.Submitted, "#min-magnitude-input")
    @on(Input.Submitted, "#max-magnitude-input")
    def handle_magnitude_bounds(self, event: Input.Submitted) -> None:
        """Apply the magnitude bounds when Enter is pressed in either input"""
        if self._read_magnitude_bounds():
            self._apply_filters()

    @on(Select.Changed, "#magnitude-range-select")
    def handle_magnitude_range(self, event: Select.Changed) -> None:
        self.magnitude_range = ALL if event.value == Select.BLANK else event.value
        self._apply_filters()

    @on(Select.Changed, "#date-range-select")
    def handle_date_range(self, event: Select.Changed) -> None:
        self.date_range = ALL if event.value == Select.BLANK else event.value
        self._apply_filters()

    @on(Select.Changed, "#sort-field-select")
    def handle_sort_field(self, event: Select.Changed) -> None:
        if event.value == Select.BLANK or event.value == self.sort_field:
            return
        self.sort_field = event.value
        self._apply_sort()

    @on(Checkbox.Changed, "#sort-descending-checkbox")
    def handle_sort_direction(self, event: Checkbox.Changed) -> None:
        if event.value == self.sort_descending:
            return
        self.sort_descending = event.value
        self._apply_sort()

    @on(Button.Pressed, "#reset-filters-btn")
    def handle_reset_filters(self) -> None:
        """Clear search, magnitude and date filters"""
        for input_id in ("#quake-search-input", "#min-magnitude-input", "#max-magnitude-input"):
            self.query_one(input_id, Input).value = ""
        self.query_one("#magnitude-range-select", Select).value = Select.BLANK
        self.query_one("#date-range-select", Select).value = Select.BLANK
        self.search_query = ""
        self.min_magnitude = None
        self.max_magnitude = None
        self.magnitude_range = ALL
        self.date_range = ALL
        self._apply_filters()
        self.notify("Filters reset", severity="information")

    @on(Button.Pressed, "#prev-page-btn")
    def handle_previous_page(self) -> None:
        self.paginator.previous_page()

    @on(Button.Pressed, "#next-page-btn")
    def handle_next_page(self) -> None:
        self.paginator.next_page()

    @on(Button.Pressed, "#retry-load-btn")
    def handle_retry(self) -> None:
        self.start_loading()

    @on(WindowedTable.ScrollRequested)
    def handle_scroll_requested(self, event: WindowedTable.ScrollRequested) -> None:
        """Move the window of the table that hit its edge"""
        if event.table.id == "quake-table":
            self.primary_window.scroll_by(event.delta)
            self._render_views(primary_cursor=event.cursor_position)
        else:
            self.secondary_window.scroll_by(event.delta)
            self._render_views(secondary_cursor=event.cursor_position)

    @on(WindowedTable.ViewportResized)
    def handle_viewport_resized(self, event: WindowedTable.ViewportResized) -> None:
        if event.table.id == "quake-table":
            self.primary_window.resize(event.height)
        else:
            self.secondary_window.resize(event.height)
        self._render_views()

    def on_data_table_row_selected(self, event) -> None:
        """Handle row activation in either view"""
        if event.row_key is None or event.row_key.value is None:
            return

        if event.data_table.id == "quake-table":
            role = ViewRole.PRIMARY
        elif event.data_table.id == "event-list":
            role = ViewRole.SECONDARY
        else:
            return

        requests = self.selection.select(event.row_key.value, role)
        if any(request.page_changed for request in requests):
            self.call_after_refresh(self._settle_primary)

    # Actions forwarded from the app bindings

    def next_page(self) -> None:
        self.paginator.next_page()

    def previous_page(self) -> None:
        self.paginator.previous_page()

    def clear_selection(self) -> None:
        self.selection.clear_selection()

    def export_records(self) -> Optional[Path]:
        """
        Export the filtered, sorted collection to a JSON file

        Returns:
            Path of the export, None when there was nothing to export
        """
        if not len(self.collection):
            self.notify("No events to export", severity="warning")
            return None

        export_dir = Path(self.settings.log_dir)
        export_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        export_file = export_dir / f"quakes_{timestamp}.json"

        try:
            export_data = {
                'exported_at': datetime.now().isoformat(),
                'source': self.source_location,
                'total_records': len(self.collection),
                'records': [record.to_dict() for record in self.collection],
            }
            with open(export_file, 'w', encoding='utf-8') as f:
                json.dump(export_data, f, indent=2, default=str)
        except OSError as e:
            logger.error(f"Export failed: {e}")
            self.notify(f"Export failed: {e}", severity="error")
            return None

        self.notify(f"Exported {len(self.collection)} events to {export_file.name}",
                    severity="information")
        return export_file

    def on_unmount(self) -> None:
        """Clean up when view is unmounted"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self.paginator.detach()
        self.loader.cancel()
        if self._search_timer:
            self._search_timer.stop()
            self._search_timer = None
