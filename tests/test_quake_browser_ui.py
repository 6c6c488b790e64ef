"""
Unit tests for the quake browser UI
"""
import asyncio

import pytest
from rich.markup import render
from rich.text import Text
from textual.widgets import Input, Select

from QuakeView.browse.selection import ViewRole
from QuakeView.config import ViewerSettings
from QuakeView.feed.loader import LoadState
from QuakeView.UI.app import QuakeViewApp
from QuakeView.UI.views.quake_browser import QuakeBrowserView, QuakeTable
from QuakeView.UI.views.quake_browser.components import format_record_details
from QuakeView.UI.views.quake_browser.quake_table import (
    format_compact_row, format_record_row, format_time, magnitude_style, truncate,
)
from conftest import build_csv, csv_line, make_record


class TestFormatting:
    """Test row formatting helpers"""

    def test_format_record_row(self):
        record = make_record("a", mag="4.7", depth="12.34", latitude="61.2", longitude="-149.9",
                             place="Anchorage, Alaska", time="2024-02-03T04:05:06.000Z")
        row = format_record_row(record)

        assert row[0] == "2024-02-03 04:05:06"
        assert isinstance(row[1], Text)
        assert row[1].plain == "4.7"
        assert row[3] == "12.3 km"
        assert row[4] == "Anchorage, Alaska"
        assert row[5] == "61.200, -149.900"
        assert row[6] == "Reviewed"
        assert len(row) == len(QuakeTable.COLUMNS)

    def test_flagged_place_is_highlighted(self):
        record = make_record("a", depth="2000")
        assert isinstance(format_record_row(record)[4], Text)

    def test_long_place_truncated(self):
        record = make_record("a", place="x" * 100)
        assert len(format_record_row(record, max_place_length=20)[4]) == 20
        assert truncate("short", 20) == "short"

    def test_compact_row(self):
        row = format_compact_row(make_record("a", mag="6.1", place="Off the coast"))
        assert row[0].plain == "6.1"
        assert row[1] == "Off the coast"

    @pytest.mark.parametrize("magnitude,style", [
        (6.0, "bold red"), (5.0, "dark_orange"), (3.0, "yellow"), (1.2, "grey62"),
    ])
    def test_magnitude_style(self, magnitude, style):
        assert magnitude_style(magnitude) == style

    def test_format_time_fallback(self):
        assert format_time("not a time") == "not a time"
        assert format_time("") == "-"

    def test_details_show_brackets_from_feed_as_text(self):
        record = make_record("a", magType="[/bogus]", status="[red", type="[/]",
                             net="[b]us[/b]", place="[i]Somewhere")
        plain = render(format_record_details(record, visible=False)).plain

        assert "([/bogus])" in plain
        assert "Status: [red" in plain
        assert "Type: [/]" in plain
        assert "Network: [b]us[/b]" in plain
        assert "Location: [i]Somewhere" in plain
        assert "Hidden by the current filter" in plain


@pytest.fixture
def feed_file(tmp_path):
    lines = [csv_line(f"q{i:03d}", mag=f"{i % 9}.0",
                      time=f"2024-01-{1 + i // 24:02d}T{i % 24:02d}:00:00.000Z")
             for i in range(120)]
    path = tmp_path / "all_month.csv"
    path.write_text(build_csv(lines), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path):
    return ViewerSettings(log_dir=str(tmp_path / "logs"), chunk_size=25, page_size=50)


class TestQuakeBrowserApp:
    """Drive the app headless against a local CSV file"""

    def test_loads_and_pages(self, feed_file, settings):
        async def scenario():
            app = QuakeViewApp(settings, str(feed_file))
            async with app.run_test(size=(160, 50)) as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()

                browser = app.query_one(QuakeBrowserView)
                assert browser.loader.status.state == LoadState.COMPLETE
                assert len(browser.collection) == 120
                assert browser.paginator.total_pages == 3

                table = app.query_one("#quake-table", QuakeTable)
                assert 0 < table.row_count <= 50

                table.focus()
                await pilot.pause()

                await pilot.press("n")
                await pilot.pause()
                assert browser.paginator.current_page == 2

                await pilot.press("p")
                await pilot.pause()
                assert browser.paginator.current_page == 1

        asyncio.run(scenario())

    def test_selection_from_event_list_moves_table_page(self, feed_file, settings):
        async def scenario():
            app = QuakeViewApp(settings, str(feed_file))
            async with app.run_test(size=(160, 50)) as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()

                browser = app.query_one(QuakeBrowserView)
                target = browser.collection.query(110)
                browser.selection.select(target.id, ViewRole.SECONDARY)
                await pilot.pause()

                assert browser.paginator.current_page == 3
                assert browser.selection.state.selected_id == target.id

                app.query_one("#quake-table", QuakeTable).focus()

                await pilot.press("c")
                await pilot.pause()
                assert browser.selection.state.selected_id is None

        asyncio.run(scenario())

    def test_range_and_magnitude_controls_filter(self, feed_file, settings):
        async def scenario():
            app = QuakeViewApp(settings, str(feed_file))
            async with app.run_test(size=(160, 50)) as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()
                browser = app.query_one(QuakeBrowserView)

                app.query_one("#magnitude-range-select", Select).value = "strong"
                await pilot.pause()
                assert len(browser.collection) == 13
                assert all(5.0 <= r.magnitude < 6.0 for r in browser.collection)

                app.query_one("#magnitude-range-select", Select).value = Select.BLANK
                app.query_one("#min-magnitude-input", Input).value = "3"
                max_input = app.query_one("#max-magnitude-input", Input)
                max_input.value = "4"
                max_input.focus()
                await pilot.press("enter")
                await pilot.pause()
                assert browser.min_magnitude == 3.0
                assert browser.max_magnitude == 4.0
                assert len(browser.collection) == 26

                app.query_one("#date-range-select", Select).value = "30days"
                await pilot.pause()
                assert len(browser.collection) == 0

                browser.handle_reset_filters()
                await pilot.pause()
                assert len(browser.collection) == 120

        asyncio.run(scenario())

    def test_missing_file_shows_failure(self, tmp_path, settings):
        async def scenario():
            app = QuakeViewApp(settings, str(tmp_path / "nowhere.csv"))
            async with app.run_test() as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()

                browser = app.query_one(QuakeBrowserView)
                assert browser.loader.status.state == LoadState.FAILED
                assert len(browser.collection) == 0

        asyncio.run(scenario())

    def test_export(self, feed_file, settings):
        async def scenario():
            app = QuakeViewApp(settings, str(feed_file))
            async with app.run_test() as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()
                return app.query_one(QuakeBrowserView).export_records()

        path = asyncio.run(scenario())
        assert path is not None
        assert path.exists()
        assert '"total_records": 120' in path.read_text()
