"""
Unit tests for cross-view selection
"""
from unittest.mock import Mock, patch

import pytest

from QuakeView.browse.collection_view import CollectionView
from QuakeView.browse.paginator import Paginator
from QuakeView.browse.selection import SelectionCoordinator, SelectionState, ViewRole
from QuakeView.browse.window_manager import WindowManager


@pytest.fixture
def browser(numbered_records):
    """Collection of 1000, paginated primary view and full secondary view"""
    collection = CollectionView()
    collection.apply(numbered_records(1000))
    paginator = Paginator(collection, page_size=50)
    primary = WindowManager(paginator, item_height=1, container_height=20, overscan=2)
    secondary = WindowManager(collection, item_height=1, container_height=20, overscan=2)

    coordinator = SelectionCoordinator(collection)
    coordinator.register_view(ViewRole.PRIMARY, primary, paginator)
    coordinator.register_view(ViewRole.SECONDARY, secondary)

    return Mock(collection=collection, paginator=paginator, primary=primary,
                secondary=secondary, coordinator=coordinator)


class TestSelectionCoordinator:
    """Test repositioning, paging and the feedback guard"""

    def test_follow_selection_to_another_page(self, browser):
        """Test selecting an item on page 3 while on page 1 moves to page 3 at offset 0"""
        browser.primary.scroll_to(15)

        with patch.object(browser.paginator, 'go_to_page', wraps=browser.paginator.go_to_page) as go_to_page:
            requests = browser.coordinator.select("q120", ViewRole.SECONDARY)

        go_to_page.assert_called_once_with(3)
        assert browser.paginator.current_page == 3
        assert browser.primary.scroll_offset == 0
        assert len(requests) == 1
        assert requests[0].role == ViewRole.PRIMARY
        assert requests[0].page == 3
        assert requests[0].page_changed

    def test_settle_reveals_after_page_change(self, browser):
        browser.coordinator.select("q120", ViewRole.SECONDARY)

        request = browser.coordinator.settle(ViewRole.PRIMARY)
        assert request is not None
        assert 20 in browser.primary.visible_range
        assert browser.primary.scroll_offset == 20 - 10 + 0.5

        assert browser.coordinator.settle(ViewRole.PRIMARY) is None

    def test_settle_ignores_superseded_selection(self, browser):
        browser.coordinator.select("q120", ViewRole.SECONDARY)
        browser.coordinator.clear_selection()
        assert browser.coordinator.settle(ViewRole.PRIMARY) is None
        assert browser.primary.scroll_offset == 0

    def test_same_page_centres(self, browser):
        browser.paginator.go_to_page(3)
        requests = browser.coordinator.select("q140", ViewRole.SECONDARY)

        assert browser.paginator.current_page == 3
        assert not requests[0].page_changed
        assert 40 in browser.primary.visible_range

    def test_primary_selection_reveals_in_secondary(self, browser):
        """Test a table click centres the event list on the global index"""
        requests = browser.coordinator.select("q700", ViewRole.PRIMARY)

        assert [r.role for r in requests] == [ViewRole.SECONDARY]
        assert 700 in browser.secondary.visible_range
        assert browser.secondary.scroll_offset == 700 - 10 + 0.5

    def test_selecting_last_record_keeps_secondary_in_extent(self, browser):
        browser.coordinator.select("q999", ViewRole.PRIMARY)
        assert 999 in browser.secondary.visible_range
        assert browser.secondary.scroll_offset == 1000 - 20

    def test_feedback_guard(self, browser):
        """Test the originating view is never repositioned"""
        browser.primary.scroll_to(5)
        browser.secondary.scroll_to(300)

        browser.coordinator.select("q30", ViewRole.PRIMARY)
        assert browser.primary.scroll_offset == 5
        assert browser.paginator.current_page == 1

        browser.coordinator.select("q900", ViewRole.SECONDARY)
        secondary_offset = browser.secondary.scroll_offset
        assert secondary_offset != 900 - 10 + 0.5
        assert browser.paginator.current_page == 19

    def test_programmatic_selection_moves_every_view(self, browser):
        requests = browser.coordinator.select("q260")
        assert {r.role for r in requests} == {ViewRole.PRIMARY, ViewRole.SECONDARY}
        assert browser.paginator.current_page == 6
        assert 260 in browser.secondary.visible_range

    def test_round_trip(self, browser):
        """Test selecting in one view then the other keeps both consistent"""
        browser.coordinator.select("q75", ViewRole.SECONDARY)
        browser.coordinator.settle(ViewRole.PRIMARY)
        assert browser.paginator.current_page == 2
        assert 25 in browser.primary.visible_range

        browser.coordinator.select("q75", ViewRole.PRIMARY)
        assert 75 in browser.secondary.visible_range
        assert browser.coordinator.state == SelectionState("q75", ViewRole.PRIMARY, True)

    def test_filtered_out_selection(self, browser):
        """Test a hidden id is marked not visible and windows stay put"""
        browser.collection.set_predicate(lambda record: record.id != "q500")
        browser.secondary.scroll_to(40)

        requests = browser.coordinator.select("q500", ViewRole.PRIMARY)
        assert requests == []
        assert browser.coordinator.state.selected_id == "q500"
        assert not browser.coordinator.state.visible
        assert browser.secondary.scroll_offset == 40

    def test_unknown_id(self, browser):
        requests = browser.coordinator.select("missing", ViewRole.SECONDARY)
        assert requests == []
        assert not browser.coordinator.state.visible

    def test_refresh_visibility(self, browser):
        listener = Mock()
        browser.coordinator.subscribe(listener)
        browser.coordinator.select("q10", ViewRole.PRIMARY)
        assert listener.call_count == 1

        browser.collection.set_predicate(lambda record: record.id != "q10")
        state = browser.coordinator.refresh_visibility()
        assert not state.visible
        assert listener.call_count == 2

        browser.collection.set_predicate(None)
        assert browser.coordinator.refresh_visibility().visible
        assert listener.call_count == 3

    def test_clear_selection(self, browser):
        browser.coordinator.select("q300", ViewRole.PRIMARY)
        offset = browser.secondary.scroll_offset

        browser.coordinator.clear_selection()
        assert browser.coordinator.state == SelectionState()
        assert not browser.coordinator.state.has_selection
        assert browser.coordinator.selected_record is None
        assert browser.secondary.scroll_offset == offset

    def test_selected_record(self, browser):
        browser.coordinator.select("q42", ViewRole.PRIMARY)
        assert browser.coordinator.selected_record.id == "q42"

    def test_listener_sees_repositioned_windows(self, browser):
        seen = []
        browser.coordinator.subscribe(lambda state: seen.append(
            (state.selected_id, browser.secondary.visible_range)
        ))
        browser.coordinator.select("q600", ViewRole.PRIMARY)
        assert seen[0][0] == "q600"
        assert 600 in seen[0][1]
