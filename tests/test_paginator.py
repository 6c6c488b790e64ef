"""
Unit tests for pagination over the collection view
"""
from unittest.mock import Mock

import pytest

from QuakeView.browse.collection_view import CollectionView
from QuakeView.browse.ordering import compare_by_field
from QuakeView.browse.paginator import Paginator


@pytest.fixture
def view(numbered_records):
    collection = CollectionView()
    collection.apply(numbered_records(1000))
    return collection


class TestPaginator:
    """Test navigation, clamping and page resets"""

    def test_total_pages(self, view):
        paginator = Paginator(view, page_size=50)
        assert paginator.total_pages == 20
        assert paginator.current_page == 1
        assert paginator.page.start == 0
        assert paginator.page.end == 50

    def test_partial_last_page(self, numbered_records):
        collection = CollectionView()
        collection.apply(numbered_records(101))
        paginator = Paginator(collection, page_size=50)
        assert paginator.total_pages == 3
        last = paginator.go_to_page(3)
        assert (last.start, last.end) == (100, 101)
        assert len(paginator) == 1

    def test_go_to_page_clamps(self, view):
        paginator = Paginator(view, page_size=50)
        assert paginator.go_to_page(99).number == 20
        assert paginator.go_to_page(0).number == 1
        assert paginator.go_to_page(-5).number == 1

    def test_next_and_previous(self, view):
        paginator = Paginator(view, page_size=50)
        paginator.next_page()
        paginator.next_page()
        assert paginator.current_page == 3
        paginator.previous_page()
        assert paginator.current_page == 2

        paginator.go_to_page(20)
        paginator.next_page()
        assert paginator.current_page == 20

    def test_empty_collection(self):
        paginator = Paginator(CollectionView(), page_size=50)
        assert paginator.total_pages == 0
        assert paginator.go_to_page(4).number == 1
        assert len(paginator) == 0
        assert paginator.slice(0, 10) == []

    def test_page_containing(self, view):
        paginator = Paginator(view, page_size=50)
        assert paginator.page_containing(0) == 1
        assert paginator.page_containing(49) == 1
        assert paginator.page_containing(50) == 2
        assert paginator.page_containing(120) == 3
        assert paginator.to_page_index(120) == 20

    def test_slice_is_relative_to_page(self, view):
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(3)
        records = paginator.slice(0, 5)
        assert [r.id for r in records] == [f"q{i}" for i in range(100, 105)]
        assert len(paginator.slice(45, 80)) == 5
        assert paginator.query(0).id == "q100"
        with pytest.raises(IndexError):
            paginator.query(50)

    def test_filter_resets_to_first_page(self, view):
        """Test 1000 records filtered down to 4 gives one page, page 1"""
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(7)

        wanted = {"q3", "q250", "q500", "q999"}
        view.set_predicate(lambda record: record.id in wanted)

        assert len(view) == 4
        assert paginator.total_pages == 1
        assert paginator.current_page == 1

    def test_sort_resets_to_first_page(self, view):
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(5)
        view.set_comparator(compare_by_field('magnitude'))
        assert paginator.current_page == 1

    def test_detach_stops_following_view(self, view):
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(5)
        paginator.detach()

        view.set_comparator(compare_by_field('magnitude'))
        assert paginator.current_page == 5

    def test_shrinking_collection_clamps_page(self, view):
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(20)
        view.retain({f"q{i}" for i in range(120)})
        assert paginator.total_pages == 3
        assert paginator.current_page == 3

    def test_growing_collection_keeps_page(self, view, numbered_records):
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(4)
        view.apply(numbered_records(10, prefix="new"))
        assert paginator.current_page == 4

    def test_set_page_size_clamps(self, view):
        paginator = Paginator(view, page_size=50)
        paginator.go_to_page(20)
        paginator.set_page_size(100)
        assert paginator.total_pages == 10
        assert paginator.current_page == 10
        with pytest.raises(ValueError):
            paginator.set_page_size(0)

    def test_page_listeners(self, view):
        paginator = Paginator(view, page_size=50)
        listener = Mock()
        paginator.subscribe(listener)

        paginator.go_to_page(2)
        paginator.go_to_page(2)
        assert listener.call_count == 1
        assert listener.call_args.args[0].number == 2

