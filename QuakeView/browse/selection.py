"""
Selection Module - Single cross-view selection kept consistent across views

Handles:
- One selected record shared by the primary and secondary views
- Repositioning every other view so the selection becomes visible
- Following the selection across pages in paginated views
- Feedback-loop guard: the view that originated a selection is never moved
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from QuakeView.feed.record_codec import Record
from .collection_view import CollectionView
from .paginator import Paginator
from .window_manager import WindowManager


class ViewRole(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class SelectionState:
    """Current selection, replaced as a whole on every change"""
    selected_id: Optional[str] = None
    source: Optional[ViewRole] = None
    visible: bool = True

    @property
    def has_selection(self) -> bool:
        return self.selected_id is not None


@dataclass(frozen=True)
class RepositionRequest:
    """A window movement issued on behalf of the selection"""
    role: ViewRole
    index: int
    scroll_offset: float
    page: Optional[int] = None
    page_changed: bool = False


@dataclass
class _RegisteredView:
    role: ViewRole
    window: WindowManager
    paginator: Optional[Paginator] = None
    pending_reveal: Optional[str] = None


class SelectionCoordinator:
    """
    Owns the SelectionState and moves registered windows to reveal it

    Listeners are called with the new SelectionState after the windows have
    been repositioned, so they can render straight from the windows.
    """

    def __init__(self, view: CollectionView):
        self.view = view
        self._state = SelectionState()
        self._views: Dict[ViewRole, _RegisteredView] = {}
        self._listeners: List[Callable[[SelectionState], None]] = []
        self.logger = logging.getLogger(__name__)

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selected_record(self) -> Optional[Record]:
        if self._state.selected_id is None:
            return None
        return self.view.get(self._state.selected_id)

    def register_view(self, role: ViewRole, window: WindowManager,
                      paginator: Optional[Paginator] = None) -> None:
        """Attach a window (and its paginator, if paginated) under a role"""
        self._views[role] = _RegisteredView(role, window, paginator)

    def subscribe(self, listener: Callable[[SelectionState], None]) -> Callable[[], None]:
        """
        Register a selection listener

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select(self, record_id: str, source: Optional[ViewRole] = None) -> List[RepositionRequest]:
        """
        Select a record and reveal it in every view other than source

        Args:
            record_id: Id of the record to select
            source: Role of the view the selection came from, None for a
                programmatic selection that moves every view

        Returns:
            Reposition requests issued, empty when the record is not in the
            ordered collection (state is then marked not visible)
        """
        index = self.view.index_of(record_id)
        self._state = SelectionState(record_id, source, index != -1)
        for registered in self._views.values():
            registered.pending_reveal = None

        requests = []
        if index == -1:
            self.logger.debug(f"Selected {record_id} is not in the current view")
        else:
            for role, registered in self._views.items():
                if source is not None and role == source:
                    continue
                requests.append(self._reposition(registered, record_id, index))

        self._notify()
        return requests

    def clear_selection(self) -> None:
        """Drop the selection, windows stay where they are"""
        self._state = SelectionState()
        for registered in self._views.values():
            registered.pending_reveal = None
        self._notify()

    def refresh_visibility(self) -> SelectionState:
        """Recheck whether the selected record is still in the ordered collection"""
        if self._state.selected_id is None:
            return self._state
        visible = self.view.index_of(self._state.selected_id) != -1
        if visible != self._state.visible:
            self._state = SelectionState(self._state.selected_id, self._state.source, visible)
            self._notify()
        return self._state

    def settle(self, role: ViewRole) -> Optional[RepositionRequest]:
        """
        Reveal a selection that moved this view to another page

        Called once the new page has been rendered. Returns the request
        issued, or None when nothing was pending.
        """
        registered = self._views.get(role)
        if registered is None or registered.pending_reveal is None:
            return None

        record_id = registered.pending_reveal
        registered.pending_reveal = None
        if record_id != self._state.selected_id:
            return None

        index = self.view.index_of(record_id)
        if index == -1:
            return None

        paginator = registered.paginator
        if paginator is not None and paginator.page_containing(index) != paginator.current_page:
            return None

        local = paginator.to_page_index(index) if paginator is not None else index
        registered.window.center_on(local)
        return RepositionRequest(role, index, registered.window.scroll_offset,
                                 paginator.current_page if paginator is not None else None)

    def _reposition(self, registered: _RegisteredView, record_id: str, index: int) -> RepositionRequest:
        paginator = registered.paginator
        window = registered.window

        if paginator is not None:
            target = paginator.page_containing(index)
            if target != paginator.current_page:
                paginator.go_to_page(target)
                window.reset()
                registered.pending_reveal = record_id
                self.logger.debug(f"{registered.role.value} view moved to page {target} for {record_id}")
                return RepositionRequest(registered.role, index, window.scroll_offset, target, True)
            local = paginator.to_page_index(index)
        else:
            local = index

        window.center_on(local)
        return RepositionRequest(
            registered.role, index, window.scroll_offset,
            paginator.current_page if paginator is not None else None
        )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)
