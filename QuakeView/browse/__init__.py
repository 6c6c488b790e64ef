"""
Browse Package - Windowed, paginated views over the record collection

Package Structure:
- collection_view: Ordered, filtered, deduplicated collection (CollectionView)
- paginator: Fixed-size pages (Paginator)
- window_manager: Visible window computation (WindowManager, compute_window)
- selection: Cross-view selection (SelectionCoordinator)
- ordering: Comparators and predicates
"""

from .collection_view import CollectionView, ViewChange, ViewInvariantError
from .paginator import Page, Paginator
from .window_manager import WindowManager, WindowRange, WindowSnapshot, compute_window
from .selection import RepositionRequest, SelectionCoordinator, SelectionState, ViewRole

__all__ = [
    'CollectionView',
    'ViewChange',
    'ViewInvariantError',
    'Page',
    'Paginator',
    'WindowManager',
    'WindowRange',
    'WindowSnapshot',
    'compute_window',
    'SelectionCoordinator',
    'SelectionState',
    'RepositionRequest',
    'ViewRole',
]
