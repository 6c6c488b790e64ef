"""
Quake Browser Package - Windowed earthquake catalogue browser

This package provides the browsing interface with:
- Streaming load with progress and retry
- Paginated, windowed primary table
- Full-collection event list kept in sync with the table
- Search, magnitude filter and sort controls
- Export of the filtered catalogue (JSON format)

Package Structure:
- view: Main view orchestration (QuakeBrowserView)
- components: UI panels and controls (QuakeFilterPanel, PaginationPanel, etc.)
- quake_table: Windowed table widgets (QuakeTable, EventList)
"""

# Import main view for backward compatibility
from .view import QuakeBrowserView

# Import components for external use
from .components import (
    QuakeFilterPanel,
    PaginationPanel,
    IngestStatusPanel,
    EventListPanel,
    RecordDetailsPanel
)
from .quake_table import QuakeTable, EventList, WindowedTable

__all__ = [
    # Main view
    'QuakeBrowserView',

    # UI components
    'QuakeFilterPanel',
    'PaginationPanel',
    'IngestStatusPanel',
    'EventListPanel',
    'RecordDetailsPanel',

    # Tables
    'QuakeTable',
    'EventList',
    'WindowedTable',
]
