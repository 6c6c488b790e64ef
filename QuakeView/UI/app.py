"""
QuakeView Main Application - Earthquake catalogue browser using Textual
"""
from typing import Optional

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header

from QuakeView.config import ViewerSettings
from QuakeView.UI.views.quake_browser import QuakeBrowserView


class QuakeViewApp(App):
    """Streaming earthquake catalogue browser - Terminal UI Application"""

    TITLE = "QuakeView - Earthquake Catalogue Browser"
    CSS_PATH = "quakeview.tcss"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("n", "next_page", "Next Page"),
        ("p", "previous_page", "Prev Page"),
        ("c", "clear_selection", "Clear Selection"),
        ("e", "export", "Export"),
    ]

    def __init__(self, settings: Optional[ViewerSettings] = None,
                 source_location: Optional[str] = None):
        super().__init__()
        self.settings = settings or ViewerSettings.from_env()
        self.source_location = source_location

    def compose(self) -> ComposeResult:
        """Compose the main UI layout"""
        yield Header(show_clock=True)
        yield QuakeBrowserView(self.settings, self.source_location, id="quake-browser-view")
        yield Footer()

    @property
    def browser(self) -> QuakeBrowserView:
        return self.query_one("#quake-browser-view", QuakeBrowserView)

    def action_refresh(self) -> None:
        """Reload the feed as a new ingestion"""
        self.browser.handle_refresh()

    def action_next_page(self) -> None:
        self.browser.next_page()

    def action_previous_page(self) -> None:
        self.browser.previous_page()

    def action_clear_selection(self) -> None:
        self.browser.clear_selection()

    def action_export(self) -> None:
        self.browser.export_records()


def run_app(source_location: Optional[str] = None, settings: Optional[ViewerSettings] = None) -> None:
    """Entry point to run the QuakeView application"""
    app = QuakeViewApp(settings, source_location)
    app.run()


if __name__ == "__main__":
    run_app()
