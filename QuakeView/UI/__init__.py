"""
QuakeView UI Package - Textual terminal interface
"""

from .app import QuakeViewApp, run_app

__all__ = [
    'QuakeViewApp',
    'run_app',
]
