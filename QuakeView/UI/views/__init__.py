"""
QuakeView UI Views Package
"""

from .quake_browser import QuakeBrowserView

__all__ = [
    'QuakeBrowserView',
]
