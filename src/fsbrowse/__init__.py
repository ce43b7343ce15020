"""
fsbrowse - Core Package

Concurrent directory listing, cached browsing and bounded recursive search
over the local filesystem.
"""

__version__ = "0.1.0"
__author__ = "fsbrowse Team"

from .browser import FileBrowser, get_browser

__all__ = ['FileBrowser', 'get_browser']
