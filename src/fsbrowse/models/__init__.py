"""
Data models for the filesystem browser.

This module contains the core data structures used throughout the system.
"""

from .entries import DirectoryListing, EntryMetadata, FileSystemEntry, sort_entries
from .search_request import SearchRequest

__all__ = ['DirectoryListing', 'EntryMetadata', 'FileSystemEntry', 'SearchRequest', 'sort_entries']
