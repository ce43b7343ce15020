"""
Listing, search and mutation tools for fsbrowse.

This package contains the pattern matcher, metadata enricher, directory
lister and cache, the recursive search engine and the mutation collaborator.
"""

from .dir_cache import DirectoryCache
from .lister import DirectoryLister
from .matcher import matches
from .metadata import MetadataEnricher
from .mutations import DirectoryMutator, get_home_directory
from .search import SearchEngine, SearchState
from .sinks import (
    CallbackChannel,
    CollectingSink,
    NotificationChannel,
    QueueChannel,
    ResultSink,
    SearchEvent,
    StreamingSink,
)

__all__ = [
    'CallbackChannel',
    'CollectingSink',
    'DirectoryCache',
    'DirectoryLister',
    'DirectoryMutator',
    'MetadataEnricher',
    'NotificationChannel',
    'QueueChannel',
    'ResultSink',
    'SearchEngine',
    'SearchEvent',
    'SearchState',
    'StreamingSink',
    'get_home_directory',
    'matches',
]
