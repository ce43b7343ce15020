"""
Public operation surface of the filesystem browser.

FileBrowser wires one enricher, lister, cache, search engine and mutator
together from a BrowserConfig. ``get_browser()`` returns a lazily created
instance shared by the whole process, so every caller sees the same listing
cache.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from .config.parser import load_config
from .models.config import BrowserConfig
from .models.entries import DirectoryListing, FileSystemEntry
from .models.search_request import SearchRequest
from .tools.dir_cache import DirectoryCache
from .tools.lister import DirectoryLister
from .tools.metadata import MetadataEnricher
from .tools.mutations import DirectoryMutator, get_home_directory
from .tools.search import SearchEngine
from .tools.sinks import NotificationChannel


logger = logging.getLogger(__name__)


class FileBrowser:
    """
    Lists, searches and mutates the local filesystem.

    Args:
        config: Browser configuration; defaults are used when omitted
        cache: Pre-built listing cache, e.g. one with a fake clock in tests
    """

    def __init__(self, config: Optional[BrowserConfig] = None,
                 cache: Optional[DirectoryCache] = None):
        self.config = config or BrowserConfig()
        self.enricher = MetadataEnricher()
        self.lister = DirectoryLister(self.enricher)
        if cache is None:
            cache = DirectoryCache(self.lister, ttl_seconds=self.config.cache.ttl_seconds)
        self.cache = cache
        self.engine = SearchEngine(self.enricher, self.config.search)
        self.mutator = DirectoryMutator(self.cache)

    @classmethod
    def from_config(cls, config_path: Optional[Union[str, Path]] = None) -> 'FileBrowser':
        """
        Build a browser from a YAML configuration file or the discovered default.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        result = load_config(config_path)
        for warning in result.warnings:
            logger.warning(f"Configuration: {warning}")
        return cls(result.config)

    def _request(self, path: str, query: str, max_depth: Optional[int],
                 max_results: Optional[int]) -> SearchRequest:
        return SearchRequest.build(
            path,
            query,
            max_depth=self.config.search.max_depth if max_depth is None else max_depth,
            max_results=self.config.search.max_results if max_results is None else max_results,
        )

    async def list_directory(self, path: str) -> DirectoryListing:
        """
        List a directory, served from cache while the listing is fresh.

        Raises:
            PathNotFound, PathNotADirectory, ReadFailure
        """
        return await self.cache.get_or_list(path)

    async def search_files(self, path: str, query: str, max_depth: Optional[int] = None,
                           max_results: Optional[int] = None) -> List[FileSystemEntry]:
        """
        Search a subtree and return every accepted match, sorted.

        Raises:
            PathNotFound, PathNotADirectory
        """
        return await self.engine.search_batch(self._request(path, query, max_depth, max_results))

    async def search_files_streaming(self, path: str, query: str, channel: NotificationChannel,
                                     max_depth: Optional[int] = None,
                                     max_results: Optional[int] = None) -> None:
        """
        Search a subtree, emitting matches through ``channel`` as they are found.

        Raises:
            PathNotFound, PathNotADirectory
        """
        await self.engine.search_streaming(self._request(path, query, max_depth, max_results), channel)

    async def create_file(self, path: str) -> None:
        await self.mutator.create_file(path)

    async def create_directory(self, path: str) -> None:
        await self.mutator.create_directory(path)

    async def rename_item(self, old_path: str, new_name: str) -> str:
        return await self.mutator.rename(old_path, new_name)

    async def delete_item(self, path: str) -> None:
        await self.mutator.delete(path)

    def invalidate(self, path: str, recursive: bool = False) -> int:
        """Force the next listing of ``path`` (and optionally its subtree) to read the filesystem."""
        return self.cache.invalidate(path, recursive=recursive)

    def get_home_directory(self) -> str:
        return get_home_directory()


@lru_cache(maxsize=1)
def get_browser() -> FileBrowser:
    """Get the process-wide browser, configured from the discovered config file."""
    return FileBrowser.from_config()
