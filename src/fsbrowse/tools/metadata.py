"""
Metadata enrichment for filesystem entries.

Resolves size, modification time and direct child count for a path. Every
failure degrades to a None field; enrichment never raises, so one unreadable
entry cannot abort a listing or a search.
"""

import asyncio
import os
import logging
from pathlib import Path
from typing import Optional, Union

from ..models.entries import EntryMetadata


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _stat(path: PathLike) -> Optional[os.stat_result]:
    try:
        return os.stat(path)
    except OSError as e:
        logger.debug(f"Cannot stat {path}: {e}")
        return None


def format_modified(stat_result: Optional[os.stat_result]) -> Optional[str]:
    """
    Format a modification time as whole seconds since the epoch.

    Returns None when no stat result is available or the timestamp predates
    the epoch.
    """
    if stat_result is None:
        return None
    mtime = stat_result.st_mtime
    if mtime < 0:
        return None
    return str(int(mtime))


def count_directory_items(path: PathLike) -> Optional[int]:
    """
    Count the direct children of a directory without recursing.

    Returns None if the path is not a directory or cannot be scanned.
    """
    try:
        with os.scandir(path) as entries:
            return sum(1 for _ in entries)
    except (NotADirectoryError, FileNotFoundError):
        return None
    except OSError as e:
        logger.debug(f"Cannot count items in {path}: {e}")
        return None


class MetadataEnricher:
    """
    Resolves EntryMetadata for one path at a time.

    All filesystem calls run in worker threads so many entries can be
    enriched concurrently from one event loop.
    """

    async def resolve(self, path: PathLike, is_directory: bool,
                      include_item_count: bool = True) -> EntryMetadata:
        """
        Resolve metadata for a path.

        Args:
            path: Path of the entry
            is_directory: Whether the entry is a directory
            include_item_count: Whether to scan a directory for its child count

        Returns:
            EntryMetadata with None for anything unavailable
        """
        stat_result = await asyncio.to_thread(_stat, path)

        size = None
        if not is_directory and stat_result is not None:
            size = stat_result.st_size

        item_count = None
        if is_directory and include_item_count:
            item_count = await asyncio.to_thread(count_directory_items, path)

        return EntryMetadata(
            size=size,
            modified=format_modified(stat_result),
            item_count=item_count,
        )
