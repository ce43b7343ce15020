"""
Single-level directory listing.

Produces a sorted DirectoryListing for one directory, enriching every child
concurrently. A child whose entry cannot be built is left out of the listing
instead of failing the whole call.
"""

import asyncio
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..errors import PathNotADirectory, PathNotFound, ReadFailure
from ..models.entries import DirectoryListing, FileSystemEntry
from .metadata import MetadataEnricher


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def display_text(value: str) -> str:
    """
    Make an OS-level name safe to store and serialize.

    Names that are not valid UTF-8 come back from ``os.scandir`` with
    surrogate escapes; those bytes are replaced with U+FFFD.
    """
    return os.fsencode(value).decode('utf-8', 'replace')


@dataclass(frozen=True)
class DirectoryChild:
    """
    One direct child found while scanning a directory.

    ``path`` is the OS-level path and must be used for filesystem calls;
    ``display_name`` and ``display_path`` are what entries report.
    """

    name: str
    path: str
    is_directory: bool

    @property
    def display_name(self) -> str:
        return display_text(self.name)

    @property
    def display_path(self) -> str:
        return display_text(self.path)


def scan_children(directory: PathLike) -> List[DirectoryChild]:
    """
    Enumerate the direct children of a directory.

    Symlinks are followed when deciding whether a child is a directory.

    Raises:
        OSError: If the directory cannot be enumerated
    """
    children = []
    with os.scandir(directory) as entries:
        for entry in entries:
            children.append(DirectoryChild(
                name=entry.name,
                path=os.path.join(directory, entry.name),
                is_directory=entry.is_dir(),
            ))
    return children


async def validate_directory(path: PathLike, missing_subject: str = "Directory",
                             wrong_type_subject: str = "Path") -> Path:
    """
    Check that a path exists and is a directory.

    Args:
        path: Path to check
        missing_subject: Leading word of the not-found message
        wrong_type_subject: Leading word of the not-a-directory message

    Raises:
        PathNotFound: If the path does not exist
        PathNotADirectory: If the path is not a directory
    """
    target = Path(path)
    if not await asyncio.to_thread(target.exists):
        raise PathNotFound(f"{missing_subject} does not exist", path=str(path))
    if not await asyncio.to_thread(target.is_dir):
        raise PathNotADirectory(f"{wrong_type_subject} is not a directory", path=str(path))
    return target


class DirectoryLister:
    """Lists one directory level with enriched, sorted entries."""

    def __init__(self, enricher: Optional[MetadataEnricher] = None):
        self.enricher = enricher or MetadataEnricher()

    async def list_once(self, path: str) -> DirectoryListing:
        """
        List the direct children of a directory, bypassing any cache.

        Args:
            path: Directory to list

        Returns:
            DirectoryListing sorted directories-first, then by case-insensitive name

        Raises:
            PathNotFound: If the path does not exist
            PathNotADirectory: If the path is not a directory
            ReadFailure: If the directory cannot be enumerated
        """
        await validate_directory(path)

        try:
            children = await asyncio.to_thread(scan_children, path)
        except OSError as e:
            raise ReadFailure(f"Failed to read directory: {e}", path=path, cause=e) from e

        results = await asyncio.gather(
            *(self._build_entry(child) for child in children),
            return_exceptions=True,
        )

        entries = []
        for child, result in zip(children, results):
            if isinstance(result, Exception):
                logger.debug(f"Dropping {child.display_path} from listing: {result}")
                continue
            entries.append(result)

        return DirectoryListing(current_path=path, entries=entries)

    async def _build_entry(self, child: DirectoryChild) -> FileSystemEntry:
        metadata = await self.enricher.resolve(child.path, child.is_directory)
        return FileSystemEntry.from_metadata(child.display_name, child.display_path,
                                             child.is_directory, metadata)
