"""
Filesystem mutations: create, rename and delete.

Each operation checks its preconditions, performs one filesystem call in a
worker thread and then drops any cached listing the change made stale. With
no cache attached, listings may stay stale until their TTL runs out.
"""

import asyncio
import os
import shutil
import logging
from pathlib import Path
from typing import Optional

from ..errors import (
    AlreadyExists,
    HomeDirectoryUnavailable,
    ParentMissing,
    PathNotFound,
    WriteFailure,
)
from .dir_cache import DirectoryCache


logger = logging.getLogger(__name__)


def _create_empty_file(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # "x" refuses to clobber a file created since the existence check
    with open(path, 'x', encoding='utf-8'):
        pass


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


class DirectoryMutator:
    """
    Performs single-call filesystem mutations.

    Args:
        cache: Listing cache to invalidate after each change, if any
    """

    def __init__(self, cache: Optional[DirectoryCache] = None):
        self.cache = cache

    def _invalidate(self, path: str, include_subtree: bool = False) -> None:
        if self.cache is None:
            return
        self.cache.invalidate_parent(path)
        if include_subtree:
            self.cache.invalidate(path, recursive=True)

    async def create_file(self, path: str) -> None:
        """
        Create an empty file, creating missing parent directories.

        Raises:
            AlreadyExists: If something already exists at ``path``
            WriteFailure: If the file cannot be created
        """
        target = Path(path)
        if await asyncio.to_thread(os.path.lexists, target):
            raise AlreadyExists(f"File already exists: {path}", path=path)

        try:
            await asyncio.to_thread(_create_empty_file, target)
        except FileExistsError as e:
            raise AlreadyExists(f"File already exists: {path}", path=path) from e
        except OSError as e:
            raise WriteFailure(f"Failed to create file: {e}", path=path, cause=e) from e

        logger.info(f"Created file {path}")
        self._invalidate(path)

    async def create_directory(self, path: str) -> None:
        """
        Create a directory and any missing parents.

        Raises:
            AlreadyExists: If something already exists at ``path``
            WriteFailure: If the directory cannot be created
        """
        target = Path(path)
        if await asyncio.to_thread(os.path.lexists, target):
            raise AlreadyExists(f"Directory already exists: {path}", path=path)

        try:
            await asyncio.to_thread(target.mkdir, parents=True)
        except FileExistsError as e:
            raise AlreadyExists(f"Directory already exists: {path}", path=path) from e
        except OSError as e:
            raise WriteFailure(f"Failed to create directory: {e}", path=path, cause=e) from e

        logger.info(f"Created directory {path}")
        self._invalidate(path)

    async def rename(self, old_path: str, new_name: str) -> str:
        """
        Rename an item within its parent directory.

        Args:
            old_path: Current path of the item
            new_name: New final path component

        Returns:
            The new path

        Raises:
            PathNotFound: If ``old_path`` does not exist
            ParentMissing: If the parent directory cannot be determined
            AlreadyExists: If ``new_name`` is already taken in the parent
            WriteFailure: If the rename fails
        """
        source = Path(old_path)
        if not await asyncio.to_thread(os.path.lexists, source):
            raise PathNotFound(f"Item does not exist: {old_path}", path=old_path)

        parent = source.parent
        if source == parent or not str(parent):
            raise ParentMissing("Cannot determine parent directory", path=old_path)

        destination = parent / new_name
        if await asyncio.to_thread(os.path.lexists, destination):
            raise AlreadyExists(f"Item with name '{new_name}' already exists", path=str(destination))

        try:
            await asyncio.to_thread(os.rename, source, destination)
        except OSError as e:
            raise WriteFailure(f"Failed to rename item: {e}", path=old_path, cause=e) from e

        logger.info(f"Renamed {old_path} to {destination}")
        self._invalidate(old_path, include_subtree=True)
        return str(destination)

    async def delete(self, path: str) -> None:
        """
        Delete a file, or a directory together with its contents.

        Raises:
            PathNotFound: If ``path`` does not exist
            WriteFailure: If the deletion fails
        """
        target = Path(path)
        if not await asyncio.to_thread(os.path.lexists, target):
            raise PathNotFound(f"Item does not exist: {path}", path=path)

        try:
            await asyncio.to_thread(_remove, target)
        except OSError as e:
            raise WriteFailure(f"Failed to delete item: {e}", path=path, cause=e) from e

        logger.info(f"Deleted {path}")
        self._invalidate(path, include_subtree=True)


def get_home_directory() -> str:
    """
    Resolve the current user's home directory.

    Raises:
        HomeDirectoryUnavailable: If no home directory can be determined
    """
    try:
        return str(Path.home())
    except RuntimeError as e:
        raise HomeDirectoryUnavailable("Failed to get home directory") from e
