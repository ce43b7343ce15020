"""
Entry data models for the filesystem browser.

This module defines the immutable records produced by directory listings and
searches: single filesystem entries, their resolved metadata, and complete
directory listings.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntryMetadata(BaseModel):
    """
    Per-entry facts resolved by the metadata enricher.

    Every field is optional; a field is None when it does not apply to the
    entry kind or when reading it failed.

    Attributes:
        size: Size in bytes (files only)
        modified: Modification time as decimal seconds since the epoch
        item_count: Number of direct children (directories only)
    """

    model_config = ConfigDict(frozen=True)

    size: Optional[int] = Field(None, ge=0, description="Size in bytes")
    modified: Optional[str] = Field(None, description="Modification time, epoch seconds as text")
    item_count: Optional[int] = Field(None, ge=0, description="Number of direct children")


class FileSystemEntry(BaseModel):
    """
    A single file or directory as shown in a listing or search result.

    Attributes:
        name: Final path component
        path: Full path of the entry
        is_directory: Whether the entry is a directory
        size: Size in bytes, set only for non-directories
        modified: Modification time, epoch seconds as decimal text
        item_count: Direct child count, set only for directories
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Entry name")
    path: str = Field(..., min_length=1, description="Full path of the entry")
    is_directory: bool = Field(..., description="Whether the entry is a directory")
    size: Optional[int] = Field(None, ge=0, description="Size in bytes")
    modified: Optional[str] = Field(None, description="Modification time, epoch seconds as text")
    item_count: Optional[int] = Field(None, ge=0, description="Number of direct children")

    @field_validator('modified')
    @classmethod
    def validate_modified(cls, v: Optional[str]) -> Optional[str]:
        """Ensure the modification time is plain decimal text."""
        if v is None:
            return v
        if not v.isdigit():
            raise ValueError(f"Modification time must be decimal epoch seconds: {v}")
        return v

    @classmethod
    def from_metadata(cls, name: str, path: str, is_directory: bool,
                      metadata: EntryMetadata) -> 'FileSystemEntry':
        """Build an entry from its identity and enricher output."""
        return cls(
            name=name,
            path=path,
            is_directory=is_directory,
            size=None if is_directory else metadata.size,
            modified=metadata.modified,
            item_count=metadata.item_count if is_directory else None,
        )

    def sort_key(self) -> Tuple[bool, str, str]:
        """Directories first, then case-insensitive name; path breaks ties."""
        return (not self.is_directory, self.name.lower(), self.path)

    def get_extension(self) -> Optional[str]:
        """Get the lowercase extension of a file entry."""
        if self.is_directory:
            return None
        suffix = Path(self.name).suffix
        return suffix.lower() if suffix else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary representation."""
        return self.model_dump()


def sort_entries(entries: Iterable[FileSystemEntry]) -> List[FileSystemEntry]:
    """Sort entries directories-first, then by case-insensitive name."""
    return sorted(entries, key=FileSystemEntry.sort_key)


class DirectoryListing(BaseModel):
    """
    The sorted direct children of one directory.

    Attributes:
        current_path: The directory path exactly as requested
        entries: Entries sorted directories-first, then case-insensitive name
    """

    model_config = ConfigDict(frozen=True)

    current_path: str = Field(..., min_length=1, description="Listed directory path")
    entries: Tuple[FileSystemEntry, ...] = Field(default_factory=tuple, description="Sorted entries")

    @field_validator('entries', mode='before')
    @classmethod
    def validate_entries(cls, v) -> Tuple[FileSystemEntry, ...]:
        """Keep entries in listing order regardless of input order."""
        entries = [FileSystemEntry.model_validate(e) for e in v]
        return tuple(sort_entries(entries))

    def get_directories(self) -> List[FileSystemEntry]:
        """Get only the directory entries."""
        return [e for e in self.entries if e.is_directory]

    def get_files(self) -> List[FileSystemEntry]:
        """Get only the non-directory entries."""
        return [e for e in self.entries if not e.is_directory]

    def find(self, name: str) -> Optional[FileSystemEntry]:
        """Find an entry by exact name."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert listing to dictionary representation."""
        return {
            'current_path': self.current_path,
            'entries': [e.to_dict() for e in self.entries],
        }
