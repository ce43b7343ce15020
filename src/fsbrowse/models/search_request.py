"""
Search request data model for the filesystem browser.

This module defines the validated parameters of one search invocation:
the root directory, the textual query, and the depth and result bounds.
"""

from typing import Any, Dict, Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator

DEFAULT_MAX_DEPTH = 100
DEFAULT_MAX_RESULTS = 500


class SearchRequest(BaseModel):
    """
    Represents one search over a directory subtree.

    Attributes:
        path: Root directory of the search
        query: Pattern text (``*.ext``, ``.suffix`` or a plain substring)
        max_depth: Number of directory levels to visit; the root is level 0
        max_results: Maximum number of entries to accept
    """

    path: str = Field(..., min_length=1, description="Root directory of the search")
    query: str = Field(..., description="Pattern text")
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=0, description="Number of directory levels to visit")
    max_results: int = Field(DEFAULT_MAX_RESULTS, ge=0, description="Maximum number of results")

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject blank paths; the path itself is kept as given."""
        if not v.strip():
            raise ValueError("Search path cannot be empty")
        return v

    @classmethod
    def build(cls, path: str, query: str, max_depth: Optional[int] = None,
              max_results: Optional[int] = None) -> 'SearchRequest':
        """Create a request, falling back to the defaults for omitted bounds."""
        data: Dict[str, Any] = {'path': path, 'query': query}
        if max_depth is not None:
            data['max_depth'] = max_depth
        if max_results is not None:
            data['max_results'] = max_results
        return cls.model_validate(data)

    def get_root(self) -> Path:
        """Get the search root as a Path."""
        return Path(self.path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the request to a dictionary representation."""
        return self.model_dump()

    def __str__(self) -> str:
        """String representation of the search request."""
        return (f"Query: '{self.query}' | Root: {self.path} | "
                f"Max depth: {self.max_depth} | Max results: {self.max_results}")
