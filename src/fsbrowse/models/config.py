"""
Configuration data models for the filesystem browser.

This module defines the data structures for application configuration:
directory-cache settings and the defaults and concurrency bounds of the
recursive search engine.
"""

from typing import Dict, List, Any
from pydantic import BaseModel, Field, ValidationError, model_validator

from .search_request import DEFAULT_MAX_DEPTH, DEFAULT_MAX_RESULTS


class CacheConfig(BaseModel):
    """
    Configuration for the directory-listing cache.

    Attributes:
        ttl_seconds: Age after which a cached listing is no longer served
    """

    ttl_seconds: float = Field(30.0, gt=0, description="Lifetime of a cached listing in seconds")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()


class SearchConfig(BaseModel):
    """
    Configuration for the recursive search engine.

    Attributes:
        max_depth: Default number of directory levels to visit
        max_results: Default maximum number of results
        match_batch_size: Concurrent enrichment tasks per batch within one directory
        subdirectory_batch_size: Concurrent recursive calls per batch
        item_count_threshold: Result count below which directory child counts are computed
    """

    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=0, description="Default number of directory levels to visit")
    max_results: int = Field(DEFAULT_MAX_RESULTS, ge=0, description="Default maximum number of results")
    match_batch_size: int = Field(50, gt=0, description="Concurrent enrichment tasks per batch")
    subdirectory_batch_size: int = Field(10, gt=0, description="Concurrent recursive calls per batch")
    item_count_threshold: int = Field(50, ge=0, description="Compute child counts while results are below this")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()


class BrowserConfig(BaseModel):
    """
    Main configuration class for the filesystem browser.

    Attributes:
        cache: Directory-listing cache settings
        search: Search defaults and concurrency bounds
    """

    cache: CacheConfig = Field(default_factory=CacheConfig, description="Directory cache settings")
    search: SearchConfig = Field(default_factory=SearchConfig, description="Search engine settings")

    @model_validator(mode='before')
    @classmethod
    def reject_unknown_sections(cls, data: Any) -> Any:
        """Fail loudly on misspelled top-level sections."""
        if isinstance(data, dict):
            unknown = set(data) - {'cache', 'search'}
            if unknown:
                raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")
        return data

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any warnings."""
        warnings = []

        if self.cache.ttl_seconds > 300:
            warnings.append(
                f"Long cache TTL ({self.cache.ttl_seconds:g}s) keeps listings stale after "
                f"external filesystem changes"
            )

        if self.search.max_results > 10000:
            warnings.append("Very high max_results limit may cause memory issues")

        if self.search.item_count_threshold > self.search.max_results:
            warnings.append("item_count_threshold exceeds max_results; child counts are always computed")

        if self.search.max_depth == 0:
            warnings.append("max_depth is 0; searches will never return results")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        return {
            'cache': self.cache.to_dict(),
            'search': self.search.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BrowserConfig':
        """Create configuration from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Cache TTL: {self.cache.ttl_seconds:g}s"]
        parts.append(f"Max depth: {self.search.max_depth}")
        parts.append(f"Max results: {self.search.max_results}")
        parts.append(
            f"Batches: {self.search.match_batch_size}/{self.search.subdirectory_batch_size}"
        )

        return " | ".join(parts)


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary using Pydantic.

    Args:
        config_data: Dictionary containing configuration data

    Returns:
        Validated and normalized configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    for section in ('cache', 'search'):
        if section in config_data and not isinstance(config_data[section], dict):
            raise ValueError(f"Section '{section}' must be a mapping, got {type(config_data[section]).__name__}")

    try:
        return BrowserConfig.from_dict(config_data).to_dict()
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
