"""
Error taxonomy for the filesystem browser.

Top-level precondition failures are raised to the caller; per-entry failures
inside a listing or search are absorbed where they occur and never reach
this layer.
"""

from typing import Optional


class BrowserError(Exception):
    """Base class for all recoverable browser errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class PathNotFound(BrowserError):
    """Raised when the requested path does not exist."""
    pass


class PathNotADirectory(BrowserError):
    """Raised when a directory operation targets something that is not a directory."""
    pass


class ReadFailure(BrowserError):
    """Raised when a directory exists but cannot be enumerated."""

    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message, path)
        self.cause = cause


class WriteFailure(BrowserError):
    """Raised when a create, rename or delete call fails at the filesystem."""

    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message, path)
        self.cause = cause


class AlreadyExists(BrowserError):
    """Raised when a mutation would overwrite an existing item."""
    pass


class ParentMissing(BrowserError):
    """Raised when the parent directory of an item cannot be determined."""
    pass


class HomeDirectoryUnavailable(BrowserError):
    """Raised when the user's home directory cannot be resolved."""
    pass
