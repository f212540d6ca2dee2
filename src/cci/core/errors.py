"""
Error types raised by catalog scanning and tree loading.
"""


class CatalogError(Exception):
    """Base exception for catalog service errors."""
    pass


class RootNotFoundError(CatalogError):
    """Raised when a scan root does not exist or is not a directory."""

    def __init__(self, root_path: str, reason: str = "does not exist"):
        self.root_path = root_path
        super().__init__(f"Path not found: {root_path} ({reason})")


class StoreWriteError(CatalogError):
    """Raised when the catalog store rejects a write during a rebuild."""
    pass


class TreeLoadError(CatalogError):
    """Raised when the catalog store cannot be queried during tree reconstruction."""
    pass


class RescanInProgressError(CatalogError):
    """Raised when a rebuild is requested while another one is running."""
    pass


class ScanCancelledError(CatalogError):
    """Raised when a rebuild is cancelled between directory units."""
    pass
