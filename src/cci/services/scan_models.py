"""
Scan Service data models.

Contains the rebuild summary and re-exports the service error types.
"""

from dataclasses import dataclass, field

from cci.core.errors import (
    CatalogError,
    RescanInProgressError,
    RootNotFoundError,
    ScanCancelledError,
    StoreWriteError,
    TreeLoadError,
)
from cci.core.scanner import ScanContext

__all__ = [
    "ScanResult",
    "format_scan_message",
    "CatalogError",
    "RootNotFoundError",
    "StoreWriteError",
    "TreeLoadError",
    "RescanInProgressError",
    "ScanCancelledError",
]


def format_scan_message(courses: int, folders: int, files: int) -> str:
    return (
        f"Scan completed! Added {courses} course(s), {folders} folder(s), "
        f"and {files} file(s)."
    )


@dataclass
class ScanResult:
    """Result of a full catalog rebuild."""

    courses_added: int = 0
    folders_added: int = 0
    files_added: int = 0
    message: str = ""
    skipped_directories: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @classmethod
    def from_context(cls, context: ScanContext, duration_seconds: float = 0.0) -> "ScanResult":
        return cls(
            courses_added=context.courses_added,
            folders_added=context.folders_added,
            files_added=context.files_added,
            message=format_scan_message(
                context.courses_added, context.folders_added, context.files_added
            ),
            skipped_directories=[s.path for s in context.skipped_directories],
            duration_seconds=duration_seconds,
        )
