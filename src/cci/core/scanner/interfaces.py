"""
Abstract interfaces for directory scanning operations.
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .models import ScanContext


class DirectoryScannerInterface(ABC):
    """
    Abstract interface for scanning a course directory into the catalog.

    Implementations write one course item per folder and file below the
    given directory, keeping the on-disk hierarchy in the parent links.
    """

    @abstractmethod
    def list_subdirectories(self, directory: Path) -> list[Path]:
        """
        List the immediate subdirectories the scanner would descend into.

        Applies the same symlink and ignore rules as scan(), sorted by name.

        Raises:
            OSError: If the directory cannot be enumerated
        """
        pass

    @abstractmethod
    def scan(
        self,
        directory: Path,
        course_id: int,
        parent_id: Optional[int] = None,
        context: Optional[ScanContext] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanContext:
        """
        Scan a directory tree and create its course items.

        Args:
            directory: Directory whose contents are scanned
            course_id: Owning course of every created item
            parent_id: Item the directory's direct entries are created under;
                       None creates root-level items
            context: Accumulator to add counts to (a new one if None)
            cancel_event: Checked between directory units

        Returns:
            The context with updated counts

        Notes:
            - Unreadable directories are logged and their subtree skipped
            - Store failures propagate to the caller
        """
        pass
