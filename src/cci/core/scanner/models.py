"""
Data models for the directory scanner.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional


@dataclass
class SubtreeScanError:
    """
    A directory whose contents could not be enumerated.

    The subtree below it is skipped; the scan continues with siblings.
    """

    path: str
    reason: str


@dataclass
class ScanContext:
    """
    Running totals for one rebuild.

    A single context is passed through the whole traversal and is only
    written by the thread driving the scan.
    """

    courses_added: int = 0
    folders_added: int = 0
    files_added: int = 0
    skipped_directories: list[SubtreeScanError] = field(default_factory=list)

    @property
    def items_added(self) -> int:
        return self.folders_added + self.files_added


@dataclass
class DirectoryFrame:
    """
    One pending directory on the scanner's work stack.

    Attributes:
        path: Directory being scanned
        parent_id: Item id that entries of this directory are created under
        subdirectories: Subdirectories not yet turned into folder items
        files: Regular files of this directory, stored once all
               subdirectories are done
        real_path: Resolved path, tracked when following symlinks
    """

    path: Path
    parent_id: Optional[int]
    subdirectories: Iterator[Path]
    files: list[Path]
    real_path: Optional[Path] = None
