"""
DirectoryScanner implementation writing course items to the catalog store.
"""

import fnmatch
import logging
import threading
from pathlib import Path
from typing import Optional

from cci.core.classifier import ContentTypeRegistry, get_default_registry
from cci.core.errors import ScanCancelledError
from cci.infrastructure.catalog_store import (
    FOLDER_TYPE,
    CatalogStoreInterface,
    NewCourseItem,
)

from .interfaces import DirectoryScannerInterface
from .models import DirectoryFrame, ScanContext, SubtreeScanError

logger = logging.getLogger(__name__)


class DirectoryScanner(DirectoryScannerInterface):
    """
    Depth-first scanner that mirrors a directory tree into course items.

    Per directory level, every subdirectory is created as a folder item
    (committed so its id is known) and descended into before the level's
    files are stored in one batch. Traversal runs on an explicit stack of
    DirectoryFrame objects, so deep trees do not grow the Python call
    stack; the creation order is the same as with plain recursion.
    """

    def __init__(
        self,
        store: CatalogStoreInterface,
        content_types: ContentTypeRegistry | None = None,
        ignore_patterns: list[str] | None = None,
        follow_symlinks: bool = False,
    ):
        """
        Initialize the scanner.

        Args:
            store: Catalog store receiving the created items
            content_types: Registry used to classify files (default registry if None)
            ignore_patterns: fnmatch patterns matched against entry names
            follow_symlinks: Whether symlinked entries are scanned (default: False)
        """
        self._store = store
        self._content_types = content_types or get_default_registry()
        self._ignore_patterns = list(ignore_patterns or [])
        self._follow_symlinks = follow_symlinks

    def _should_ignore(self, entry: Path) -> bool:
        return any(fnmatch.fnmatch(entry.name, pattern) for pattern in self._ignore_patterns)

    def _list_entries(self, directory: Path) -> tuple[list[Path], list[Path]]:
        """Split a directory's accepted entries into (subdirectories, files)."""
        subdirectories: list[Path] = []
        files: list[Path] = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if entry.is_symlink() and not self._follow_symlinks:
                logger.debug(f"Skipping symlink (follow_symlinks=False): {entry}")
                continue
            if self._should_ignore(entry):
                logger.debug(f"Ignoring: {entry}")
                continue
            if entry.is_dir():
                subdirectories.append(entry)
            elif entry.is_file():
                files.append(entry)
        return subdirectories, files

    def list_subdirectories(self, directory: Path) -> list[Path]:
        subdirectories, _ = self._list_entries(Path(directory))
        return subdirectories

    def _check_cancelled(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelledError("Scan cancelled")

    def scan(
        self,
        directory: Path,
        course_id: int,
        parent_id: Optional[int] = None,
        context: Optional[ScanContext] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanContext:
        context = context if context is not None else ScanContext()
        # Resolved paths on the current branch, to stop symlink cycles
        active: set[Path] = set()

        self._check_cancelled(cancel_event)
        root_frame = self._open_directory(Path(directory), parent_id, context, active)
        if root_frame is None:
            return context

        stack: list[DirectoryFrame] = [root_frame]
        while stack:
            frame = stack[-1]
            subdir = next(frame.subdirectories, None)

            if subdir is not None:
                folder_id = self._store.create_course_item(
                    NewCourseItem(
                        course_id=course_id,
                        parent_id=frame.parent_id,
                        name=subdir.name,
                        path=str(subdir),
                        type=FOLDER_TYPE,
                    )
                )
                context.folders_added += 1

                self._check_cancelled(cancel_event)
                child = self._open_directory(subdir, folder_id, context, active)
                if child is not None:
                    stack.append(child)
                continue

            context.files_added += self._store_files(frame, course_id)
            stack.pop()
            if frame.real_path is not None:
                active.discard(frame.real_path)

        return context

    def _open_directory(
        self,
        directory: Path,
        parent_id: Optional[int],
        context: ScanContext,
        active: set[Path],
    ) -> DirectoryFrame | None:
        """
        List a directory and build its frame.

        Returns None, after recording a SubtreeScanError, when the
        directory cannot be enumerated.
        """
        try:
            real_path = None
            if self._follow_symlinks:
                real_path = directory.resolve()
                if real_path in active:
                    logger.debug(f"Skipping recursive cycle: {directory} -> {real_path}")
                    return None

            subdirectories, files = self._list_entries(directory)
        except OSError as e:
            self._record_skipped(directory, e, context)
            return None

        if real_path is not None:
            active.add(real_path)
        logger.debug(
            f"Scanning directory: {directory}",
            extra={"subdirectories": len(subdirectories), "files": len(files)},
        )
        return DirectoryFrame(
            path=directory,
            parent_id=parent_id,
            subdirectories=iter(subdirectories),
            files=files,
            real_path=real_path,
        )

    def _record_skipped(self, directory: Path, error: OSError, context: ScanContext) -> None:
        if isinstance(error, PermissionError):
            reason = f"permission denied: {error}"
        else:
            reason = str(error)
        logger.warning(
            f"Error scanning directory, skipping subtree: {directory} - {reason}",
            extra={"directory": str(directory)},
        )
        context.skipped_directories.append(SubtreeScanError(path=str(directory), reason=reason))

    def _store_files(self, frame: DirectoryFrame, course_id: int) -> int:
        """Classify and store a directory's files in one batch, returns count stored."""
        items: list[NewCourseItem] = []
        for file_path in frame.files:
            try:
                size = file_path.stat().st_size
            except OSError as e:
                logger.warning(f"Error reading file, skipping: {file_path} - {e}")
                continue
            extension = file_path.suffix.lower()
            items.append(
                NewCourseItem(
                    course_id=course_id,
                    parent_id=frame.parent_id,
                    name=file_path.name,
                    path=str(file_path),
                    type=self._content_types.classify(extension),
                    extension=extension,
                    size=size,
                )
            )

        if items:
            self._store.create_course_items(items)
        return len(items)
