"""
Scan Service for Project CCI.

Coordinates a full catalog rebuild: root validation, clearing the
catalog, creating one course per top-level directory and scanning each
course directory into course items.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from cci.core.errors import (
    RescanInProgressError,
    RootNotFoundError,
    ScanCancelledError,
    StoreWriteError,
)
from cci.core.scanner import DirectoryScanner, DirectoryScannerInterface, ScanContext
from cci.infrastructure.catalog_store import (
    CatalogStoreError,
    CatalogStoreInterface,
    RebuildLockedError,
    now_with_tz,
)
from cci.services.scan_models import ScanResult

logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """
    Service for rebuilding the course catalog from a root directory.

    A rebuild always starts from an empty catalog, so re-running it on an
    unchanged tree yields the same counts and an isomorphic tree. Only one
    rebuild runs at a time, in this process or any other sharing the
    store; a concurrent request is rejected.
    """

    def __init__(
        self,
        store: CatalogStoreInterface,
        scanner: Optional[DirectoryScannerInterface] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize the scan service.

        Args:
            store: Catalog store to rebuild
            scanner: Scanner writing course items (default: DirectoryScanner on store)
            progress_callback: Optional callback(current, total, message)
        """
        self._store = store
        self._scanner = scanner or DirectoryScanner(store)
        self._progress_callback = progress_callback
        self._lock = threading.Lock()

    def is_running(self) -> bool:
        """Check whether a rebuild is in progress."""
        return self._lock.locked()

    def _report_progress(self, current: int, total: int, message: str) -> None:
        """Report progress if callback is set."""
        if self._progress_callback:
            self._progress_callback(current, total, message)
        logger.info(f"Progress: {current}/{total} - {message}")

    def rescan(
        self,
        root_path: Path | str,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanResult:
        """
        Rebuild the whole catalog from the subdirectories of root_path.

        The root is validated and listed before anything is cleared, so a
        missing or unreadable root leaves the existing catalog untouched.

        Args:
            root_path: Directory whose immediate subdirectories become courses
            cancel_event: Optional event checked between directory units

        Returns:
            ScanResult with course, folder and file totals

        Raises:
            RescanInProgressError: If another rebuild is running
            RootNotFoundError: If root_path is not a readable directory
            StoreWriteError: If the store rejects a write; the catalog is then
                             cleared and partially rebuilt
            ScanCancelledError: If cancel_event is set during the rebuild
        """
        if not self._lock.acquire(blocking=False):
            raise RescanInProgressError("A catalog rebuild is already in progress")
        try:
            try:
                self._store.acquire_rebuild_lock()
            except RebuildLockedError as e:
                raise RescanInProgressError(str(e)) from e
            except CatalogStoreError as e:
                raise StoreWriteError(f"Failed to lock catalog for rebuild: {e}") from e
            try:
                return self._rescan(root_path, cancel_event)
            finally:
                self._store.release_rebuild_lock()
        finally:
            self._lock.release()

    def _list_courses(self, root_path: Path | str) -> tuple[Path, list[Path]]:
        """Resolve the root and list its course directories."""
        # Path("") is the working directory
        if not str(root_path).strip():
            raise RootNotFoundError(str(root_path), "empty path")
        try:
            root = Path(root_path).resolve()
            exists = root.exists()
        except OSError as e:
            raise RootNotFoundError(str(root_path), str(e)) from e

        if not exists:
            raise RootNotFoundError(str(root_path))
        if not root.is_dir():
            raise RootNotFoundError(str(root_path), "not a directory")

        try:
            return root, self._scanner.list_subdirectories(root)
        except OSError as e:
            raise RootNotFoundError(str(root_path), f"cannot be listed: {e}") from e

    def _rescan(
        self, root_path: Path | str, cancel_event: Optional[threading.Event]
    ) -> ScanResult:
        start_time = time.time()
        root, course_dirs = self._list_courses(root_path)

        logger.info(f"Starting scan of: {root}", extra={"course_count": len(course_dirs)})

        try:
            self._store.clear_all()
        except CatalogStoreError as e:
            raise StoreWriteError(f"Failed to clear catalog: {e}") from e

        context = ScanContext()
        created_at = now_with_tz()
        total = len(course_dirs)

        try:
            for index, course_dir in enumerate(course_dirs):
                if cancel_event is not None and cancel_event.is_set():
                    raise ScanCancelledError("Scan cancelled")

                self._report_progress(index, total, f"Scanning course: {course_dir.name}")
                try:
                    course_id = self._store.create_course(
                        course_dir.name, str(course_dir), created_at
                    )
                    context.courses_added += 1
                    self._scanner.scan(
                        course_dir,
                        course_id,
                        parent_id=None,
                        context=context,
                        cancel_event=cancel_event,
                    )
                except CatalogStoreError as e:
                    raise StoreWriteError(
                        f"Failed to store course '{course_dir.name}': {e}"
                    ) from e
        except (StoreWriteError, ScanCancelledError) as e:
            logger.error(
                f"Scan of {root} stopped, catalog is partially rebuilt: {e}",
                extra={
                    "courses_added": context.courses_added,
                    "folders_added": context.folders_added,
                    "files_added": context.files_added,
                },
            )
            raise

        result = ScanResult.from_context(context, duration_seconds=time.time() - start_time)
        self._report_progress(total, total, "Scan complete")

        logger.info(
            f"Scan completed: {result.message}",
            extra={
                "courses_added": result.courses_added,
                "folders_added": result.folders_added,
                "files_added": result.files_added,
                "skipped_directories": len(result.skipped_directories),
                "duration_seconds": result.duration_seconds,
            },
        )
        return result
