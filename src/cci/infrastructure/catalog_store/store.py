"""
SQLite catalog store implementation.

Persists courses and course items as flat rows with a parent-id foreign key.
"""

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .interface import CatalogStoreInterface
from .models import (
    CatalogStoreError,
    Course,
    CourseItem,
    NewCourseItem,
    RebuildLockedError,
)
from .queries import CatalogQueryExecutor, ItemRow
from .schema import initialize_schema

logger = logging.getLogger(__name__)


def _row_to_course(row: sqlite3.Row) -> Course:
    return Course(
        id=row["id"],
        name=row["name"],
        path=row["path"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_item(row: sqlite3.Row) -> CourseItem:
    return CourseItem(
        id=row["id"],
        course_id=row["course_id"],
        parent_id=row["parent_id"],
        name=row["name"],
        path=row["path"],
        type=row["type"],
        extension=row["extension"],
        size=row["size"],
    )


def _item_to_row(item: NewCourseItem) -> ItemRow:
    return (
        item.course_id,
        item.parent_id,
        item.name,
        item.path,
        item.type,
        item.extension,
        item.size,
    )


class SQLiteCatalogStore(CatalogStoreInterface):
    """
    SQLite-based course catalog storage.

    Foreign keys are enforced on every connection: deleting a course
    cascades to its items and deleting an item with children fails.
    The connection is shared between threads and every statement runs
    under a re-entrant lock.

    Rebuilds are serialised across processes by an exclusive transaction
    on a sidecar lock database next to the catalog file. The operating
    system drops that lock when the holding process exits.
    """

    def __init__(self, db_path: Path | str):
        self._db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._query: Optional[CatalogQueryExecutor] = None
        self._initialized = False
        self._lock = threading.RLock()
        self._rebuild_conn: Optional[sqlite3.Connection] = None

    @property
    def db_path(self) -> Path | str:
        return self._db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            if isinstance(self._db_path, Path):
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON;")
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA busy_timeout=5000;")
            self._query = CatalogQueryExecutor(self._conn)
        return self._conn

    def initialize(self) -> None:
        """Initialize the database schema."""
        with self._lock:
            if self._initialized:
                return
            conn = self._get_connection()
            try:
                initialize_schema(conn)
                self._initialized = True
                logger.info(f"Initialized catalog store: {self._db_path}")
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to initialize schema: {e}") from e

    def _ensure_query(self) -> CatalogQueryExecutor:
        """Ensure query executor is available."""
        self.initialize()
        assert self._query is not None
        return self._query

    def _rollback(self) -> None:
        if self._conn is not None:
            try:
                self._conn.rollback()
            except sqlite3.Error as e:
                logger.warning(f"Rollback failed: {e}")

    # ─────────────────────────────────────────────────────────────────
    # Courses
    # ─────────────────────────────────────────────────────────────────

    def create_course(self, name: str, path: str, created_at: datetime) -> int:
        with self._lock:
            try:
                return self._ensure_query().insert_course(name, path, created_at.isoformat())
            except sqlite3.Error as e:
                self._rollback()
                raise CatalogStoreError(f"Failed to create course '{name}': {e}") from e

    def list_courses(self) -> List[Course]:
        with self._lock:
            try:
                return [_row_to_course(row) for row in self._ensure_query().get_all_courses()]
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to list courses: {e}") from e

    def get_course(self, course_id: int) -> Optional[Course]:
        with self._lock:
            try:
                row = self._ensure_query().get_course(course_id)
                return None if row is None else _row_to_course(row)
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to get course {course_id}: {e}") from e

    def delete_course(self, course_id: int) -> bool:
        with self._lock:
            try:
                return self._ensure_query().delete_course(course_id) > 0
            except sqlite3.Error as e:
                self._rollback()
                raise CatalogStoreError(f"Failed to delete course {course_id}: {e}") from e

    # ─────────────────────────────────────────────────────────────────
    # Course Items
    # ─────────────────────────────────────────────────────────────────

    def _check_parent(self, query: CatalogQueryExecutor, item: NewCourseItem) -> None:
        """Reject items whose parent is missing or belongs to another course."""
        if item.parent_id is None:
            return
        parent_course = query.get_item_course_id(item.parent_id)
        if parent_course is None:
            raise CatalogStoreError(
                f"Parent item {item.parent_id} does not exist for '{item.path}'"
            )
        if parent_course != item.course_id:
            raise CatalogStoreError(
                f"Parent item {item.parent_id} belongs to course {parent_course}, "
                f"not {item.course_id}"
            )

    def create_course_item(self, item: NewCourseItem) -> int:
        with self._lock:
            try:
                query = self._ensure_query()
                self._check_parent(query, item)
                return query.insert_item(_item_to_row(item))
            except sqlite3.Error as e:
                self._rollback()
                raise CatalogStoreError(f"Failed to create item '{item.path}': {e}") from e

    def create_course_items(self, items: List[NewCourseItem]) -> List[int]:
        if not items:
            return []
        with self._lock:
            try:
                query = self._ensure_query()
                checked: set[tuple[Optional[int], int]] = set()
                for item in items:
                    key = (item.parent_id, item.course_id)
                    if key not in checked:
                        self._check_parent(query, item)
                        checked.add(key)
                return query.insert_items_batch([_item_to_row(i) for i in items])
            except sqlite3.Error as e:
                self._rollback()
                raise CatalogStoreError(f"Failed to batch create {len(items)} items: {e}") from e

    def query_items(
        self, course_id: int, parent_id: Optional[int] = None
    ) -> List[CourseItem]:
        with self._lock:
            try:
                rows = self._ensure_query().get_items_by_parent(course_id, parent_id)
                return [_row_to_item(row) for row in rows]
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to query items: {e}") from e

    def list_items(self, course_id: int) -> List[CourseItem]:
        with self._lock:
            try:
                rows = self._ensure_query().get_items_for_course(course_id)
                return [_row_to_item(row) for row in rows]
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to list items of course {course_id}: {e}") from e

    def get_item(self, item_id: int) -> Optional[CourseItem]:
        with self._lock:
            try:
                row = self._ensure_query().get_item(item_id)
                return None if row is None else _row_to_item(row)
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to get item {item_id}: {e}") from e

    def find_item_by_path(self, path: str) -> Optional[CourseItem]:
        with self._lock:
            try:
                row = self._ensure_query().find_item_by_path(path)
                return None if row is None else _row_to_item(row)
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to find item by path: {e}") from e

    def delete_item(self, item_id: int) -> bool:
        with self._lock:
            try:
                return self._ensure_query().delete_item(item_id) > 0
            except sqlite3.Error as e:
                self._rollback()
                raise CatalogStoreError(f"Failed to delete item {item_id}: {e}") from e

    # ─────────────────────────────────────────────────────────────────
    # Statistics / Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def get_stats(self) -> Dict:
        with self._lock:
            try:
                query = self._ensure_query()
                row = query.get_aggregate_stats()
                return {
                    "total_courses": row["total_courses"],
                    "total_folders": row["total_folders"],
                    "total_files": row["total_files"],
                    "total_bytes": row["total_bytes"],
                    "types": query.get_type_breakdown(),
                }
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to get stats: {e}") from e

    def clear_all(self) -> None:
        """Clear all courses and items from the store."""
        with self._lock:
            try:
                self._ensure_query().clear_all()
                logger.info("Cleared catalog store")
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to clear catalog: {e}") from e

    @property
    def rebuild_lock_path(self) -> Optional[Path]:
        if not isinstance(self._db_path, Path):
            return None
        return self._db_path.with_name(self._db_path.name + ".rebuild-lock")

    def acquire_rebuild_lock(self) -> None:
        """Take the cross-process rebuild lock without waiting."""
        lock_path = self.rebuild_lock_path
        if lock_path is None:
            return
        with self._lock:
            if self._rebuild_conn is not None:
                raise RebuildLockedError(f"Rebuild lock already held for {self._db_path}")
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(
                    str(lock_path), timeout=0, isolation_level=None, check_same_thread=False
                )
            except sqlite3.Error as e:
                raise CatalogStoreError(f"Failed to open rebuild lock {lock_path}: {e}") from e
            try:
                conn.execute("BEGIN EXCLUSIVE")
            except sqlite3.OperationalError as e:
                conn.close()
                raise RebuildLockedError(
                    f"Catalog {self._db_path} is being rebuilt by another process"
                ) from e
            self._rebuild_conn = conn
            logger.debug(f"Acquired rebuild lock: {lock_path}")

    def release_rebuild_lock(self) -> None:
        with self._lock:
            conn, self._rebuild_conn = self._rebuild_conn, None
            if conn is None:
                return
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.warning(f"Releasing rebuild lock failed: {e}")
            finally:
                conn.close()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self.release_rebuild_lock()
            if self._conn:
                self._conn.close()
                self._conn = None
                self._query = None
                self._initialized = False


def create_catalog_store(db_path: Path | str) -> SQLiteCatalogStore:
    """Factory function to create a catalog store."""
    return SQLiteCatalogStore(db_path)
