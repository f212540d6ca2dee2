"""
Low-level SQL query executor for the catalog store.
"""

import sqlite3
from datetime import datetime
from typing import Dict, List, Optional, Tuple

ItemRow = Tuple[int, Optional[int], str, str, str, str, int]

_ITEM_COLUMNS = "id, course_id, parent_id, name, path, type, extension, size"


def now_with_tz() -> datetime:
    """Get current datetime with local timezone."""
    return datetime.now().astimezone()


class CatalogQueryExecutor:
    """Executes SQL queries for the catalog store."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    # ─────────────────────────────────────────────────────────────────
    # Courses
    # ─────────────────────────────────────────────────────────────────

    def insert_course(self, name: str, path: str, created_at: str) -> int:
        """Insert a course and commit, returns the assigned id."""
        cursor = self._conn.execute(
            "INSERT INTO courses (name, path, created_at) VALUES (?, ?, ?)",
            (name, path, created_at),
        )
        self._conn.commit()
        return int(cursor.lastrowid)

    def get_course(self, course_id: int) -> Optional[sqlite3.Row]:
        cursor = self._conn.execute(
            "SELECT id, name, path, created_at FROM courses WHERE id = ?",
            (course_id,),
        )
        return cursor.fetchone()

    def get_all_courses(self) -> List[sqlite3.Row]:
        cursor = self._conn.execute(
            "SELECT id, name, path, created_at FROM courses ORDER BY id"
        )
        return cursor.fetchall()

    def delete_course(self, course_id: int) -> int:
        """Delete a course (items cascade), returns rowcount."""
        cursor = self._conn.execute("DELETE FROM courses WHERE id = ?", (course_id,))
        self._conn.commit()
        return cursor.rowcount

    # ─────────────────────────────────────────────────────────────────
    # Course Items
    # ─────────────────────────────────────────────────────────────────

    def get_item_course_id(self, item_id: int) -> Optional[int]:
        """Return the owning course id of an item, None if the item is missing."""
        cursor = self._conn.execute(
            "SELECT course_id FROM course_items WHERE id = ?", (item_id,)
        )
        row = cursor.fetchone()
        return None if row is None else row["course_id"]

    def insert_item(self, row: ItemRow) -> int:
        """Insert a single item and commit, returns the assigned id."""
        cursor = self._conn.execute(
            """
            INSERT INTO course_items
                (course_id, parent_id, name, path, type, extension, size)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            row,
        )
        self._conn.commit()
        return int(cursor.lastrowid)

    def insert_items_batch(self, rows: List[ItemRow]) -> List[int]:
        """Insert items in one transaction, returns their ids in input order."""
        ids: List[int] = []
        try:
            for row in rows:
                cursor = self._conn.execute(
                    """
                    INSERT INTO course_items
                        (course_id, parent_id, name, path, type, extension, size)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    row,
                )
                ids.append(int(cursor.lastrowid))
            self._conn.commit()
        except sqlite3.Error:
            self._conn.rollback()
            raise
        return ids

    def get_item(self, item_id: int) -> Optional[sqlite3.Row]:
        cursor = self._conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM course_items WHERE id = ?", (item_id,)
        )
        return cursor.fetchone()

    def get_items_by_parent(
        self, course_id: int, parent_id: Optional[int]
    ) -> List[sqlite3.Row]:
        """Get items of a course under one parent (None selects the roots)."""
        if parent_id is None:
            cursor = self._conn.execute(
                f"""
                SELECT {_ITEM_COLUMNS} FROM course_items
                WHERE course_id = ? AND parent_id IS NULL
                ORDER BY id
                """,
                (course_id,),
            )
        else:
            cursor = self._conn.execute(
                f"""
                SELECT {_ITEM_COLUMNS} FROM course_items
                WHERE course_id = ? AND parent_id = ?
                ORDER BY id
                """,
                (course_id, parent_id),
            )
        return cursor.fetchall()

    def get_items_for_course(self, course_id: int) -> List[sqlite3.Row]:
        cursor = self._conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM course_items WHERE course_id = ? ORDER BY id",
            (course_id,),
        )
        return cursor.fetchall()

    def find_item_by_path(self, path: str) -> Optional[sqlite3.Row]:
        cursor = self._conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM course_items WHERE path = ? ORDER BY id LIMIT 1",
            (path,),
        )
        return cursor.fetchone()

    def delete_item(self, item_id: int) -> int:
        """Delete one item, returns rowcount. Fails while children exist."""
        cursor = self._conn.execute("DELETE FROM course_items WHERE id = ?", (item_id,))
        self._conn.commit()
        return cursor.rowcount

    # ─────────────────────────────────────────────────────────────────
    # Statistics / Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def get_aggregate_stats(self) -> sqlite3.Row:
        cursor = self._conn.execute(
            """
            SELECT
                (SELECT COUNT(*) FROM courses) AS total_courses,
                (SELECT COUNT(*) FROM course_items WHERE type = 'folder') AS total_folders,
                (SELECT COUNT(*) FROM course_items WHERE type != 'folder') AS total_files,
                (SELECT COALESCE(SUM(size), 0) FROM course_items) AS total_bytes
            """
        )
        return cursor.fetchone()

    def get_type_breakdown(self) -> Dict[str, int]:
        cursor = self._conn.execute(
            """
            SELECT type, COUNT(*) AS count FROM course_items
            WHERE type != 'folder'
            GROUP BY type ORDER BY count DESC
            """
        )
        return {row["type"]: row["count"] for row in cursor.fetchall()}

    def clear_all(self) -> None:
        """Delete every course and item in one transaction."""
        try:
            self._conn.execute("DELETE FROM course_items")
            self._conn.execute("DELETE FROM courses")
            self._conn.commit()
        except sqlite3.Error:
            self._conn.rollback()
            raise
