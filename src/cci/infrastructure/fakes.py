"""
Fake implementations for testing.

Provides an in-memory implementation of the catalog store interface
for use in unit and integration tests without a database file.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import replace
from datetime import datetime

from cci.infrastructure.catalog_store import (
    FOLDER_TYPE,
    CatalogStoreError,
    CatalogStoreInterface,
    Course,
    CourseItem,
    NewCourseItem,
)


class InMemoryCatalogStore(CatalogStoreInterface):
    """
    In-memory catalog store for testing.

    Implements CatalogStoreInterface with dictionaries keyed by id.
    Mirrors the SQLite store's rules: ids are auto-incremented and never
    reused, parents must exist in the same course, deleting a course
    cascades and deleting an item with children is rejected.
    """

    def __init__(self):
        self._courses: dict[int, Course] = {}
        self._items: dict[int, CourseItem] = {}
        self._next_course_id = 1
        self._next_item_id = 1
        self._lock = threading.RLock()
        # Counts of successful write calls, useful for asserting commit patterns
        self.write_calls: Counter[str] = Counter()

    def create_course(self, name: str, path: str, created_at: datetime) -> int:
        with self._lock:
            course_id = self._next_course_id
            self._next_course_id += 1
            self._courses[course_id] = Course(
                id=course_id, name=name, path=path, created_at=created_at
            )
            self.write_calls["create_course"] += 1
            return course_id

    def _check_item(self, item: NewCourseItem) -> None:
        if item.course_id not in self._courses:
            raise CatalogStoreError(f"Course {item.course_id} does not exist")
        if item.parent_id is None:
            return
        parent = self._items.get(item.parent_id)
        if parent is None:
            raise CatalogStoreError(
                f"Parent item {item.parent_id} does not exist for '{item.path}'"
            )
        if parent.course_id != item.course_id:
            raise CatalogStoreError(
                f"Parent item {item.parent_id} belongs to course {parent.course_id}, "
                f"not {item.course_id}"
            )

    def _insert(self, item: NewCourseItem) -> int:
        item_id = self._next_item_id
        self._next_item_id += 1
        self._items[item_id] = CourseItem(
            id=item_id,
            course_id=item.course_id,
            parent_id=item.parent_id,
            name=item.name,
            path=item.path,
            type=item.type,
            extension=item.extension,
            size=item.size,
        )
        return item_id

    def create_course_item(self, item: NewCourseItem) -> int:
        with self._lock:
            self._check_item(item)
            self.write_calls["create_course_item"] += 1
            return self._insert(item)

    def create_course_items(self, items: list[NewCourseItem]) -> list[int]:
        if not items:
            return []
        with self._lock:
            for item in items:
                self._check_item(item)
            self.write_calls["create_course_items"] += 1
            return [self._insert(item) for item in items]

    def clear_all(self) -> None:
        with self._lock:
            self._items.clear()
            self._courses.clear()
            self.write_calls["clear_all"] += 1

    def query_items(self, course_id: int, parent_id: int | None = None) -> list[CourseItem]:
        with self._lock:
            return [
                replace(item)
                for _, item in sorted(self._items.items())
                if item.course_id == course_id and item.parent_id == parent_id
            ]

    def list_items(self, course_id: int) -> list[CourseItem]:
        with self._lock:
            return [
                replace(item)
                for _, item in sorted(self._items.items())
                if item.course_id == course_id
            ]

    def list_courses(self) -> list[Course]:
        with self._lock:
            return [replace(course) for _, course in sorted(self._courses.items())]

    def get_course(self, course_id: int) -> Course | None:
        with self._lock:
            course = self._courses.get(course_id)
            return replace(course) if course else None

    def get_item(self, item_id: int) -> CourseItem | None:
        with self._lock:
            item = self._items.get(item_id)
            return replace(item) if item else None

    def find_item_by_path(self, path: str) -> CourseItem | None:
        with self._lock:
            for _, item in sorted(self._items.items()):
                if item.path == path:
                    return replace(item)
            return None

    def delete_course(self, course_id: int) -> bool:
        with self._lock:
            if course_id not in self._courses:
                return False
            del self._courses[course_id]
            for item_id in [i for i, item in self._items.items() if item.course_id == course_id]:
                del self._items[item_id]
            return True

    def delete_item(self, item_id: int) -> bool:
        with self._lock:
            if item_id not in self._items:
                return False
            if any(item.parent_id == item_id for item in self._items.values()):
                raise CatalogStoreError(
                    f"Failed to delete item {item_id}: item still has children"
                )
            del self._items[item_id]
            return True

    def get_stats(self) -> dict:
        with self._lock:
            files = [i for i in self._items.values() if i.type != FOLDER_TYPE]
            types = Counter(i.type for i in files)
            return {
                "total_courses": len(self._courses),
                "total_folders": len(self._items) - len(files),
                "total_files": len(files),
                "total_bytes": sum(i.size for i in self._items.values()),
                "types": dict(types.most_common()),
            }
