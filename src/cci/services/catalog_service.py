"""
Catalog Service for Project CCI.

Read-side access to the catalog: courses, course trees and totals.
"""

import logging
from typing import Any, Optional

from cci.core.errors import CatalogError, TreeLoadError
from cci.core.tree import CourseTreeNode, TreeReconstructor
from cci.infrastructure.catalog_store import (
    CatalogStoreError,
    CatalogStoreInterface,
    Course,
    CourseItem,
)

logger = logging.getLogger(__name__)


class CourseNotFoundError(CatalogError):
    """Raised when a course id is not in the catalog."""

    def __init__(self, course_id: int):
        self.course_id = course_id
        super().__init__(f"Course not found: {course_id}")


class CatalogService:
    """Service answering catalog queries for the CLI and HTTP layers."""

    def __init__(
        self,
        store: CatalogStoreInterface,
        tree: Optional[TreeReconstructor] = None,
    ):
        self._store = store
        self._tree = tree or TreeReconstructor(store)

    def list_courses(self) -> list[Course]:
        return self._store.list_courses()

    def get_course(self, course_id: int) -> Course:
        """
        Get a course by id.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = self._store.get_course(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    def load_tree(self, course_id: int) -> list[CourseTreeNode]:
        """
        Load the item tree of an existing course.

        Raises:
            CourseNotFoundError: If the course does not exist
            TreeLoadError: If the store query fails
        """
        try:
            self.get_course(course_id)
        except CatalogStoreError as e:
            raise TreeLoadError(f"Failed to load course {course_id}: {e}") from e
        return self._tree.load_tree(course_id)

    def find_file(self, path: str) -> Optional[CourseItem]:
        """Get the catalogued non-folder item stored under path, if any."""
        item = self._store.find_item_by_path(path)
        if item is None or item.is_folder:
            return None
        return item

    def get_stats(self) -> dict[str, Any]:
        """Get catalog totals plus the per-type file breakdown."""
        stats = self._store.get_stats()
        logger.debug("Catalog stats loaded", extra={"total_courses": stats.get("total_courses")})
        return stats
