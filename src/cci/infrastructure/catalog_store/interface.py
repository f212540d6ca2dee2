"""
Abstract interface for catalog stores.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from .models import Course, CourseItem, NewCourseItem


class CatalogStoreInterface(ABC):
    """
    Abstract interface for the course catalog store.

    Implementations assign identity keys, enforce that a parented item
    belongs to the same course as its parent, cascade item deletion
    through course deletion and reject deleting an item that still has
    children. Failures are raised as CatalogStoreError.
    """

    @abstractmethod
    def create_course(self, name: str, path: str, created_at: datetime) -> int:
        """Create a course and return its committed id."""
        pass

    @abstractmethod
    def create_course_item(self, item: NewCourseItem) -> int:
        """Create a single item and return its committed id."""
        pass

    @abstractmethod
    def create_course_items(self, items: List[NewCourseItem]) -> List[int]:
        """Create several items with one commit, return ids in input order."""
        pass

    @abstractmethod
    def clear_all(self) -> None:
        """Delete every course and course item."""
        pass

    @abstractmethod
    def query_items(
        self, course_id: int, parent_id: Optional[int] = None
    ) -> List[CourseItem]:
        """
        Get the items of a course directly under a parent.

        Args:
            course_id: Owning course
            parent_id: Parent item id; None selects the course's root items

        Returns:
            Items ordered by id (creation order)
        """
        pass

    @abstractmethod
    def list_items(self, course_id: int) -> List[CourseItem]:
        """Get every item of a course ordered by id."""
        pass

    @abstractmethod
    def list_courses(self) -> List[Course]:
        """Get all courses ordered by id."""
        pass

    @abstractmethod
    def get_course(self, course_id: int) -> Optional[Course]:
        pass

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[CourseItem]:
        pass

    @abstractmethod
    def find_item_by_path(self, path: str) -> Optional[CourseItem]:
        """Get the item stored for an absolute path, if any."""
        pass

    @abstractmethod
    def delete_course(self, course_id: int) -> bool:
        """Delete a course and all of its items. Returns True if deleted."""
        pass

    @abstractmethod
    def delete_item(self, item_id: int) -> bool:
        """
        Delete a single item. Returns True if deleted.

        Raises:
            CatalogStoreError: If the item still has children
        """
        pass

    @abstractmethod
    def get_stats(self) -> Dict:
        """Get catalog statistics."""
        pass

    def acquire_rebuild_lock(self) -> None:
        """
        Take the store-wide lock held for the duration of a rebuild.

        Stores shared between processes override this so that only one
        rebuild can clear and refill the catalog at a time.

        Raises:
            RebuildLockedError: If another rebuild holds the lock
        """
        pass

    def release_rebuild_lock(self) -> None:
        """Release the lock taken by acquire_rebuild_lock."""
        pass

    def close(self) -> None:
        """Release resources held by the store."""
        pass
