"""
Data models for the catalog store.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

FOLDER_TYPE = "folder"


class CatalogStoreError(Exception):
    """Base exception for catalog store errors."""
    pass


class RebuildLockedError(CatalogStoreError):
    """Raised when another connection holds the catalog rebuild lock."""
    pass


@dataclass
class Course:
    """A top-level scanned directory."""
    id: int
    name: str
    path: str
    created_at: datetime


@dataclass
class NewCourseItem:
    """Insert payload for a course item that has no identity key yet."""
    course_id: int
    parent_id: Optional[int]
    name: str
    path: str
    type: str
    extension: str = ""
    size: int = 0

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER_TYPE


@dataclass
class CourseItem:
    """
    One folder or file indexed under a course.

    Attributes:
        id: Identity key assigned by the store
        course_id: Owning course
        parent_id: Parent item id, None for root-level items
        name: Base name on disk
        path: Absolute path on disk
        type: 'folder' or a content category from the classifier
        extension: Lower-case extension with the dot, empty for folders
        size: Size in bytes, 0 for folders
    """
    id: int
    course_id: int
    parent_id: Optional[int]
    name: str
    path: str
    type: str
    extension: str
    size: int

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER_TYPE
