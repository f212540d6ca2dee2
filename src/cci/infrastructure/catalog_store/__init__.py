"""
Catalog Store module for Project CCI.

SQLite-based storage for courses and their flat, parent-linked items.
"""

from .interface import CatalogStoreInterface
from .models import (
    FOLDER_TYPE,
    CatalogStoreError,
    Course,
    CourseItem,
    NewCourseItem,
    RebuildLockedError,
)
from .queries import CatalogQueryExecutor, now_with_tz
from .schema import initialize_schema
from .store import SQLiteCatalogStore, create_catalog_store

__all__ = [
    # Main classes
    "CatalogStoreInterface",
    "SQLiteCatalogStore",
    "Course",
    "CourseItem",
    "NewCourseItem",
    "CatalogStoreError",
    "RebuildLockedError",
    "FOLDER_TYPE",
    # Query executor
    "CatalogQueryExecutor",
    # Schema
    "initialize_schema",
    # Factory
    "create_catalog_store",
    # Utilities
    "now_with_tz",
]
