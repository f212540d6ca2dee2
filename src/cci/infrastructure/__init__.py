"""
Infrastructure Layer - Catalog store implementations.
"""

from cci.infrastructure.catalog_store import (
    CatalogStoreError,
    CatalogStoreInterface,
    Course,
    CourseItem,
    NewCourseItem,
    RebuildLockedError,
    SQLiteCatalogStore,
    create_catalog_store,
)
from cci.infrastructure.fakes import InMemoryCatalogStore

__all__ = [
    # Catalog store
    "CatalogStoreInterface",
    "SQLiteCatalogStore",
    "InMemoryCatalogStore",
    "CatalogStoreError",
    "RebuildLockedError",
    "Course",
    "CourseItem",
    "NewCourseItem",
    "create_catalog_store",
]
