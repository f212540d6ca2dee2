"""
Service Layer - ScanOrchestrator, CatalogService, and ServicesContainer.
"""

from cci.services.catalog_service import CatalogService, CourseNotFoundError
from cci.services.container import ServicesContainer, build_services, create_services
from cci.services.scan_models import (
    CatalogError,
    RescanInProgressError,
    RootNotFoundError,
    ScanCancelledError,
    ScanResult,
    StoreWriteError,
    TreeLoadError,
    format_scan_message,
)
from cci.services.scan_service import ScanOrchestrator

__all__ = [
    # Container and factory
    "ServicesContainer",
    "build_services",
    "create_services",
    # Services
    "ScanOrchestrator",
    "ScanResult",
    "format_scan_message",
    "CatalogService",
    # Errors
    "CatalogError",
    "CourseNotFoundError",
    "RootNotFoundError",
    "StoreWriteError",
    "TreeLoadError",
    "RescanInProgressError",
    "ScanCancelledError",
]
