"""
Core Layer - Classification, directory scanning, tree reconstruction and configuration.
"""

from cci.core.classifier import (
    GENERIC_FILE_TYPE,
    ContentTypeRegistry,
    classify,
    get_default_registry,
)
from cci.core.config import (
    CCIConfig,
    LoggingConfig,
    ScanConfig,
    ServerConfig,
    StoreConfig,
    load_config,
)
from cci.core.errors import (
    CatalogError,
    RescanInProgressError,
    RootNotFoundError,
    ScanCancelledError,
    StoreWriteError,
    TreeLoadError,
)
from cci.core.scanner import (
    DirectoryScanner,
    DirectoryScannerInterface,
    ScanContext,
    SubtreeScanError,
)
from cci.core.tree import (
    CourseTreeNode,
    TreeReconstructor,
    count_nodes,
    flatten_tree,
    iter_tree,
)

__all__ = [
    # Config
    "CCIConfig",
    "StoreConfig",
    "ScanConfig",
    "ServerConfig",
    "LoggingConfig",
    "load_config",
    # Classifier
    "ContentTypeRegistry",
    "GENERIC_FILE_TYPE",
    "classify",
    "get_default_registry",
    # Scanner
    "DirectoryScanner",
    "DirectoryScannerInterface",
    "ScanContext",
    "SubtreeScanError",
    # Tree
    "CourseTreeNode",
    "TreeReconstructor",
    "iter_tree",
    "flatten_tree",
    "count_nodes",
    # Errors
    "CatalogError",
    "RootNotFoundError",
    "StoreWriteError",
    "TreeLoadError",
    "RescanInProgressError",
    "ScanCancelledError",
]
