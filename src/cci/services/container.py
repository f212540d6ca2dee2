"""
Centralized services container module for CCI.

Provides a shared container for all services used across the CLI and
HTTP entry points.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from cci.core.config import CCIConfig, load_config
from cci.core.scanner import DirectoryScanner
from cci.core.tree import TreeReconstructor
from cci.infrastructure import CatalogStoreInterface, create_catalog_store
from cci.services.catalog_service import CatalogService
from cci.services.scan_service import ScanOrchestrator


@dataclass
class ServicesContainer:
    """
    Container holding all shared service instances.

    Attributes:
        config: Application configuration
        store: Catalog store shared by every service
        scanner: Directory scanner writing course items
        scan_orchestrator: Full catalog rebuild service
        catalog_service: Read-side catalog queries
        tree: Course tree reconstructor
    """

    config: CCIConfig
    store: CatalogStoreInterface
    scanner: DirectoryScanner
    scan_orchestrator: ScanOrchestrator
    catalog_service: CatalogService
    tree: TreeReconstructor


def build_services(config: CCIConfig, store: CatalogStoreInterface) -> ServicesContainer:
    """Wire the services around an existing store."""
    scanner = DirectoryScanner(
        store,
        ignore_patterns=config.scan.ignore_patterns,
        follow_symlinks=config.scan.follow_symlinks,
    )
    tree = TreeReconstructor(store)
    return ServicesContainer(
        config=config,
        store=store,
        scanner=scanner,
        scan_orchestrator=ScanOrchestrator(store, scanner),
        catalog_service=CatalogService(store, tree),
        tree=tree,
    )


def create_services(
    config_path: Optional[Path] = None,
    db_path: Optional[Path] = None,
) -> ServicesContainer:
    """
    Create and initialize all services.

    Args:
        config_path: Optional path to configuration file. If None, uses
                    environment variables and defaults.
        db_path: Optional path for the catalog database. If None, uses
                 store.db_path from configuration.

    Returns:
        ServicesContainer with all initialized services.
    """
    load_dotenv()
    config = load_config(config_path)

    store = create_catalog_store(db_path or config.store.db_path)
    return build_services(config, store)
