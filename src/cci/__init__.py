"""
Course Catalog Indexer - mirrors a directory of courses into a browsable catalog.
"""

from cci.http_server import create_app

__all__ = ["create_app"]
