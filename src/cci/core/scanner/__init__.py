"""
Directory scanner module for Project CCI.

Walks a course directory depth-first and writes one course item per
folder and file, with parent links resolved against committed ids.
"""

from .interfaces import DirectoryScannerInterface
from .models import DirectoryFrame, ScanContext, SubtreeScanError
from .scanner import DirectoryScanner

__all__ = [
    # Main classes
    "DirectoryScanner",
    "DirectoryScannerInterface",
    # Models
    "ScanContext",
    "SubtreeScanError",
    "DirectoryFrame",
]
