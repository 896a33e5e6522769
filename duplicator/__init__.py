"""
Duplicator - A CLI tool to find and reconcile duplicate files between two folders.

Features:
- Recursive folder scans persisted as JSON documents
- Duplicate detection by relative path and MD5 checksum
- Move merge-side duplicates into a target folder, never overwriting
- Remove merge-side duplicates
- Progress visualization
"""

import logging

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
