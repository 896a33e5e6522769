"""Duplicate detection between a target listing and a merge listing."""

import logging
from typing import Optional

from .models import DirectoryListing, DuplicateFileEntry
from .progress import NullProgress, ProgressListener

logger = logging.getLogger(__name__)


def find_duplicates(
    target: DirectoryListing,
    merge: DirectoryListing,
    progress: Optional[ProgressListener] = None,
) -> list[DuplicateFileEntry]:
    """
    Find files of the target listing that also exist in the merge listing.

    A pair is reported only when both files have the same relative path
    and the same checksum. Files with the same path but different content
    and files only present in the merge listing are left out. Pairs are
    returned in target listing order.
    """
    progress = progress or NullProgress()
    progress.start(len(target), f"Determining duplicates: {target.path}")

    duplicates = []
    try:
        for count, target_entry in enumerate(target, start=1):
            progress.advance(target_entry.relative_path, count)
            merge_entry = merge.find_by_relative_path(target_entry.relative_path)
            if merge_entry is not None and merge_entry.md5_checksum == target_entry.md5_checksum:
                duplicates.append(DuplicateFileEntry(target_entry, merge_entry))
    finally:
        progress.finish()

    logger.info(
        "Found %d duplicates between %s (%d files) and %s (%d files)",
        len(duplicates), target.path, len(target), merge.path, len(merge)
    )
    return duplicates
