"""Folder scanning functionality."""

import hashlib
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Optional, Union

from .errors import DirectoryNotFoundError, DirectoryNotReadableError, FileNotReadableError
from .models import DirectoryListing, FileEntry
from .progress import NullProgress, ProgressListener

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _checksum_and_size(file_path: PathLike, chunk_size: int) -> tuple[str, int]:
    hasher = hashlib.md5()
    size = 0
    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
            size += len(chunk)
    return hasher.hexdigest(), size


def compute_file_checksum(file_path: PathLike, chunk_size: int = 65536) -> str:
    """Compute the MD5 checksum of a file's whole content."""
    return _checksum_and_size(file_path, chunk_size)[0]


def validate_directory(directory: PathLike) -> str:
    """
    Check that a directory exists and can be listed.

    Returns the directory as an absolute path with symlinks resolved.
    """
    if not os.path.isdir(directory):
        raise DirectoryNotFoundError(f"The directory `{directory}` does not exist.")
    if not os.access(directory, os.R_OK | os.X_OK):
        raise DirectoryNotReadableError(f"The directory `{directory}` is not readable.")
    return os.path.realpath(directory)


def _sorted_entries(directory: str) -> list[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise DirectoryNotReadableError(
            f"The directory `{directory}` is not readable: {e.strerror or e}"
        ) from e


def collect_file_paths(root: PathLike) -> list[str]:
    """
    Enumerate all regular files below root, depth first.

    Entries of every directory are visited in name order and a
    subdirectory is descended into where it is met, so the result is
    stable for an unchanged tree. Uses an explicit stack instead of
    recursion so deep trees cannot exhaust the interpreter stack.
    """
    paths = []
    stack = [iter(_sorted_entries(str(root)))]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        if entry.is_dir():
            stack.append(iter(_sorted_entries(entry.path)))
        elif entry.is_file():
            paths.append(entry.path)
        elif entry.is_symlink():
            # Dangling link: it will fail to read, like a vanished file
            paths.append(entry.path)
        else:
            logger.debug("Skipping special file %s", entry.path)
    return paths


def get_file_entry(root_path: str, path: str, chunk_size: int = 65536) -> FileEntry:
    """Fingerprint one file found below root_path."""
    try:
        checksum, size = _checksum_and_size(path, chunk_size)
    except OSError as e:
        raise FileNotReadableError(
            f"The file `{path}` could not be read: {e.strerror or e}"
        ) from e

    return FileEntry(
        root_path=root_path,
        path=path,
        relative_path=path[len(root_path):],
        size=size,
        md5_checksum=checksum,
    )


def scan_directory(
    directory: PathLike,
    progress: Optional[ProgressListener] = None,
    workers: int = 1,
) -> DirectoryListing:
    """
    Scan a folder recursively and return its listing.

    Args:
        directory: Path to the folder to scan
        progress: Receives the file count and each fingerprinted file
        workers: Number of threads computing checksums; the listing order
            does not depend on it

    Raises:
        DirectoryNotFoundError, DirectoryNotReadableError: The folder or
            one of its subfolders cannot be listed
        FileNotReadableError: A file vanished or could not be read; the
            whole scan is aborted
    """
    progress = progress or NullProgress()
    root_path = validate_directory(directory)

    logger.info("Scanning %s", root_path)
    paths = collect_file_paths(root_path)
    logger.info("Found %d files below %s", len(paths), root_path)

    progress.start(len(paths), f"Scanning {root_path}")
    fingerprint = partial(get_file_entry, root_path)
    entries = []
    try:
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                try:
                    for count, entry in enumerate(executor.map(fingerprint, paths), start=1):
                        entries.append(entry)
                        progress.advance(entry.relative_path, count)
                except BaseException:
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise
        else:
            for count, path in enumerate(paths, start=1):
                entry = fingerprint(path)
                entries.append(entry)
                progress.advance(entry.relative_path, count)
    finally:
        progress.finish()

    logger.info("Scanned %d files below %s", len(entries), root_path)
    return DirectoryListing(path=root_path, entries=entries)
