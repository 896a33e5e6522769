"""JSON documents for directory scans and duplicate listings."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from .errors import FileMissingError, FileNotCreatableError, FileNotReadableError, ListingFormatError
from .models import DirectoryListing, DuplicateFileEntry, FileEntry
from .progress import NullProgress, ProgressListener

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

INDENT = 4


def _parse(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ListingFormatError(f"Malformed JSON: {e}") from e


def encode_listing(listing: DirectoryListing) -> str:
    """Encode a directory listing as a pretty-printed scan document."""
    return json.dumps(listing.to_dict(), indent=INDENT, ensure_ascii=False)


def decode_listing(text: str, progress: Optional[ProgressListener] = None) -> DirectoryListing:
    """Decode a scan document back into a directory listing."""
    progress = progress or NullProgress()
    data = _parse(text)
    if not isinstance(data, dict) or not isinstance(data.get("fileEntries"), list):
        raise ListingFormatError("Directory scan document must be an object with `path` and `fileEntries`")
    if not isinstance(data.get("path"), str):
        raise ListingFormatError("Directory scan document is missing `path`")

    raw_entries = data["fileEntries"]
    progress.start(len(raw_entries), f"Decoding directory scan: {data['path']}")
    entries = []
    try:
        for count, raw_entry in enumerate(raw_entries, start=1):
            entry = FileEntry.from_dict(raw_entry)
            entries.append(entry)
            progress.advance(entry.path, count)
    finally:
        progress.finish()

    return DirectoryListing(path=data["path"], entries=entries)


def encode_duplicates(duplicates: Iterable[DuplicateFileEntry]) -> str:
    """Encode duplicate pairs as a pretty-printed duplicate document."""
    return json.dumps([pair.to_dict() for pair in duplicates], indent=INDENT, ensure_ascii=False)


def decode_duplicates(document: Union[str, list]) -> list[DuplicateFileEntry]:
    """Decode a duplicate document, given as JSON text or as a parsed array."""
    data = _parse(document) if isinstance(document, str) else document
    if not isinstance(data, list):
        raise ListingFormatError("Duplicate document must be an array")
    return [DuplicateFileEntry.from_dict(item) for item in data]


def listing_from_duplicates(
    document: Union[str, list],
    progress: Optional[ProgressListener] = None,
) -> DirectoryListing:
    """
    Build the listing of merge-side files from a duplicate document.

    The document is JSON text or the already parsed array. Only the merge
    side of each pair is kept, since those are the files that get moved
    or removed. The listing path is the merge file path of the first
    pair, which assumes all pairs come from the same merge root; pairs
    from several roots are not detected. An empty document yields an
    empty listing with an empty path.
    """
    progress = progress or NullProgress()
    duplicates = decode_duplicates(document)
    if not duplicates:
        return DirectoryListing(path="", entries=[])

    progress.start(len(duplicates), "Decoding duplicate listing")
    entries = []
    try:
        for count, pair in enumerate(duplicates, start=1):
            entries.append(pair.merge_entry)
            progress.advance(pair.merge_entry.path, count)
    finally:
        progress.finish()

    return DirectoryListing(path=duplicates[0].merge_entry.path, entries=entries)


def read_document(path: PathLike, description: str = "document file") -> str:
    """
    Read a persisted JSON document, failing with a message naming the file.

    Bytes that are not valid UTF-8 come back as surrogate escapes, the same
    way the OS hands out file names that are not valid UTF-8.
    """
    path = Path(path)
    if not path.is_file():
        raise FileMissingError(f"The {description} `{path}` does not exist.")
    try:
        return path.read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as e:
        raise FileNotReadableError(f"The {description} `{path}` is not readable: {e}") from e


def write_document(text: str, path: Optional[PathLike] = None) -> None:
    """
    Write a JSON document to an output file, or to stdout if path is None.

    File names that are not valid UTF-8 are written back as their original
    bytes, so the document round-trips through read_document.
    """
    try:
        data = (text + "\n").encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError as e:
        raise ListingFormatError(f"The document contains text that cannot be encoded: {e}") from e

    if path is None:
        sys.stdout.flush()
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return

    path = Path(path)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise FileNotCreatableError(f"The output file `{path}` cannot be created: {e}") from e
    logger.info("Wrote %s", path)
