"""Data models for duplicator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from .errors import ListingFormatError


class ActionMode(Enum):
    """What to do with merge-side duplicate files."""
    MOVE = "move"
    DELETE = "delete"


class ActionState(Enum):
    """Lifecycle of one action run."""
    IDLE = "idle"
    VALIDATING = "validating"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_FILE_ENTRY_FIELDS = (
    ("rootPath", "root_path", str),
    ("path", "path", str),
    ("relativePath", "relative_path", str),
    ("size", "size", int),
    ("md5Checksum", "md5_checksum", str),
)


@dataclass(frozen=True)
class FileEntry:
    """Fingerprint of one file found below a scan root."""
    root_path: str
    path: str
    relative_path: str
    size: int
    md5_checksum: str

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr, _ in _FILE_ENTRY_FIELDS}

    @classmethod
    def from_dict(cls, data: dict) -> "FileEntry":
        if not isinstance(data, dict):
            raise ListingFormatError(f"File entry must be an object, got {type(data).__name__}")
        values = {}
        for key, attr, kind in _FILE_ENTRY_FIELDS:
            if key not in data:
                raise ListingFormatError(f"File entry is missing `{key}`")
            value = data[key]
            # bool is an int subclass but never a valid size
            if not isinstance(value, kind) or isinstance(value, bool):
                raise ListingFormatError(
                    f"File entry field `{key}` must be {kind.__name__}, got {type(value).__name__}"
                )
            values[attr] = value
        return cls(**values)


@dataclass
class DirectoryListing:
    """Ordered file entries of one scanned root, looked up by relative path."""
    path: str
    entries: list[FileEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._index: dict[str, FileEntry] = {}
        for entry in self.entries:
            if entry.relative_path in self._index:
                raise ListingFormatError(
                    f"Duplicate relative path `{entry.relative_path}` in listing of `{self.path}`"
                )
            self._index[entry.relative_path] = entry

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirectoryListing):
            return NotImplemented
        return self.path == other.path and self.entries == other.entries

    def find_by_relative_path(self, relative_path: str) -> Optional[FileEntry]:
        return self._index.get(relative_path)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "fileEntries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DirectoryListing":
        if not isinstance(data, dict):
            raise ListingFormatError("Directory scan document must be an object")
        if not isinstance(data.get("path"), str):
            raise ListingFormatError("Directory scan document is missing `path`")
        if not isinstance(data.get("fileEntries"), list):
            raise ListingFormatError("Directory scan document is missing `fileEntries`")
        return cls(
            path=data["path"],
            entries=[FileEntry.from_dict(item) for item in data["fileEntries"]],
        )


@dataclass(frozen=True)
class DuplicateFileEntry:
    """A target file and a merge file with the same relative path and content."""
    target_entry: FileEntry
    merge_entry: FileEntry

    def __post_init__(self) -> None:
        if self.target_entry.relative_path != self.merge_entry.relative_path:
            raise ValueError(
                f"Relative paths differ: {self.target_entry.relative_path} != "
                f"{self.merge_entry.relative_path}"
            )
        if self.target_entry.md5_checksum != self.merge_entry.md5_checksum:
            raise ValueError(f"Checksums differ for {self.target_entry.relative_path}")

    def to_dict(self) -> dict:
        return {
            "targetFileEntry": self.target_entry.to_dict(),
            "mergeFileEntry": self.merge_entry.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DuplicateFileEntry":
        if not isinstance(data, dict):
            raise ListingFormatError("Duplicate entry must be an object")
        for key in ("targetFileEntry", "mergeFileEntry"):
            if key not in data:
                raise ListingFormatError(f"Duplicate entry is missing `{key}`")
        try:
            return cls(
                target_entry=FileEntry.from_dict(data["targetFileEntry"]),
                merge_entry=FileEntry.from_dict(data["mergeFileEntry"]),
            )
        except ValueError as e:
            raise ListingFormatError(f"Invalid duplicate entry: {e}") from e
