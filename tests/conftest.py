"""Shared test fixtures."""

import hashlib
import tempfile
from pathlib import Path

import pytest

from duplicator.models import DirectoryListing, DuplicateFileEntry, FileEntry


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sample_trees(temp_dir):
    """Create a target and a merge folder for testing."""
    target = temp_dir / "target"
    merge = temp_dir / "merge"

    target.mkdir()
    merge.mkdir()

    # Files only in target
    (target / "only_in_target.txt").write_text("only in target")
    (target / "subdir").mkdir()
    (target / "subdir" / "nested.txt").write_text("nested")

    # Files only in merge
    (merge / "only_in_merge.txt").write_text("only in merge")

    # Identical files in both
    (target / "identical.txt").write_text("same content")
    (merge / "identical.txt").write_text("same content")
    (merge / "subdir").mkdir()
    (merge / "subdir" / "nested.txt").write_text("nested")

    # Same path, different content
    (target / "conflict.txt").write_text("content from target")
    (merge / "conflict.txt").write_text("content from merge")

    return target, merge


def make_entry(root_path, relative_path, content="content"):
    """Build a FileEntry without touching the filesystem."""
    data = content.encode()
    return FileEntry(
        root_path=root_path,
        path=root_path + relative_path,
        relative_path=relative_path,
        size=len(data),
        md5_checksum=hashlib.md5(data).hexdigest(),
    )


@pytest.fixture
def sample_file_entry():
    """Create a sample FileEntry for testing."""
    return FileEntry(
        root_path="/data/target",
        path="/data/target/test/file.txt",
        relative_path="/test/file.txt",
        size=1024,
        md5_checksum="d41d8cd98f00b204e9800998ecf8427e"
    )


@pytest.fixture
def sample_listing():
    """Create a small DirectoryListing for testing."""
    return DirectoryListing(
        path="/data/target",
        entries=[
            make_entry("/data/target", "/a.txt", "X"),
            make_entry("/data/target", "/sub/b.txt", "Y"),
        ]
    )


@pytest.fixture
def sample_duplicate():
    """Create a DuplicateFileEntry for testing."""
    return DuplicateFileEntry(
        target_entry=make_entry("/data/target", "/a.txt", "X"),
        merge_entry=make_entry("/data/merge", "/a.txt", "X"),
    )
