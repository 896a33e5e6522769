"""Tests for duplicator.actions module."""

import os
from unittest.mock import patch

import pytest

from conftest import make_entry
from duplicator.actions import (
    DuplicateActionExecutor,
    destination_path,
    move_duplicates,
    move_file,
    remove_duplicates,
)
from duplicator.errors import (
    DirectoryNotCreatableError,
    DirectoryNotFoundError,
    DirectoryNotWritableError,
    FileFoundError,
    FileMissingError,
    FileNotMovableError,
    FileNotRemovableError,
    ListingFormatError,
)
from duplicator.matcher import find_duplicates
from duplicator.models import ActionMode, ActionState, DirectoryListing, FileEntry
from duplicator.scanner import scan_directory


@pytest.fixture
def duplicate_listing(sample_trees):
    """Merge-side listing of the duplicates in the sample trees."""
    target, merge = sample_trees
    duplicates = find_duplicates(scan_directory(target), scan_directory(merge))
    return DirectoryListing(
        path=duplicates[0].merge_entry.path,
        entries=[pair.merge_entry for pair in duplicates]
    )


class TestDestinationPath:
    """Tests for destination_path function."""

    def test_appends_relative_path(self, temp_dir):
        assert destination_path(temp_dir, "/sub/a.txt") == str(temp_dir) + "/sub/a.txt"

    def test_trailing_separator(self, temp_dir):
        assert destination_path(str(temp_dir) + os.sep, os.sep + "a.txt") == str(temp_dir / "a.txt")

    def test_relative_path_without_leading_separator(self, temp_dir):
        assert destination_path(temp_dir, "a.txt") == str(temp_dir / "a.txt")

    def test_dot_segments_inside_target(self, temp_dir):
        assert destination_path(temp_dir, "/sub/../a.txt") == str(temp_dir / "a.txt")

    @pytest.mark.parametrize("relative_path", ["/../escape.txt", "/sub/../../escape.txt", "/"])
    def test_rejects_paths_outside_target(self, temp_dir, relative_path):
        with pytest.raises(ListingFormatError, match="leads outside"):
            destination_path(temp_dir / "target", relative_path)


class TestMoveFile:
    """Tests for move_file function."""

    def test_move_file_creates_parent_dirs(self, temp_dir):
        src = temp_dir / "source.txt"
        dst = temp_dir / "subdir" / "nested" / "dest.txt"
        src.write_text("content")

        move_file(str(src), str(dst))

        assert not src.exists()
        assert dst.read_text() == "content"

    def test_parent_not_creatable(self, temp_dir):
        src = temp_dir / "source.txt"
        src.write_text("content")
        (temp_dir / "blocker").write_text("a file, not a folder")

        with pytest.raises(DirectoryNotCreatableError, match="cannot be created"):
            move_file(str(src), str(temp_dir / "blocker" / "dest.txt"))
        assert src.exists()

    def test_never_replaces_existing_file(self, temp_dir):
        src = temp_dir / "source.txt"
        dst = temp_dir / "dest.txt"
        src.write_text("content")
        dst.write_text("already here")

        with pytest.raises(FileFoundError, match="already exists"):
            move_file(str(src), str(dst))
        assert src.read_text() == "content"
        assert dst.read_text() == "already here"

    def test_falls_back_to_move_without_hard_links(self, temp_dir):
        src = temp_dir / "source.txt"
        dst = temp_dir / "dest.txt"
        src.write_text("content")

        with patch("duplicator.actions.os.link", side_effect=OSError(18, "Invalid cross-device link")):
            move_file(str(src), str(dst))

        assert not src.exists()
        assert dst.read_text() == "content"

    def test_fallback_never_replaces_existing_file(self, temp_dir):
        src = temp_dir / "source.txt"
        dst = temp_dir / "dest.txt"
        src.write_text("content")
        dst.write_text("already here")

        with patch("duplicator.actions.os.link", side_effect=OSError(18, "Invalid cross-device link")):
            with pytest.raises(FileFoundError):
                move_file(str(src), str(dst))
        assert dst.read_text() == "already here"


class TestMoveDuplicates:
    """Tests for moving duplicates."""

    def test_moves_merge_files(self, sample_trees, duplicate_listing, temp_dir):
        _, merge = sample_trees
        destination = temp_dir / "moved"
        destination.mkdir()

        moved = move_duplicates(duplicate_listing, destination)

        assert moved == 2
        assert (destination / "identical.txt").read_text() == "same content"
        assert (destination / "subdir" / "nested.txt").read_text() == "nested"
        assert not (merge / "identical.txt").exists()
        assert not (merge / "subdir" / "nested.txt").exists()
        # Non-duplicates stay where they are
        assert (merge / "conflict.txt").exists()
        assert (merge / "only_in_merge.txt").exists()

    def test_collision_aborts_without_touching_source(self, sample_trees, duplicate_listing, temp_dir):
        _, merge = sample_trees
        destination = temp_dir / "moved"
        (destination / "subdir").mkdir(parents=True)
        (destination / "subdir" / "nested.txt").write_text("already here")

        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.MOVE, destination)
        with pytest.raises(FileFoundError, match="already exists"):
            executor.run()

        assert executor.state is ActionState.FAILED
        assert executor.processed == 1
        # Earlier move stays done, colliding source and destination untouched
        assert (destination / "identical.txt").exists()
        assert not (merge / "identical.txt").exists()
        assert (merge / "subdir" / "nested.txt").read_text() == "nested"
        assert (destination / "subdir" / "nested.txt").read_text() == "already here"

    def test_missing_source(self, sample_trees, duplicate_listing, temp_dir):
        _, merge = sample_trees
        (merge / "identical.txt").unlink()

        with pytest.raises(FileMissingError, match="identical.txt"):
            move_duplicates(duplicate_listing, temp_dir)

    def test_missing_target_directory(self, duplicate_listing, temp_dir):
        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.MOVE, temp_dir / "missing")

        with pytest.raises(DirectoryNotFoundError):
            executor.run()

        assert executor.state is ActionState.FAILED
        assert executor.processed == 0

    def test_unwritable_target_directory(self, sample_trees, duplicate_listing, temp_dir):
        _, merge = sample_trees
        with patch("duplicator.actions.os.access", return_value=False):
            with pytest.raises(DirectoryNotWritableError):
                move_duplicates(duplicate_listing, temp_dir)
        assert (merge / "identical.txt").exists()

    def test_move_needs_target_directory(self, duplicate_listing):
        with pytest.raises(ValueError):
            DuplicateActionExecutor(duplicate_listing, ActionMode.MOVE)

    def test_destination_created_after_check(self, sample_trees, duplicate_listing, temp_dir):
        _, merge = sample_trees
        destination = temp_dir / "moved"
        destination.mkdir()
        (destination / "identical.txt").write_text("appeared meanwhile")

        with patch("duplicator.actions.os.path.lexists", return_value=False):
            with pytest.raises(FileFoundError, match="already exists"):
                move_duplicates(duplicate_listing, destination)

        assert (destination / "identical.txt").read_text() == "appeared meanwhile"
        assert (merge / "identical.txt").read_text() == "same content"

    def test_relative_path_outside_target(self, temp_dir):
        source = temp_dir / "merge" / "a.txt"
        source.parent.mkdir()
        source.write_text("content")
        entry = make_entry(str(temp_dir / "merge"), "/a.txt")
        escaping = FileEntry(entry.root_path, entry.path, "/../../a.txt", entry.size, entry.md5_checksum)
        destination = temp_dir / "moved" / "deep"
        destination.mkdir(parents=True)

        with pytest.raises(ListingFormatError, match="leads outside"):
            move_duplicates(DirectoryListing(path=str(source), entries=[escaping]), destination)

        assert source.exists()
        assert not (temp_dir / "a.txt").exists()

    def test_move_failure(self, sample_trees, duplicate_listing, temp_dir):
        _, merge = sample_trees
        destination = temp_dir / "moved"
        destination.mkdir()

        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.MOVE, destination)
        with patch("duplicator.actions.move_file", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(FileNotMovableError, match="Permission denied"):
                executor.run()

        assert executor.state is ActionState.FAILED
        assert (merge / "identical.txt").exists()


class TestRemoveDuplicates:
    """Tests for removing duplicates."""

    def test_removes_merge_files(self, sample_trees, duplicate_listing):
        target, merge = sample_trees

        removed = remove_duplicates(duplicate_listing)

        assert removed == 2
        assert not (merge / "identical.txt").exists()
        assert not (merge / "subdir" / "nested.txt").exists()
        assert (target / "identical.txt").exists()
        assert (merge / "conflict.txt").exists()

    def test_missing_file_aborts(self, sample_trees, duplicate_listing):
        _, merge = sample_trees
        (merge / "subdir" / "nested.txt").unlink()

        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.DELETE)
        with pytest.raises(FileMissingError):
            executor.run()

        assert executor.state is ActionState.FAILED
        assert not (merge / "identical.txt").exists()

    def test_remove_failure(self, sample_trees, duplicate_listing):
        _, merge = sample_trees

        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.DELETE)
        with patch("duplicator.actions.os.remove", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(FileNotRemovableError, match="cannot be removed"):
                executor.run()

        assert executor.state is ActionState.FAILED
        assert executor.processed == 0
        assert (merge / "identical.txt").exists()

    def test_empty_listing_touches_nothing(self):
        with patch("duplicator.actions.os.remove") as mock_remove, \
                patch("duplicator.actions.os.path.isfile") as mock_isfile:
            removed = remove_duplicates(DirectoryListing(path=""))

        assert removed == 0
        mock_remove.assert_not_called()
        mock_isfile.assert_not_called()


class TestExecutorState:
    """Tests for the executor lifecycle."""

    def test_completed_state(self, duplicate_listing):
        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.DELETE)
        assert executor.state is ActionState.IDLE

        executor.run()

        assert executor.state is ActionState.COMPLETED
        assert executor.processed == 2

    def test_cannot_run_twice(self, duplicate_listing):
        executor = DuplicateActionExecutor(duplicate_listing, ActionMode.DELETE)
        executor.run()

        with pytest.raises(RuntimeError):
            executor.run()

    def test_reports_progress(self, duplicate_listing):
        advances = []

        class Progress:
            def start(self, total, description=""):
                advances.append(total)

            def advance(self, current, count):
                advances.append((current, count))

            def finish(self):
                advances.append("done")

        remove_duplicates(duplicate_listing, Progress())

        assert advances == [
            2,
            (os.sep + "identical.txt", 1),
            (os.sep + os.path.join("subdir", "nested.txt"), 2),
            "done",
        ]
