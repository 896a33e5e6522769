"""Move or remove merge-side duplicate files."""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

from .errors import (
    DirectoryNotCreatableError,
    DirectoryNotFoundError,
    DirectoryNotWritableError,
    DuplicatorError,
    FileFoundError,
    FileMissingError,
    FileNotMovableError,
    FileNotRemovableError,
    ListingFormatError,
)
from .models import ActionMode, ActionState, DirectoryListing, FileEntry
from .progress import NullProgress, ProgressListener

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def destination_path(target_directory: PathLike, relative_path: str) -> str:
    """
    Return where a file with relative_path lands below target_directory.

    Raises ListingFormatError if the relative path escapes the target
    directory, e.g. through `..` segments.
    """
    root = os.path.abspath(target_directory).rstrip(os.sep) or os.sep
    dst = os.path.normpath(root + os.sep + relative_path.lstrip(os.sep))
    if dst == root or os.path.commonpath([root, dst]) != root:
        raise ListingFormatError(
            f"The relative path `{relative_path}` leads outside of `{target_directory}`."
        )
    return dst


def move_file(src: str, dst: str) -> None:
    """Move a file, creating parent directories if needed. Never replaces dst."""
    dst_parent = os.path.dirname(dst)
    try:
        os.makedirs(dst_parent, exist_ok=True)
    except OSError as e:
        raise DirectoryNotCreatableError(
            f"The directory `{dst_parent}` cannot be created: {e.strerror or e}"
        ) from e

    # Linking fails if dst exists, unlike rename which replaces it
    try:
        os.link(src, dst)
    except FileExistsError as e:
        raise FileFoundError(f"The target file `{dst}` already exists.") from e
    except OSError:
        # No hard links across devices or on this filesystem
        if os.path.lexists(dst):
            raise FileFoundError(f"The target file `{dst}` already exists.")
        shutil.move(src, dst)
    else:
        os.remove(src)


class DuplicateActionExecutor:
    """
    Applies one action to every file of a duplicate listing.

    The run goes through IDLE, VALIDATING and PROCESSING and ends in
    COMPLETED or FAILED. Files are processed in listing order and the
    first error aborts the run. Files already moved or removed stay that
    way, nothing is rolled back and nothing records how far a failed run
    got, so a failed run has to be restarted from a fresh listing.
    """

    def __init__(
        self,
        listing: DirectoryListing,
        mode: ActionMode,
        target_directory: Optional[PathLike] = None,
        progress: Optional[ProgressListener] = None,
    ):
        if mode is ActionMode.MOVE and target_directory is None:
            raise ValueError("Moving duplicates needs a target directory")
        self.listing = listing
        self.mode = mode
        self.target_directory = target_directory
        self.progress = progress or NullProgress()
        self.state = ActionState.IDLE
        self.processed = 0

    def validate(self) -> None:
        """Check the target directory before any file is touched."""
        if self.mode is not ActionMode.MOVE:
            return
        if not os.path.isdir(self.target_directory):
            raise DirectoryNotFoundError(
                f"The target directory `{self.target_directory}` does not exist."
            )
        if not os.access(self.target_directory, os.W_OK | os.X_OK):
            raise DirectoryNotWritableError(
                f"The target directory `{self.target_directory}` is not writable."
            )

    def run(self) -> int:
        """Process all files and return how many were processed."""
        if self.state is not ActionState.IDLE:
            raise RuntimeError(f"Action run already {self.state.value}")

        try:
            self.state = ActionState.VALIDATING
            self.validate()

            self.state = ActionState.PROCESSING
            verb = "Moving" if self.mode is ActionMode.MOVE else "Removing"
            self.progress.start(len(self.listing), f"{verb} duplicates: {self.listing.path}")
            try:
                for count, entry in enumerate(self.listing, start=1):
                    self.progress.advance(entry.relative_path, count)
                    self._process(entry)
                    self.processed = count
            finally:
                self.progress.finish()
        except DuplicatorError as e:
            self.state = ActionState.FAILED
            logger.error("%s failed after %d files: %s", self.mode.value, self.processed, e)
            raise

        self.state = ActionState.COMPLETED
        logger.info("%s completed for %d files", self.mode.value, self.processed)
        return self.processed

    def _process(self, entry: FileEntry) -> None:
        if not os.path.isfile(entry.path):
            raise FileMissingError(f"The file `{entry.path}` does not exist.")

        if self.mode is ActionMode.DELETE:
            try:
                os.remove(entry.path)
            except OSError as e:
                raise FileNotRemovableError(
                    f"The file `{entry.path}` cannot be removed: {e.strerror or e}"
                ) from e
            logger.debug("Removed %s", entry.path)
            return

        dst = destination_path(self.target_directory, entry.relative_path)
        if os.path.lexists(dst):
            raise FileFoundError(f"The target file `{dst}` already exists.")
        try:
            move_file(entry.path, dst)
        except OSError as e:
            raise FileNotMovableError(
                f"The file `{entry.path}` cannot be moved to `{dst}`: {e.strerror or e}"
            ) from e
        logger.debug("Moved %s to %s", entry.path, dst)


def move_duplicates(
    listing: DirectoryListing,
    target_directory: PathLike,
    progress: Optional[ProgressListener] = None,
) -> int:
    """Move every listed file below target_directory, keeping its relative path."""
    return DuplicateActionExecutor(listing, ActionMode.MOVE, target_directory, progress).run()


def remove_duplicates(
    listing: DirectoryListing,
    progress: Optional[ProgressListener] = None,
) -> int:
    """Delete every listed file."""
    return DuplicateActionExecutor(listing, ActionMode.DELETE, progress=progress).run()
