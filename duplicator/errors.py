"""Errors raised by the scan, compare and action commands."""


class DuplicatorError(Exception):
    """Base class for every error that aborts a command."""


class DirectoryNotFoundError(DuplicatorError):
    """A required directory does not exist."""


class DirectoryNotReadableError(DuplicatorError):
    """A directory exists but cannot be listed."""


class DirectoryNotWritableError(DuplicatorError):
    """A directory exists but files cannot be created in it."""


class DirectoryNotCreatableError(DuplicatorError):
    """A destination directory could not be created."""


class FileMissingError(DuplicatorError):
    """A file that is expected to exist is gone."""


class FileNotReadableError(DuplicatorError):
    """A file exists but could not be read."""


class FileFoundError(DuplicatorError):
    """A destination file already exists and must not be overwritten."""


class FileNotCreatableError(DuplicatorError):
    """An output file could not be written."""


class ListingFormatError(DuplicatorError):
    """A persisted scan or duplicate document is malformed."""


class FileNotMovableError(DuplicatorError):
    """A file could not be moved to its destination."""


class FileNotRemovableError(DuplicatorError):
    """A file could not be deleted."""
