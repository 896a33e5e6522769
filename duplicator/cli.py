"""Command-line interface for duplicator."""

import argparse
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from . import __version__
from .actions import move_duplicates, remove_duplicates
from .codec import (
    decode_listing,
    encode_duplicates,
    encode_listing,
    listing_from_duplicates,
    read_document,
    write_document,
)
from .errors import DirectoryNotFoundError, DirectoryNotWritableError, DuplicatorError
from .matcher import find_duplicates
from .progress import NullProgress, ProgressListener, TqdmProgress
from .scanner import scan_directory, validate_directory

logger = logging.getLogger(__name__)

LOG_DIR_ENV = "DUPLICATOR_LOG_DIR"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="duplicator",
        description="Find and reconcile duplicate files between a target folder and a merge folder.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s scan /data/photos -o photos.json
  %(prog)s scan /mnt/backup/photos -o backup.json
  %(prog)s compare photos.json backup.json -o duplicates.json
  %(prog)s move duplicates.json /data/already-merged
  %(prog)s remove duplicates.json
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=f"Append log messages to this file (default: <${LOG_DIR_ENV}>/<date>.log if set)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log details to stderr")
    parser.add_argument("--quiet", "-q", action="store_true", help="Do not show progress bars")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Scan a folder for all files")
    scan.add_argument("directory", type=Path, help="Folder to scan")
    _add_output_options(scan)
    _add_jobs_option(scan)
    scan.set_defaults(func=run_scan)

    scan_dirs = subparsers.add_parser(
        "scan-dirs", help="Scan a target and a merge folder and list their duplicates"
    )
    scan_dirs.add_argument("target", type=Path, help="Folder to merge into")
    scan_dirs.add_argument("merge", type=Path, help="Folder to get merged into the target folder")
    _add_output_options(scan_dirs)
    _add_jobs_option(scan_dirs)
    scan_dirs.set_defaults(func=run_scan_dirs)

    compare = subparsers.add_parser("compare", help="Compare two folder scans for duplicates")
    compare.add_argument("target_scan", type=Path, help="Scan file of the target folder")
    compare.add_argument("merge_scan", type=Path, help="Scan file of the folder to merge into the target folder")
    _add_output_options(compare)
    compare.set_defaults(func=run_compare)

    move = subparsers.add_parser("move", help="Move merge-side duplicates into a folder")
    move.add_argument("duplicates", type=Path, help="Duplicate listing file")
    move.add_argument("target_directory", type=Path, help="Folder to move the duplicates into")
    move.set_defaults(func=run_move)

    remove = subparsers.add_parser("remove", help="Delete merge-side duplicates")
    remove.add_argument("duplicates", type=Path, help="Duplicate listing file")
    remove.set_defaults(func=run_remove)

    args = parser.parse_args(argv)
    if getattr(args, "jobs", 1) < 1:
        parser.error("--jobs must be at least 1")
    return args


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-file", "-o",
        type=Path,
        default=None,
        help="File to write the JSON result to (default: stdout)"
    )
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Overwrite an existing output file without asking"
    )


def _add_jobs_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--jobs", "-j",
        type=int,
        default=1,
        help="Number of threads computing checksums (default: 1)"
    )


def configure_logging(log_file: Optional[Path] = None, verbose: bool = False) -> None:
    """Attach log handlers to the package logger."""
    package_logger = logging.getLogger("duplicator")
    for handler in list(package_logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            package_logger.removeHandler(handler)
            handler.close()

    if log_file is None and os.environ.get(LOG_DIR_ENV):
        log_dir = Path(os.environ[LOG_DIR_ENV])
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{date.today().isoformat()}.log"

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        console_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(console_handler)

    package_logger.setLevel(logging.DEBUG)


def validate_output_file(output_file: Path) -> None:
    """Check that the folder of an output file exists and is writable."""
    directory = output_file.absolute().parent
    if not directory.is_dir():
        raise DirectoryNotFoundError(f"The directory `{directory}` does not exist.")
    if not os.access(directory, os.W_OK | os.X_OK):
        raise DirectoryNotWritableError(f"The directory `{directory}` is not writable.")


def confirm_output_overwrite(output_file: Path, assume_yes: bool = False) -> bool:
    """Prompt user to confirm if the output file already exists."""
    if output_file.is_file() and not assume_yes:
        response = input(f"Output file already exists: {output_file}. Overwrite? (y/N): ").strip().lower()
        return response == 'y'
    return True


def _echo(message: str) -> None:
    # stdout carries the JSON result when no output file is given
    print(message, file=sys.stderr)


def _progress(args: argparse.Namespace) -> ProgressListener:
    return NullProgress() if args.quiet else TqdmProgress()


def _prepare_output(args: argparse.Namespace) -> None:
    if args.output_file is None:
        return
    validate_output_file(args.output_file)
    if not confirm_output_overwrite(args.output_file, args.yes):
        print("Aborted.")
        sys.exit(0)


def _emit(text: str, output_file: Optional[Path]) -> None:
    write_document(text, output_file)
    if output_file is not None:
        _echo(f"Result written to {output_file}")


def run_scan(args: argparse.Namespace) -> None:
    """Scan one folder and output its scan document."""
    _prepare_output(args)
    listing = scan_directory(args.directory, _progress(args), workers=args.jobs)
    _emit(encode_listing(listing), args.output_file)
    _echo(f"Scanned {len(listing)} files in {listing.path}")


def run_scan_dirs(args: argparse.Namespace) -> None:
    """Scan a target and a merge folder and output their duplicates."""
    _prepare_output(args)
    validate_directory(args.target)
    validate_directory(args.merge)

    target = scan_directory(args.target, _progress(args), workers=args.jobs)
    merge = scan_directory(args.merge, _progress(args), workers=args.jobs)
    duplicates = find_duplicates(target, merge, _progress(args))
    _emit(encode_duplicates(duplicates), args.output_file)
    _echo(f"Found {len(duplicates)} duplicates")


def run_compare(args: argparse.Namespace) -> None:
    """Compare two scan documents and output their duplicates."""
    _prepare_output(args)
    target_text = read_document(args.target_scan, "directory scan file")
    merge_text = read_document(args.merge_scan, "directory scan file")

    target = decode_listing(target_text, _progress(args))
    merge = decode_listing(merge_text, _progress(args))
    duplicates = find_duplicates(target, merge, _progress(args))
    _emit(encode_duplicates(duplicates), args.output_file)
    _echo(f"Found {len(duplicates)} duplicates")


def run_move(args: argparse.Namespace) -> None:
    """Move the merge-side files of a duplicate listing into a folder."""
    text = read_document(args.duplicates, "duplicate file listing file")
    listing = listing_from_duplicates(text, _progress(args))
    moved = move_duplicates(listing, args.target_directory, _progress(args))
    _echo(f"Moved {moved} duplicates to {args.target_directory}")


def run_remove(args: argparse.Namespace) -> None:
    """Delete the merge-side files of a duplicate listing."""
    text = read_document(args.duplicates, "duplicate file listing file")
    listing = listing_from_duplicates(text, _progress(args))
    removed = remove_duplicates(listing, _progress(args))
    _echo(f"Removed {removed} duplicates")


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.log_file, args.verbose)
    logger.info("Running %s", args.command)

    try:
        args.func(args)
    except DuplicatorError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        logger.exception("%s failed", args.command)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("%s interrupted", args.command)
        print("\n\nInterrupted!", file=sys.stderr)
        sys.exit(1)
