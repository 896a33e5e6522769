"""Progress reporting for long-running scans and file operations."""

from typing import Optional

from tqdm import tqdm


class ProgressListener:
    """Receives progress of a scan, a comparison or an action run.

    ``start`` is called once the total is known, ``advance`` once per
    processed item with the item's path and its 1-based position, and
    ``finish`` when the phase ends.
    """

    def start(self, total: int, description: str = "") -> None:
        pass

    def advance(self, current: str, count: int) -> None:
        pass

    def finish(self) -> None:
        pass


class NullProgress(ProgressListener):
    """Discards all progress."""


class TqdmProgress(ProgressListener):
    """Renders progress as a tqdm bar showing the current path."""

    def __init__(self, unit: str = "file", leave: bool = True):
        self.unit = unit
        self.leave = leave
        self._bar: Optional[tqdm] = None

    def start(self, total: int, description: str = "") -> None:
        self.finish()
        self._bar = tqdm(total=total, desc=description, unit=self.unit, leave=self.leave)

    def advance(self, current: str, count: int) -> None:
        if self._bar is None:
            return
        self._bar.set_postfix_str(current, refresh=False)
        self._bar.update(count - self._bar.n)

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
