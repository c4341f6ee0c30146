"""
Progress sinks for export runs.

A sink receives the total asset count once, byte counts as content is
streamed, and one notification per finished asset. Sinks are called
from every worker thread at once, so implementations must be thread-safe.
"""

import threading
from typing import Optional, Protocol

from rich.console import Console
from rich.filesize import decimal
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressSink(Protocol):
    def set_total(self, total: int) -> None:
        """Size the run (number of assets in the library)."""
        ...

    def advance(self, nbytes: int) -> None:
        """Record bytes written to a destination file."""
        ...

    def asset_done(self) -> None:
        """Record one finished asset, whatever its outcome."""
        ...


class ByteCounter:
    """Thread-safe progress sink that only accumulates totals."""

    def __init__(self):
        self._lock = threading.Lock()
        self.total = 0
        self.bytes_copied = 0
        self.assets_done = 0

    def set_total(self, total: int) -> None:
        with self._lock:
            self.total = total

    def advance(self, nbytes: int) -> None:
        with self._lock:
            self.bytes_copied += nbytes

    def asset_done(self) -> None:
        with self._lock:
            self.assets_done += 1


class RichProgressSink:
    """Progress sink rendering a Rich progress bar.

    The bar counts assets; copied bytes are shown alongside. Use as a
    context manager so the live display is started and stopped cleanly.
    """

    def __init__(self, console: Optional[Console] = None, description: str = "Exporting"):
        self._progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.fields[copied]}"),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._lock = threading.Lock()
        self._bytes = 0
        self._task: TaskID = self._progress.add_task(description, total=None, copied=decimal(0))

    def __enter__(self) -> "RichProgressSink":
        self._progress.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._progress.stop()

    def set_total(self, total: int) -> None:
        self._progress.update(self._task, total=total)

    def advance(self, nbytes: int) -> None:
        with self._lock:
            self._bytes += nbytes
            copied = self._bytes
        self._progress.update(self._task, copied=decimal(copied))

    def asset_done(self) -> None:
        self._progress.advance(self._task, 1)
