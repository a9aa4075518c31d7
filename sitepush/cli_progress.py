"""CLI progress display for publish runs.

This module provides a Rich-based progress bar that is driven by the
progress callback of the sync engine.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class UploadProgressDisplay:
    """Rich-based progress display for uploads.

    Use as a context manager and pass :meth:`update` as the engine's
    ``progress_callback``.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the progress display.

        Args:
            console: Console to render on (shared with the run transcript)
        """
        self._console = console
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def update(self, done: int, total: int, relative_path: str) -> None:
        """Advance the bar after one upload attempt.

        Args:
            done: Number of files processed so far
            total: Number of files in the run
            relative_path: File that was just processed
        """
        if self._progress is None or self._task is None:
            return
        self._progress.update(
            self._task,
            completed=done,
            total=total,
            current=relative_path,
        )

    def __enter__(self) -> "UploadProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[cyan]{task.fields[current]}"),
            TimeElapsedColumn(),
            console=self._console,
            transient=True,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task("Uploading", total=None, current="")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
