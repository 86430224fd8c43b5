"""
Snapshot Writer - Daily Rotating Line-Delimited Output

Owns the single open output file. Files are named {prefix}-{YYYY-MM-DD}.jl
inside the output directory, opened in append mode and never rewritten.
The date a file was opened for is its rotation key: asking for another date
closes the current file before the new one is opened.

Usage:
    from apps.watcher.writer import SnapshotWriter

    writer = SnapshotWriter("/data/hn_top", "topstories")
    writer.ensure_open_for(snapshot.timestamp.date())
    writer.append_line(encode_snapshot(snapshot))
"""

import logging
from datetime import date
from pathlib import Path
from typing import IO, Iterator

from utils.config import settings
from utils.schemas import Snapshot, decode_snapshot

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".jl"


class OutputWriteError(OSError):
    """Raised when the output file cannot be opened or written."""


def output_path(output_dir: str | Path, prefix: str, day: date) -> Path:
    """Return the output file path for a given UTC date."""
    return Path(output_dir) / f"{prefix}-{day.isoformat()}{FILE_SUFFIX}"


class SnapshotWriter:
    """
    Append-only writer holding at most one open file handle.

    Only the watcher loop touches an instance; there is no locking.
    """

    def __init__(self, output_dir: str | Path | None = None, prefix: str | None = None) -> None:
        """
        Initialize writer. No file is opened until ensure_open_for().

        Args:
            output_dir: Directory for output files, defaults to settings.OUTPUT_DIR
            prefix: File name prefix, defaults to settings.OUTPUT_PREFIX
        """
        self.output_dir = Path(output_dir or settings.OUTPUT_DIR)
        self.prefix = prefix or settings.OUTPUT_PREFIX
        self._handle: IO[str] | None = None
        self._rotation_key: date | None = None
        self._current_path: Path | None = None
        self.open_count = 0

    @property
    def rotation_key(self) -> date | None:
        return self._rotation_key

    @property
    def current_path(self) -> Path | None:
        return self._current_path

    def ensure_open_for(self, day: date) -> Path:
        """
        Make sure the open file is the one for `day`.

        No-op when the file for `day` is already open; otherwise the current
        file (if any) is closed and {prefix}-{day}.jl is opened for append.

        Args:
            day: UTC calendar date of the snapshot about to be written

        Returns:
            Path of the open file

        Raises:
            OutputWriteError: If the file cannot be opened
        """
        if self._handle is not None and self._rotation_key == day:
            return self._current_path

        previous_key = self._rotation_key
        self.close()

        path = output_path(self.output_dir, self.prefix, day)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(path, "a", encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"Cannot open output file {path}: {e}") from e

        self._rotation_key = day
        self._current_path = path
        self.open_count += 1

        if previous_key is None:
            logger.info("Opened output file", extra={"file_path": str(path)})
        else:
            logger.info(
                "Rotated output file",
                extra={
                    "file_path": str(path),
                    "from_date": previous_key.isoformat(),
                    "to_date": day.isoformat(),
                },
            )
        return path

    def append_line(self, line: str) -> None:
        """
        Append one line (newline added) to the open file and flush it.

        Raises:
            OutputWriteError: If no file is open or the write fails
        """
        if self._handle is None:
            raise OutputWriteError("No output file open; call ensure_open_for() first")

        try:
            self._handle.write(line + "\n")
            self._handle.flush()
        except OSError as e:
            raise OutputWriteError(f"Failed to write to {self._current_path}: {e}") from e

    def close(self) -> None:
        """Close the open file, if any."""
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None
            self._rotation_key = None
            self._current_path = None


def iter_snapshots(path: str | Path) -> Iterator[Snapshot]:
    """
    Replay the snapshots stored in one output file, in write order.

    Blank lines are skipped.
    """
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield decode_snapshot(line)
