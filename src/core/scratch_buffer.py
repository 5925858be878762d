"""Disposable on-disk byte buffers for downloaded log files.

A scratch buffer owns one temporary file. It is written once by a
download, rewound, read line by line, and released exactly once.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterator

from core.constants import CSV_ENCODING, TEMPFILE_PREFIX
from core.errors import CsvSyntaxError


class ScratchBuffer:
    """Temporary file that is closed and deleted on release."""

    def __init__(self, directory: Path | None = None) -> None:
        file_descriptor, path = tempfile.mkstemp(
            prefix=TEMPFILE_PREFIX,
            dir=str(directory) if directory is not None else None,
        )
        self._file = os.fdopen(file_descriptor, "w+b")
        self._path = Path(path)
        self._released = False

    @property
    def path(self) -> Path:
        """Location of the backing temporary file."""
        return self._path

    @property
    def released(self) -> bool:
        """Whether the buffer has already been closed and deleted."""
        return self._released

    def write(self, chunk: bytes) -> int:
        """Append raw bytes to the buffer."""
        return self._file.write(chunk)

    def flush(self) -> None:
        """Flush buffered writes into the temporary file."""
        self._file.flush()

    def rewind(self) -> None:
        """Move the read cursor back to the start of the buffer."""
        self._file.seek(0)

    def readline(self) -> str:
        """Read one decoded line, or an empty string at end of buffer."""
        return _decode_line(self._file.readline())

    def iter_lines(self) -> Iterator[str]:
        """Yield the remaining decoded lines from the current cursor."""
        for raw_line in self._file:
            yield _decode_line(raw_line)

    def release(self) -> None:
        """Close and delete the backing file; later calls are no-ops."""
        if self._released:
            return
        self._released = True
        try:
            self._file.close()
        finally:
            os.remove(self._path)


def _decode_line(raw_line: bytes) -> str:
    try:
        return raw_line.decode(CSV_ENCODING)
    except UnicodeDecodeError as error:
        raise CsvSyntaxError(
            f"Log file line is not valid {CSV_ENCODING}: {error.reason}. "
            "Re-export the log file or check the download source."
        ) from error
