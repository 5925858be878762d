"""Local directory replay of exported log files."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import BinaryIO

from core.errors import DownloadError
from core.scratch_buffer import ScratchBuffer


class LocalDownloadClient:
    """Download capability reading LogFile references under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser().resolve()

    def stream_download(self, reference: str, sink: BinaryIO | ScratchBuffer) -> None:
        """Copy the file mirrored at ``root/reference`` into ``sink``.

        Raises:
            DownloadError: If the reference escapes the root or is missing.
        """
        source_path = self.resolve(reference)
        try:
            with source_path.open("rb") as source:
                shutil.copyfileobj(source, sink)  # type: ignore[misc]
        except OSError as error:
            raise DownloadError(
                f"Failed to read exported log file {source_path}: {error}."
            ) from error

    def resolve(self, reference: str) -> Path:
        """Map a LogFile reference onto a path under the root directory."""
        candidate = (self._root / reference.lstrip("/")).resolve()
        if not candidate.is_relative_to(self._root):
            raise DownloadError(
                f"LogFile reference '{reference}' points outside {self._root}."
            )
        if not candidate.is_file():
            raise DownloadError(
                f"No exported log file for reference '{reference}' at {candidate}. "
                "Export the file under the source directory and retry."
            )
        return candidate
