"""Log file retrieval into disposable scratch buffers.

This module streams each descriptor's CSV content into its own temporary
file and pairs it with the parsed column types. Buffers are scoped: they
are released when the caller leaves the retrieval context, on every path.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

from core.errors import DownloadError, ElfError
from core.logging_config import get_logger
from core.scratch_buffer import ScratchBuffer
from core.types import DownloadCapability, DownloadedLog, LogDescriptor, parse_field_types

_LOGGER = get_logger(__name__)


class LogFileRetriever:
    """Downloads log files through an injected download capability."""

    def __init__(
        self,
        download_capability: DownloadCapability,
        temp_dir: Path | None = None,
        logger: Any = None,
    ) -> None:
        self._download_capability = download_capability
        self._temp_dir = temp_dir
        self._logger = logger or _LOGGER

    @contextmanager
    def retrieve(self, descriptor: LogDescriptor) -> Iterator[DownloadedLog]:
        """Download one log file and yield it for reading.

        Args:
            descriptor: Log file to download.

        Yields:
            Downloaded log with its buffer rewound to the start.

        Raises:
            DownloadError: If the content cannot be streamed into the buffer.
        """
        buffer = _acquire_buffer(descriptor, self._temp_dir)
        try:
            self._download_into(descriptor, buffer)
            downloaded_log = DownloadedLog(
                descriptor_id=descriptor.id,
                field_types=parse_field_types(descriptor.log_file_field_types),
                content=buffer,
                event_type=descriptor.event_type,
            )
            _log_descriptor(self._logger, descriptor)
            yield downloaded_log
        finally:
            buffer.release()

    def fetch(self, descriptors: Iterable[LogDescriptor]) -> Iterator[DownloadedLog]:
        """Yield one downloaded log per descriptor, in order.

        Each buffer is released once the consumer advances past it or
        closes the generator.
        """
        for descriptor in descriptors:
            with self.retrieve(descriptor) as downloaded_log:
                yield downloaded_log

    def _download_into(self, descriptor: LogDescriptor, buffer: ScratchBuffer) -> None:
        try:
            self._download_capability.stream_download(descriptor.log_file, buffer)
            buffer.flush()
            buffer.rewind()
        except ElfError:
            raise
        except OSError as error:
            raise DownloadError(
                f"Failed to buffer log file {descriptor.id} from {descriptor.log_file}: "
                f"{error}. Check free space in the temp directory."
            ) from error
        except Exception as error:
            raise DownloadError(
                f"Download of log file {descriptor.id} from {descriptor.log_file} failed: "
                f"{type(error).__name__}: {error}."
            ) from error


def _acquire_buffer(descriptor: LogDescriptor, temp_dir: Path | None) -> ScratchBuffer:
    try:
        return ScratchBuffer(temp_dir)
    except OSError as error:
        raise DownloadError(
            f"Failed to create a scratch buffer for log file {descriptor.id}: {error}. "
            "Check that the temp directory exists and is writable."
        ) from error


def _log_descriptor(logger: Any, descriptor: LogDescriptor) -> None:
    logger.info(
        "log_file_downloaded",
        id=descriptor.id,
        event_type=descriptor.event_type,
        log_file=descriptor.log_file,
        log_date=descriptor.log_date,
        log_file_length=descriptor.log_file_length,
        log_file_field_types=descriptor.log_file_field_types,
    )
