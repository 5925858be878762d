"""Event Log File ingest orchestration.

This module coordinates retrieval, row decoding, event building, and
enqueueing for a batch of log file descriptors. Each file is read
strictly in order and its scratch buffer is released on every exit path.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
import threading
from typing import Any, Iterable, Sequence

from core.errors import ElfError, LogFileError, ProcessingCancelled
from core.logging_config import get_logger
from core.types import (
    BatchResult,
    DownloadCapability,
    DownloadedLog,
    FileFailure,
    LogDescriptor,
    PipelineOptions,
    SupportsPut,
)
from ingest.decoder import decode_row, tokenize_line
from ingest.event_builder import EventBuilder
from ingest.retriever import LogFileRetriever

_LOGGER = get_logger(__name__)


class LogFilePipeline:
    """Runner that turns log file descriptors into queued events."""

    def __init__(
        self,
        download_capability: DownloadCapability,
        options: PipelineOptions | None = None,
        event_builder: EventBuilder | None = None,
        logger: Any = None,
    ) -> None:
        self._options = options or PipelineOptions()
        self._logger = logger or _LOGGER
        temp_dir = Path(self._options.temp_dir) if self._options.temp_dir else None
        self._retriever = LogFileRetriever(download_capability, temp_dir, self._logger)
        self._event_builder = event_builder or EventBuilder()

    def process(
        self,
        descriptors: Iterable[LogDescriptor],
        output_queue: SupportsPut,
        cancel_event: threading.Event | None = None,
    ) -> BatchResult:
        """Process every descriptor and enqueue one event per CSV row.

        Args:
            descriptors: Log files to ingest, in processing order.
            output_queue: Destination for built events.
            cancel_event: Optional signal checked between rows and files.

        Returns:
            Batch summary with per-file failures when continuing on error.

        Raises:
            LogFileError: If a file fails and the batch does not continue.
            ProcessingCancelled: If ``cancel_event`` is set mid-batch.
        """
        descriptor_list = list(descriptors)
        self._logger.info(
            "enqueue_events_started",
            descriptor_count=len(descriptor_list),
            max_workers=self._options.max_workers,
            continue_on_file_error=self._options.continue_on_file_error,
        )
        if self._options.max_workers > 1 and len(descriptor_list) > 1:
            result = self._process_parallel(descriptor_list, output_queue, cancel_event)
        else:
            result = self._process_sequential(descriptor_list, output_queue, cancel_event)
        self._logger.info(
            "enqueue_events_completed",
            files_processed=result.files_processed,
            records_enqueued=result.records_enqueued,
            failure_count=len(result.failures),
        )
        return result

    def _process_sequential(
        self,
        descriptors: Sequence[LogDescriptor],
        output_queue: SupportsPut,
        cancel_event: threading.Event | None,
    ) -> BatchResult:
        tally = _BatchTally()
        for descriptor in descriptors:
            try:
                record_count = self._process_file(descriptor, output_queue, cancel_event)
            except ProcessingCancelled:
                raise
            except ElfError as error:
                tally.failures.append(self._handle_failure(descriptor, error))
                continue
            tally.add_file(record_count)
        return tally.to_result()

    def _process_parallel(
        self,
        descriptors: Sequence[LogDescriptor],
        output_queue: SupportsPut,
        cancel_event: threading.Event | None,
    ) -> BatchResult:
        tally = _BatchTally()
        with ThreadPoolExecutor(max_workers=self._options.max_workers) as executor:
            futures = [
                executor.submit(self._process_file, descriptor, output_queue, cancel_event)
                for descriptor in descriptors
            ]
            for descriptor, future in zip(descriptors, futures):
                try:
                    record_count = future.result()
                except ProcessingCancelled:
                    _cancel_pending(futures)
                    raise
                except ElfError as error:
                    try:
                        tally.failures.append(self._handle_failure(descriptor, error))
                    except LogFileError:
                        _cancel_pending(futures)
                        raise
                    continue
                tally.add_file(record_count)
        return tally.to_result()

    def _process_file(
        self,
        descriptor: LogDescriptor,
        output_queue: SupportsPut,
        cancel_event: threading.Event | None,
    ) -> int:
        _check_cancelled(cancel_event)
        with self._retriever.retrieve(descriptor) as downloaded_log:
            return self._enqueue_events(downloaded_log, output_queue, cancel_event)

    def _enqueue_events(
        self,
        downloaded_log: DownloadedLog,
        output_queue: SupportsPut,
        cancel_event: threading.Event | None,
    ) -> int:
        content = downloaded_log.content
        header_line = content.readline()
        if not header_line:
            return 0
        header = tokenize_line(header_line)
        record_count = 0
        for line in content.iter_lines():
            _check_cancelled(cancel_event)
            row = decode_row(tokenize_line(line), downloaded_log.field_types)
            event = self._event_builder.build(header, row, downloaded_log.event_type)
            output_queue.put(event)
            record_count += 1
        return record_count

    def _handle_failure(self, descriptor: LogDescriptor, error: ElfError) -> FileFailure:
        self._logger.error(
            "log_file_failed",
            id=descriptor.id,
            event_type=descriptor.event_type,
            error_type=type(error).__name__,
            error=str(error),
        )
        if not self._options.continue_on_file_error:
            raise LogFileError(descriptor.id, descriptor.event_type, str(error)) from error
        return FileFailure(
            descriptor_id=descriptor.id,
            event_type=descriptor.event_type,
            error=error,
        )


def process_log_files(
    descriptors: Iterable[LogDescriptor],
    download_capability: DownloadCapability,
    output_queue: SupportsPut,
    options: PipelineOptions | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchResult:
    """Download, decode, and enqueue events for a batch of log files.

    Args:
        descriptors: Log files to ingest.
        download_capability: Collaborator streaming log file content.
        output_queue: Destination for built events.
        options: Batch options; defaults stop at the first failed file.
        cancel_event: Optional cancellation signal.

    Returns:
        Batch summary.

    Raises:
        LogFileError: If a file fails and the batch does not continue.
        ProcessingCancelled: If cancelled mid-batch.
    """
    pipeline = LogFilePipeline(download_capability, options)
    return pipeline.process(descriptors, output_queue, cancel_event)


class _BatchTally:
    def __init__(self) -> None:
        self.files_processed = 0
        self.records_enqueued = 0
        self.failures: list[FileFailure] = []

    def add_file(self, record_count: int) -> None:
        self.files_processed += 1
        self.records_enqueued += record_count

    def to_result(self) -> BatchResult:
        return BatchResult(
            files_processed=self.files_processed,
            records_enqueued=self.records_enqueued,
            failures=tuple(self.failures),
        )


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ProcessingCancelled("Log file processing was cancelled before completion.")


def _cancel_pending(futures: Sequence[Future[int]]) -> None:
    for future in futures:
        future.cancel()
