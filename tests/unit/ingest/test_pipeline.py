"""Unit tests for the log file pipeline."""

from __future__ import annotations

import os
import queue
import threading

import pytest

from core.errors import (
    DownloadError,
    LengthMismatchError,
    LogFileError,
    ProcessingCancelled,
    TypeParseError,
)
from core.types import LogEvent, PipelineOptions
from ingest.event_builder import EventBuilder
from ingest.pipeline import LogFilePipeline, process_log_files
from tests.fake_download import InMemoryDownloadClient, make_descriptor

_LOGIN_TYPES = "String,String,Number,Boolean,IP"
_LOGIN_CSV = (
    b'"EVENT_TYPE","TIMESTAMP","RUN_TIME","IS_API","SOURCE_IP"\n'
    b'"Login","20210501100000.000","52","0","10.0.0.1"\n'
    b'"Login","20210502100000.000","","1",""\n'
    b'"Login","20210503100000.000","7.5","","999.999.999.999"\n'
)


def _drain(event_queue: queue.Queue) -> list[LogEvent]:
    events = []
    while not event_queue.empty():
        events.append(event_queue.get_nowait())
    return events


def _pipeline(bodies: dict[str, bytes], tmp_path, fixed_clock, **options) -> LogFilePipeline:
    return LogFilePipeline(
        InMemoryDownloadClient(bodies),
        PipelineOptions(temp_dir=str(tmp_path), **options),
        EventBuilder(clock=fixed_clock),
    )


def _counting_remove(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    removed: list[str] = []
    original_remove = os.remove

    def _remove(path) -> None:
        removed.append(str(path))
        original_remove(path)

    monkeypatch.setattr(os, "remove", _remove)
    return removed


def test_process_enqueues_one_event_per_row(tmp_path, fixed_clock, event_queue) -> None:
    """N data rows produce N events with at most W+1 keys and no absent values."""
    descriptor = make_descriptor("0AT1", _LOGIN_TYPES)
    pipeline = _pipeline({descriptor.log_file: _LOGIN_CSV}, tmp_path, fixed_clock)

    result = pipeline.process([descriptor], event_queue)
    events = _drain(event_queue)

    assert (result.files_processed, result.records_enqueued) == (1, 3)
    assert len(events) == 3
    assert all(len(event.fields) <= 5 + 1 for event in events)
    assert all(value is not None for event in events for value in event.fields.values())


def test_process_decodes_typed_values_in_file_order(tmp_path, fixed_clock, event_queue) -> None:
    """Events are queued in file order with decoded values and routing tags."""
    descriptor = make_descriptor("0AT1", _LOGIN_TYPES)
    pipeline = _pipeline({descriptor.log_file: _LOGIN_CSV}, tmp_path, fixed_clock)

    pipeline.process([descriptor], event_queue)
    first, second, third = _drain(event_queue)

    assert first.fields == {
        "type": "logstash-elf-login-2021-05-01",
        "EVENT_TYPE": "Login",
        "TIMESTAMP": "20210501100000.000",
        "RUN_TIME": 52.0,
        "IS_API": True,
        "SOURCE_IP": "10.0.0.1",
    }
    assert "RUN_TIME" not in second.fields and second.fields["IS_API"] is False
    assert "SOURCE_IP" not in third.fields and third.fields["RUN_TIME"] == 7.5


def test_process_releases_buffer_once_after_row_error(
    tmp_path, fixed_clock, event_queue, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A decode error on row 2 stops the file and removes its buffer exactly once."""
    descriptor = make_descriptor("0AT1", "String,Number", event_type="API")
    body = b"EVENT_TYPE,ROWS\nAPI,10\nAPI,ten\nAPI,12\n"
    pipeline = _pipeline({descriptor.log_file: body}, tmp_path, fixed_clock)
    removed = _counting_remove(monkeypatch)

    with pytest.raises(LogFileError) as error_info:
        pipeline.process([descriptor], event_queue)
    events = _drain(event_queue)

    assert isinstance(error_info.value.__cause__, TypeParseError)
    assert [event.fields["ROWS"] for event in events] == [10.0]
    assert len(removed) == 1 and list(tmp_path.iterdir()) == []


def test_process_reports_width_mismatch_without_emitting_row(
    tmp_path, fixed_clock, event_queue
) -> None:
    """A short data row raises a length mismatch and is never queued."""
    descriptor = make_descriptor("0AT1", "String,String,String")
    body = b"A,B,C\nx,y\n"
    pipeline = _pipeline({descriptor.log_file: body}, tmp_path, fixed_clock)

    with pytest.raises(LogFileError) as error_info:
        pipeline.process([descriptor], event_queue)

    assert isinstance(error_info.value.__cause__, LengthMismatchError)
    assert event_queue.empty()


def test_process_names_failing_descriptor(tmp_path, fixed_clock, event_queue) -> None:
    """File errors carry the descriptor id and keep earlier files' events."""
    good = make_descriptor("0AT1", _LOGIN_TYPES)
    missing = make_descriptor("0AT2", "String")
    pipeline = _pipeline({good.log_file: _LOGIN_CSV}, tmp_path, fixed_clock)

    with pytest.raises(LogFileError) as error_info:
        pipeline.process([good, missing], event_queue)

    assert error_info.value.descriptor_id == "0AT2"
    assert event_queue.qsize() == 3


def test_process_continues_after_file_error_when_enabled(
    tmp_path, fixed_clock, event_queue
) -> None:
    """With continue enabled, failures are recorded and later files still run."""
    broken = make_descriptor("0AT1", "String,Number")
    good = make_descriptor("0AT2", _LOGIN_TYPES)
    bodies = {broken.log_file: b'A,B\n"x,1\n', good.log_file: _LOGIN_CSV}
    pipeline = _pipeline(bodies, tmp_path, fixed_clock, continue_on_file_error=True)

    result = pipeline.process([broken, good], event_queue)

    assert [failure.descriptor_id for failure in result.failures] == ["0AT1"]
    assert (result.files_processed, result.records_enqueued) == (1, 3)
    assert result.succeeded is False and list(tmp_path.iterdir()) == []


def test_process_handles_empty_and_header_only_files(tmp_path, fixed_clock, event_queue) -> None:
    """Files without data rows enqueue nothing and still count as processed."""
    empty = make_descriptor("0AT1", "String")
    header_only = make_descriptor("0AT2", "String")
    bodies = {empty.log_file: b"", header_only.log_file: b"EVENT_TYPE\n"}
    pipeline = _pipeline(bodies, tmp_path, fixed_clock)

    result = pipeline.process([empty, header_only], event_queue)

    assert (result.files_processed, result.records_enqueued) == (2, 0)


class _CancellingQueue(queue.Queue):
    def __init__(self, cancel_event: threading.Event) -> None:
        super().__init__()
        self._cancel_event = cancel_event

    def put(self, item, block=True, timeout=None) -> None:
        super().put(item, block, timeout)
        self._cancel_event.set()


def test_process_stops_between_rows_when_cancelled(tmp_path, fixed_clock) -> None:
    """Cancellation aborts mid-file, is not swallowed, and releases the buffer."""
    descriptor = make_descriptor("0AT1", _LOGIN_TYPES)
    cancel_event = threading.Event()
    output_queue = _CancellingQueue(cancel_event)
    pipeline = _pipeline(
        {descriptor.log_file: _LOGIN_CSV}, tmp_path, fixed_clock, continue_on_file_error=True
    )

    with pytest.raises(ProcessingCancelled):
        pipeline.process([descriptor], output_queue, cancel_event)

    assert output_queue.qsize() == 1 and list(tmp_path.iterdir()) == []


def test_process_parallel_keeps_rows_sequential_per_file(tmp_path, fixed_clock) -> None:
    """Fan-out across files keeps each file's events in order."""
    descriptors = [make_descriptor(f"0AT{index}", "String,Number") for index in range(4)]
    bodies = {
        descriptor.log_file: b"FILE,SEQ\n"
        + b"".join(f"{descriptor.id},{seq}\n".encode() for seq in range(20))
        for descriptor in descriptors
    }
    output_queue: queue.Queue = queue.Queue()
    pipeline = _pipeline(bodies, tmp_path, fixed_clock, max_workers=3)

    result = pipeline.process(descriptors, output_queue)
    events = _drain(output_queue)

    assert result.records_enqueued == 80
    for descriptor in descriptors:
        sequence = [event.fields["SEQ"] for event in events if event.fields["FILE"] == descriptor.id]
        assert sequence == [float(seq) for seq in range(20)]
    assert list(tmp_path.iterdir()) == []


def test_process_parallel_raises_first_failure_in_descriptor_order(tmp_path, fixed_clock) -> None:
    """Parallel runs report failures against the right descriptor."""
    good = make_descriptor("0AT1", "String")
    missing = make_descriptor("0AT2", "String")
    pipeline = _pipeline({good.log_file: b"A\nx\n"}, tmp_path, fixed_clock, max_workers=2)

    with pytest.raises(LogFileError) as error_info:
        pipeline.process([good, missing], queue.Queue())

    assert error_info.value.descriptor_id == "0AT2"


def test_process_log_files_uses_default_options(tmp_path, event_queue) -> None:
    """Module entry point runs a batch with the given download capability."""
    descriptor = make_descriptor("0AT1", _LOGIN_TYPES)

    result = process_log_files(
        [descriptor],
        InMemoryDownloadClient({descriptor.log_file: _LOGIN_CSV}),
        event_queue,
        PipelineOptions(temp_dir=str(tmp_path)),
    )

    assert result.records_enqueued == 3 and event_queue.qsize() == 3


class _FailingForClient(InMemoryDownloadClient):
    def __init__(self, bodies: dict[str, bytes], failing_reference: str) -> None:
        super().__init__(bodies)
        self._failing_reference = failing_reference

    def stream_download(self, reference, sink) -> None:
        if reference == self._failing_reference:
            raise RuntimeError("client bug")
        super().stream_download(reference, sink)


def test_process_isolates_unexpected_capability_errors(
    tmp_path, fixed_clock, event_queue
) -> None:
    """A capability raising a plain exception fails only its own file."""
    broken = make_descriptor("0AT1", _LOGIN_TYPES)
    good = make_descriptor("0AT2", _LOGIN_TYPES)
    pipeline = LogFilePipeline(
        _FailingForClient({good.log_file: _LOGIN_CSV}, broken.log_file),
        PipelineOptions(temp_dir=str(tmp_path), continue_on_file_error=True),
        EventBuilder(clock=fixed_clock),
    )

    result = pipeline.process([broken, good], event_queue)

    assert [failure.descriptor_id for failure in result.failures] == ["0AT1"]
    assert isinstance(result.failures[0].error, DownloadError)
    assert result.records_enqueued == 3 and list(tmp_path.iterdir()) == []


def test_process_names_descriptor_for_unexpected_capability_errors(
    tmp_path, fixed_clock, event_queue
) -> None:
    """Without continue enabled, the plain exception is reported against its descriptor."""
    broken = make_descriptor("0AT1", _LOGIN_TYPES)
    pipeline = LogFilePipeline(
        _FailingForClient({}, broken.log_file),
        PipelineOptions(temp_dir=str(tmp_path)),
        EventBuilder(clock=fixed_clock),
    )

    with pytest.raises(LogFileError) as error_info:
        pipeline.process([broken], event_queue)

    assert error_info.value.descriptor_id == "0AT1"
    assert isinstance(error_info.value.__cause__.__cause__, RuntimeError)
