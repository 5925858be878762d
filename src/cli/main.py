"""ELF ingest CLI entry points.
This module exposes commands to process or poll descriptor manifests.
It maps argparse commands onto pipeline calls and writes JSONL events.
"""

from __future__ import annotations

import argparse
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
import queue
import signal
import sys
import threading
from typing import Any, Iterator, Sequence

from core.config import ElfConfig
from core.errors import LogFileError, ProcessingCancelled
from core.interruptible_sleep import InterruptibleSleep
from core.types import (
    BatchResult,
    DownloadCapability,
    LogDescriptor,
    LogEvent,
    PipelineOptions,
)
from ingest.descriptor_reader import load_descriptors
from ingest.pipeline import LogFilePipeline
from store.event_payload import drain_queue, drain_queue_to_jsonl, write_events_jsonl
from transport.http_download import HttpDownloadClient
from transport.local_download import LocalDownloadClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="sfdc-elf", description="Event Log File ingest CLI")
    parser.add_argument("--temp-dir", help="Override ELF_TEMP_DIR for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_process_command(subparsers)
    _add_poll_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ELF ingest CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = ElfConfig.from_env()
    if args.temp_dir:
        config = replace(config, temp_dir=args.temp_dir)
    if args.command == "process":
        return _run_process_command(config, args)
    if args.command == "poll":
        return _run_poll_command(config, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_process_command(config: ElfConfig, args: argparse.Namespace) -> int:
    """Handle process command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when any log file failed.
    """
    options = _build_process_options(config, args)
    descriptors = load_descriptors(args.manifest)
    event_queue: queue.Queue[LogEvent] = queue.Queue()
    result: BatchResult | None = None
    try:
        with _open_download_capability(config, args.source_dir) as download_capability:
            pipeline = LogFilePipeline(download_capability, options)
            result = pipeline.process(descriptors, event_queue)
    except LogFileError as error:
        print(f"error: {error}", file=sys.stderr)
    finally:
        written = _write_output(event_queue, args.output, append=False)
    if result is None:
        return 1
    _print_summary(result, written)
    return 0 if result.succeeded else 1


def _run_poll_command(config: ElfConfig, args: argparse.Namespace) -> int:
    """Handle poll command.

    Reloads the manifest every interval and ingests descriptors whose id
    has not been processed successfully yet. Failed files are retried on
    the next poll.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    interval = args.interval or config.poll_interval
    options = replace(config.pipeline_options(), continue_on_file_error=True)
    sleeper = InterruptibleSleep()
    cancel_event = threading.Event()
    seen_ids: set[str] = set()
    event_queue: queue.Queue[LogEvent] = queue.Queue()
    poll_count = 0
    with _interrupt_on_signals(sleeper, cancel_event), _open_download_capability(
        config, args.source_dir
    ) as download_capability:
        pipeline = LogFilePipeline(download_capability, options)
        while True:
            pending = _select_pending(load_descriptors(args.manifest), seen_ids)
            try:
                result = pipeline.process(pending, event_queue, cancel_event)
            except ProcessingCancelled:
                _write_output(event_queue, args.output, append=True)
                return 0
            failed_ids = {failure.descriptor_id for failure in result.failures}
            seen_ids.update(d.id for d in pending if d.id not in failed_ids)
            written = _write_output(event_queue, args.output, append=True)
            _print_summary(result, written)
            poll_count += 1
            if args.max_polls and poll_count >= args.max_polls:
                return 0
            if sleeper.sleep(interval):
                return 0


def _select_pending(
    descriptors: Sequence[LogDescriptor],
    seen_ids: set[str],
) -> list[LogDescriptor]:
    """Return descriptors not ingested yet and forget ids gone from the manifest."""
    seen_ids.intersection_update(descriptor.id for descriptor in descriptors)
    return [descriptor for descriptor in descriptors if descriptor.id not in seen_ids]


def _build_process_options(config: ElfConfig, args: argparse.Namespace) -> PipelineOptions:
    options = config.pipeline_options()
    if args.continue_on_error:
        options = replace(options, continue_on_file_error=True)
    if args.max_workers:
        options = replace(options, max_workers=args.max_workers)
    return options


@contextmanager
def _open_download_capability(
    config: ElfConfig,
    source_dir: str | None,
) -> Iterator[DownloadCapability]:
    """Yield a local replay client or an HTTP client built from config."""
    if source_dir:
        yield LocalDownloadClient(source_dir)
        return
    with HttpDownloadClient.from_config(config) as client:
        yield client


@contextmanager
def _interrupt_on_signals(
    sleeper: InterruptibleSleep,
    cancel_event: threading.Event,
) -> Iterator[None]:
    """Route SIGINT and SIGTERM to the sleeper and cancellation signal."""

    def _handle_signal(signum: int, frame: Any) -> None:
        cancel_event.set()
        sleeper.interrupt()

    previous_handlers = {
        signum: signal.signal(signum, _handle_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)


def _write_output(
    event_queue: "queue.Queue[LogEvent]",
    output: str | None,
    append: bool,
) -> int:
    if output:
        return drain_queue_to_jsonl(event_queue, Path(output), append=append)
    return write_events_jsonl(sys.stdout, drain_queue(event_queue))


def _print_summary(result: BatchResult, written: int) -> None:
    print(
        f"files_processed={result.files_processed} "
        f"records_enqueued={result.records_enqueued} "
        f"records_written={written} "
        f"failures={len(result.failures)}",
        file=sys.stderr,
    )
    for failure in result.failures:
        print(f"failed\t{failure.descriptor_id}\t{failure.error}", file=sys.stderr)


def _add_process_command(subparsers: Any) -> None:
    """Register process subcommand."""
    parser = subparsers.add_parser("process", help="Ingest every descriptor in a manifest")
    parser.add_argument("manifest", help="YAML or JSON descriptor manifest")
    parser.add_argument("--source-dir", help="Replay LogFile references from a local directory")
    parser.add_argument("--output", help="JSONL output path, stdout when omitted")
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep processing remaining files after one fails",
    )
    parser.add_argument("--max-workers", type=int, help="Files processed concurrently")


def _add_poll_command(subparsers: Any) -> None:
    """Register poll subcommand."""
    parser = subparsers.add_parser("poll", help="Re-read a manifest and ingest new descriptors")
    parser.add_argument("manifest", help="YAML or JSON descriptor manifest")
    parser.add_argument("--source-dir", help="Replay LogFile references from a local directory")
    parser.add_argument("--output", required=True, help="JSONL output path, appended to")
    parser.add_argument("--interval", type=float, help="Seconds between polls")
    parser.add_argument("--max-polls", type=int, help="Stop after this many polls")
