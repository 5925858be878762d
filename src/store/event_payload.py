"""JSONL serialization for built log events.

This module renders LogEvent objects into JSON-safe payloads and drains
an event queue into a JSONL file or stream.
"""

from __future__ import annotations

import json
import queue
from pathlib import Path
from typing import TextIO

from core.constants import TIMESTAMP_PAYLOAD_KEY
from core.types import LogEvent


def event_to_payload(event: LogEvent) -> dict[str, object]:
    """Serialize a LogEvent into a JSON-safe payload.

    Args:
        event: Built event.

    Returns:
        Mapping with ``@timestamp`` in ISO-8601 UTC plus event fields.
    """
    return {TIMESTAMP_PAYLOAD_KEY: event.timestamp.isoformat(), **event.fields}


def write_events_jsonl(stream: TextIO, events: list[LogEvent]) -> int:
    """Write events as JSON lines to an open text stream.

    Args:
        stream: Destination stream.
        events: Events to serialize, in order.

    Returns:
        Number of lines written.
    """
    for event in events:
        stream.write(json.dumps(event_to_payload(event), sort_keys=True) + "\n")
    return len(events)


def drain_queue(event_queue: "queue.Queue[LogEvent]") -> list[LogEvent]:
    """Remove and return every event currently in the queue, in order."""
    events: list[LogEvent] = []
    while True:
        try:
            events.append(event_queue.get_nowait())
        except queue.Empty:
            return events


def drain_queue_to_jsonl(
    event_queue: "queue.Queue[LogEvent]",
    output_path: Path,
    append: bool = False,
) -> int:
    """Drain queued events into a JSONL file.

    Args:
        event_queue: Queue filled by the pipeline.
        output_path: JSONL file to write.
        append: Append to an existing file instead of replacing it.

    Returns:
        Number of events written.
    """
    events = drain_queue(event_queue)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("a" if append else "w", encoding="utf-8") as stream:
        return write_events_jsonl(stream, events)
