"""Structured event construction from decoded rows.

This module pairs decoded values with header names, promotes the
TIMESTAMP column to the canonical event time, and stamps each event with
the ``type`` routing tag used for date-partitioned indexing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Sequence

from dateutil import parser as date_parser

from core.constants import (
    ELF_COMPACT_TIMESTAMP_FORMATS,
    ROUTING_DATE_FORMAT,
    TIMESTAMP_FIELD_NAME,
    TYPE_FIELD_NAME,
    TYPE_PREFIX,
)
from core.errors import LengthMismatchError, TypeParseError
from core.types import FieldValue, LogEvent, Row

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class EventBuilder:
    """Builds one LogEvent per decoded CSV row."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def build(self, header: Sequence[str], row: Row, event_type: str) -> LogEvent:
        """Build an event from header names and decoded values.

        The routing tag is recomputed at every column, so columns visited
        before TIMESTAMP see the ingestion time and the last column wins.

        Args:
            header: Field names from the CSV header line.
            row: Decoded values aligned with ``header``.
            event_type: Event type of the log file.

        Returns:
            Event carrying every present value plus the routing tag.

        Raises:
            LengthMismatchError: If header and row widths differ.
            TypeParseError: If the TIMESTAMP value cannot be parsed.
        """
        if len(header) != len(row):
            raise LengthMismatchError(
                f"Row has {len(row)} values but the header has {len(header)} columns."
            )
        event = LogEvent(timestamp=self._clock())
        for field_name, value in zip(header, row):
            if field_name == TIMESTAMP_FIELD_NAME and value is not None:
                event.timestamp = parse_timestamp(value)
            event.fields[TYPE_FIELD_NAME] = routing_tag(event_type, event.timestamp)
            if value is not None:
                event.fields[field_name] = value
        return event


def routing_tag(event_type: str, timestamp: datetime) -> str:
    """Return the date-partitioned index tag for an event.

    Args:
        event_type: Event type of the log file.
        timestamp: Canonical event time.

    Returns:
        Tag of the form ``logstash-elf-<eventtype>-<YYYY-MM-dd>``.
    """
    day = timestamp.astimezone(timezone.utc).strftime(ROUTING_DATE_FORMAT)
    return f"{TYPE_PREFIX}{event_type.lower()}-{day}"


def parse_timestamp(value: FieldValue) -> datetime:
    """Parse a TIMESTAMP column value into an aware UTC datetime.

    Tries the compact ``YYYYMMDDHHMMSS.fff`` form used by log exports
    first, then any generic date-time (ISO-8601, RFC 2822, ``... UTC``).
    Values without an offset are read as UTC.

    Raises:
        TypeParseError: If the value is not a recognizable date-time.
    """
    if not isinstance(value, str):
        raise TypeParseError(
            f"Invalid TIMESTAMP value {value!r}: expected a date-time string. "
            "Declare the TIMESTAMP column as String in LogFileFieldTypes."
        )
    parsed = _parse_compact(value) or _parse_generic(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_compact(value: str) -> datetime | None:
    for timestamp_format in ELF_COMPACT_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, timestamp_format)
        except ValueError:
            continue
    return None


def _parse_generic(value: str) -> datetime:
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as error:
        raise TypeParseError(
            f"Invalid TIMESTAMP value '{value}': expected YYYYMMDDHHMMSS.fff "
            "or a date-time string."
        ) from error
