"""Shared typed models.

This module defines the data models passed between retrieval, decoding,
event building, and the pipeline so interfaces stay explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import BinaryIO, Mapping, Protocol, Union

from core.constants import FIELD_TYPE_SEPARATOR
from core.errors import DescriptorError
from core.scratch_buffer import ScratchBuffer

FieldValue = Union[float, bool, str]
Row = list[Union[FieldValue, None]]


class TypeTag(Enum):
    """Declared semantic type of one CSV column."""

    NUMBER = "Number"
    BOOLEAN = "Boolean"
    IP = "IP"
    STRING = "String"
    ID = "Id"
    ESCAPED_STRING = "EscapedString"
    SET = "Set"

    @classmethod
    def parse(cls, token: str) -> "TypeTag":
        """Map a raw type token to a tag; unknown tokens decode as strings."""
        try:
            return cls(token)
        except ValueError:
            return cls.STRING


def parse_field_types(raw_field_types: str) -> tuple[TypeTag, ...]:
    """Split a comma-separated type manifest into ordered tags.

    Args:
        raw_field_types: Value of a descriptor's LogFileFieldTypes.

    Returns:
        One tag per CSV column, in column order.
    """
    return tuple(TypeTag.parse(token) for token in raw_field_types.split(FIELD_TYPE_SEPARATOR))


class SupportsPut(Protocol):
    """Output channel accepting one event at a time."""

    def put(self, item: "LogEvent") -> None: ...


class DownloadCapability(Protocol):
    """Collaborator that streams a remote log file into a byte sink."""

    def stream_download(self, reference: str, sink: BinaryIO | ScratchBuffer) -> None:
        """Drain the content behind ``reference`` into ``sink`` or raise DownloadError."""
        ...


@dataclass(frozen=True)
class LogDescriptor:
    """Metadata identifying one Event Log File export.

    Attributes:
        id: Record id of the export.
        event_type: Event type name, e.g. ``Login`` or ``API``.
        log_file: Opaque download reference for the CSV content.
        log_file_field_types: Comma-separated column type tags.
        log_date: Date the log covers, as reported by the API.
        log_file_length: Size of the CSV content in bytes.
    """

    id: str
    event_type: str
    log_file: str
    log_file_field_types: str
    log_date: str
    log_file_length: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "LogDescriptor":
        """Build a descriptor from API-shaped keys.

        Args:
            payload: Mapping with Id, EventType, LogFile, LogFileFieldTypes,
                LogDate, and LogFileLength keys.

        Returns:
            Validated descriptor.

        Raises:
            DescriptorError: If a key is missing or has the wrong type.
        """
        return cls(
            id=_require_string(payload, "Id"),
            event_type=_require_string(payload, "EventType"),
            log_file=_require_string(payload, "LogFile"),
            log_file_field_types=_require_string(payload, "LogFileFieldTypes"),
            log_date=str(_require_value(payload, "LogDate")),
            log_file_length=_require_length(payload),
        )


@dataclass(frozen=True)
class DownloadedLog:
    """One downloaded log file ready for decoding.

    Attributes:
        descriptor_id: Id of the descriptor the content came from.
        field_types: Column type tags, in column order.
        content: Scratch buffer positioned at the start of the CSV content.
        event_type: Event type of the log file.
    """

    descriptor_id: str
    field_types: tuple[TypeTag, ...]
    content: ScratchBuffer
    event_type: str


@dataclass
class LogEvent:
    """Structured record built from one CSV row.

    Attributes:
        timestamp: Canonical event instant, timezone-aware UTC.
        fields: Header-derived fields plus the ``type`` routing tag.
    """

    timestamp: datetime
    fields: dict[str, FieldValue] = field(default_factory=dict)


@dataclass(frozen=True)
class PipelineOptions:
    """Batch processing options.

    Attributes:
        continue_on_file_error: Move on to the next file after a failure.
        max_workers: Number of files processed concurrently.
        temp_dir: Directory for scratch buffers, system default when unset.
    """

    continue_on_file_error: bool = False
    max_workers: int = 1
    temp_dir: str | None = None


@dataclass(frozen=True)
class FileFailure:
    """One log file that failed during a batch."""

    descriptor_id: str
    event_type: str
    error: Exception


@dataclass(frozen=True)
class BatchResult:
    """Summary of one processed batch of descriptors."""

    files_processed: int
    records_enqueued: int
    failures: tuple[FileFailure, ...] = ()

    @property
    def succeeded(self) -> bool:
        """Whether every file in the batch was processed."""
        return not self.failures


def _require_value(payload: Mapping[str, object], key: str) -> object:
    if key not in payload or payload[key] is None:
        raise DescriptorError(
            f"Log file descriptor is missing required field '{key}'. "
            "Include it in the descriptor payload."
        )
    return payload[key]


def _require_string(payload: Mapping[str, object], key: str) -> str:
    value = _require_value(payload, key)
    if not isinstance(value, str):
        raise DescriptorError(
            f"Log file descriptor field '{key}' must be a string, "
            f"got {type(value).__name__}."
        )
    return value


def _require_length(payload: Mapping[str, object]) -> int:
    value = _require_value(payload, "LogFileLength")
    if isinstance(value, bool):
        raise DescriptorError("Log file descriptor field 'LogFileLength' must be a number.")
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as error:
        raise DescriptorError(
            f"Log file descriptor field 'LogFileLength' must be a number, got '{value}'."
        ) from error
