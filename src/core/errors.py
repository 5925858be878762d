"""ELF ingest exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each stage of retrieval, decoding, and event building raises a specific
error type so callers can tell which log file failed and why.
"""

from __future__ import annotations


class ElfError(Exception):
    """Base exception for all ELF ingest failures."""


class ElfConfigError(ElfError):
    """Raised for invalid runtime configuration."""


class DescriptorError(ElfError):
    """Raised for malformed log file descriptors or descriptor manifests."""


class DownloadError(ElfError):
    """Raised when a log file cannot be streamed into its buffer."""


class DecodeError(ElfError):
    """Base for row-level failures that abort the rest of a log file."""


class CsvSyntaxError(DecodeError):
    """Raised for CSV lines with malformed quoting."""


class LengthMismatchError(DecodeError):
    """Raised when a row width differs from the header or field type width."""


class TypeParseError(DecodeError):
    """Raised when a Number or TIMESTAMP value cannot be parsed."""


class ProcessingCancelled(ElfError):
    """Raised when a batch is cancelled between rows or files."""


class LogFileError(ElfError):
    """Raised when one log file fails, naming the descriptor it came from."""

    def __init__(self, descriptor_id: str, event_type: str, reason: str) -> None:
        super().__init__(
            f"Failed to process log file {descriptor_id} ({event_type}): {reason}"
        )
        self.descriptor_id = descriptor_id
        self.event_type = event_type
        self.reason = reason
