"""Public SDK surface for Event Log File ingest.

This module provides a stable import path for library users.
It re-exports the pipeline entry points and typed models.
"""

from __future__ import annotations

from core.config import ElfConfig
from core.errors import (
    CsvSyntaxError,
    DownloadError,
    ElfError,
    LengthMismatchError,
    LogFileError,
    ProcessingCancelled,
    TypeParseError,
)
from core.types import (
    BatchResult,
    DownloadedLog,
    LogDescriptor,
    LogEvent,
    PipelineOptions,
    TypeTag,
)
from ingest.decoder import decode_row, tokenize_line
from ingest.descriptor_reader import load_descriptors
from ingest.event_builder import EventBuilder
from ingest.pipeline import LogFilePipeline, process_log_files
from ingest.retriever import LogFileRetriever
from transport.http_download import HttpDownloadClient
from transport.local_download import LocalDownloadClient

__all__ = [
    "BatchResult",
    "CsvSyntaxError",
    "DownloadError",
    "DownloadedLog",
    "ElfConfig",
    "ElfError",
    "EventBuilder",
    "HttpDownloadClient",
    "LengthMismatchError",
    "LocalDownloadClient",
    "LogDescriptor",
    "LogEvent",
    "LogFileError",
    "LogFilePipeline",
    "LogFileRetriever",
    "PipelineOptions",
    "ProcessingCancelled",
    "TypeParseError",
    "TypeTag",
    "decode_row",
    "load_descriptors",
    "process_log_files",
    "tokenize_line",
]
