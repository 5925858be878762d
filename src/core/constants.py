"""Core constants used across ELF ingest modules.

This module centralizes wire-format and default values.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

TYPE_PREFIX = "logstash-elf-"
TYPE_FIELD_NAME = "type"
TIMESTAMP_FIELD_NAME = "TIMESTAMP"
TIMESTAMP_PAYLOAD_KEY = "@timestamp"
ROUTING_DATE_FORMAT = "%Y-%m-%d"
CSV_SEPARATOR = ","
CSV_QUOTE_CHAR = '"'
CSV_ENCODING = "utf-8"
FIELD_TYPE_SEPARATOR = ","
TEMPFILE_PREFIX = "sfdc_elf_tempfile"
ELF_COMPACT_TIMESTAMP_FORMATS = ("%Y%m%d%H%M%S.%f", "%Y%m%d%H%M%S")
DESCRIPTOR_RECORDS_KEY = "records"
DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_WORKERS = 1
DEFAULT_POLL_INTERVAL_SECONDS = 3600.0
DOWNLOAD_CHUNK_SIZE = 64 * 1024
