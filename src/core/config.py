"""Runtime configuration model for ELF ingest.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_POLL_INTERVAL_SECONDS,
)
from core.errors import ElfConfigError
from core.types import PipelineOptions

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class ElfConfig:
    """Validated runtime configuration.

    Attributes:
        instance_url: Base URL of the CRM instance serving log files.
        access_token: Bearer token for log file downloads.
        temp_dir: Optional directory for scratch buffers.
        http_timeout: Download timeout in seconds.
        max_workers: Number of log files processed concurrently.
        continue_on_file_error: Keep processing a batch after a file fails.
        poll_interval: Seconds between manifest polls.
    """

    instance_url: str | None
    access_token: str | None
    temp_dir: str | None
    http_timeout: float
    max_workers: int
    continue_on_file_error: bool
    poll_interval: float

    @classmethod
    def from_env(cls) -> "ElfConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ElfConfigError: If environment values are invalid.
        """
        return cls(
            instance_url=os.getenv("ELF_INSTANCE_URL"),
            access_token=os.getenv("ELF_ACCESS_TOKEN"),
            temp_dir=os.getenv("ELF_TEMP_DIR"),
            http_timeout=_parse_positive_float(
                "ELF_HTTP_TIMEOUT", os.getenv("ELF_HTTP_TIMEOUT"), DEFAULT_HTTP_TIMEOUT_SECONDS
            ),
            max_workers=_parse_max_workers(os.getenv("ELF_MAX_WORKERS")),
            continue_on_file_error=_parse_bool(
                "ELF_CONTINUE_ON_FILE_ERROR", os.getenv("ELF_CONTINUE_ON_FILE_ERROR")
            ),
            poll_interval=_parse_positive_float(
                "ELF_POLL_INTERVAL", os.getenv("ELF_POLL_INTERVAL"), DEFAULT_POLL_INTERVAL_SECONDS
            ),
        )

    def pipeline_options(self) -> PipelineOptions:
        """Derive batch processing options from this config."""
        return PipelineOptions(
            continue_on_file_error=self.continue_on_file_error,
            max_workers=self.max_workers,
            temp_dir=self.temp_dir,
        )


def _parse_positive_float(name: str, raw_value: str | None, default: float) -> float:
    """Parse a positive float environment value.

    Raises:
        ElfConfigError: If value is not a positive number.
    """
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError as error:
        raise ElfConfigError(
            f"Invalid {name} value: expected number of seconds, got '{raw_value}'. "
            f"Set {name} to a positive number."
        ) from error
    if value <= 0:
        raise ElfConfigError(f"Invalid {name} value: {raw_value}. Use a value > 0.")
    return value


def _parse_max_workers(raw_value: str | None) -> int:
    """Parse the worker count environment value.

    Raises:
        ElfConfigError: If value is not an integer >= 1.
    """
    if raw_value is None:
        return DEFAULT_MAX_WORKERS
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ElfConfigError(
            "Invalid ELF_MAX_WORKERS value: "
            f"expected integer, got '{raw_value}'. "
            "Set ELF_MAX_WORKERS to a numeric value."
        ) from error
    if value < 1:
        raise ElfConfigError(f"Invalid ELF_MAX_WORKERS value: {value}. Use a value >= 1.")
    return value


def _parse_bool(name: str, raw_value: str | None) -> bool:
    if raw_value is None:
        return False
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ElfConfigError(
        f"Invalid {name} value: expected true/false, got '{raw_value}'."
    )
