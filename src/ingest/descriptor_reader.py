"""Descriptor manifest loading.

This module reads log file descriptors from a YAML or JSON manifest,
either a plain list or a query response with a ``records`` list.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence, cast

import yaml

from core.constants import DESCRIPTOR_RECORDS_KEY
from core.errors import DescriptorError
from core.types import LogDescriptor


def load_descriptors(manifest_path: str | Path) -> list[LogDescriptor]:
    """Load and validate descriptors from a manifest file.

    Args:
        manifest_path: Path to a YAML or JSON manifest.

    Returns:
        Descriptors in manifest order.

    Raises:
        DescriptorError: If the file is missing, unparsable, or malformed.
    """
    payload = _load_manifest_payload(Path(manifest_path).expanduser().resolve())
    rows = _descriptor_rows(payload)
    descriptors = []
    for index, row in enumerate(rows, 1):
        if not isinstance(row, Mapping):
            raise DescriptorError(
                f"Invalid descriptor #{index}: expected object mapping, "
                f"got {type(row).__name__}."
            )
        descriptors.append(LogDescriptor.from_payload(row))
    return descriptors


def _load_manifest_payload(manifest_file: Path) -> object:
    if not manifest_file.exists():
        raise DescriptorError(
            f"Descriptor manifest does not exist at {manifest_file}. "
            "Provide a valid YAML or JSON file path."
        )
    try:
        payload = cast(object, yaml.safe_load(manifest_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise DescriptorError(
            f"Failed to read descriptor manifest at {manifest_file}: {error}. "
            "Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise DescriptorError(
            f"Failed to parse descriptor manifest at {manifest_file}: {error}. "
            "Fix the manifest syntax and retry."
        ) from error
    if payload is None:
        return []
    return payload


def _descriptor_rows(payload: object) -> Sequence[object]:
    if isinstance(payload, Mapping):
        if DESCRIPTOR_RECORDS_KEY not in payload:
            raise DescriptorError(
                "Descriptor manifest mapping must contain a 'records' list."
            )
        payload = payload[DESCRIPTOR_RECORDS_KEY]
    if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes, bytearray)):
        return payload
    raise DescriptorError(
        f"Invalid descriptor manifest: expected list, got {type(payload).__name__}."
    )
