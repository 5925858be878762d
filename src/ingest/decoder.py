"""Schema-aware CSV row decoding.

This module tokenizes raw CSV lines and converts each token into the
value its declared column type calls for. Empty tokens decode to None
so the event builder can leave those fields out.
"""

from __future__ import annotations

import csv
import ipaddress
import math
from typing import Callable, Mapping, Sequence

from core.constants import CSV_QUOTE_CHAR, CSV_SEPARATOR
from core.errors import CsvSyntaxError, LengthMismatchError, TypeParseError
from core.types import FieldValue, Row, TypeTag

FieldDecoder = Callable[[str], "FieldValue | None"]


def tokenize_line(line: str) -> list[str]:
    """Split one CSV line into raw string fields.

    Args:
        line: Raw line, with or without its line terminator.

    Returns:
        Field strings in column order.

    Raises:
        CsvSyntaxError: If the line has malformed quoting.
    """
    stripped_line = line.rstrip("\r\n")
    reader = csv.reader(
        [stripped_line],
        delimiter=CSV_SEPARATOR,
        quotechar=CSV_QUOTE_CHAR,
        strict=True,
    )
    try:
        return next(reader, [])
    except csv.Error as error:
        raise CsvSyntaxError(
            f"Malformed CSV line: {error}. Check quoting in the exported log file."
        ) from error


def decode_row(raw_fields: Sequence[str], field_types: Sequence[TypeTag]) -> Row:
    """Convert raw CSV fields into typed values.

    Args:
        raw_fields: Tokenized CSV fields.
        field_types: Declared type of each column.

    Returns:
        One decoded value or None per column.

    Raises:
        LengthMismatchError: If field and type counts differ.
        TypeParseError: If a Number field is not numeric.
    """
    if len(raw_fields) != len(field_types):
        raise LengthMismatchError(
            f"Row has {len(raw_fields)} fields but {len(field_types)} column types "
            "were declared. Check that LogFileFieldTypes matches the CSV header."
        )
    return [
        _DECODERS[field_type](raw_field)
        for raw_field, field_type in zip(raw_fields, field_types)
    ]


def _decode_number(token: str) -> float | None:
    if not token:
        return None
    try:
        number = float(token)
    except ValueError as error:
        raise TypeParseError(
            f"Invalid Number value '{token}': expected a numeric literal."
        ) from error
    if not math.isfinite(number):
        raise TypeParseError(f"Invalid Number value '{token}': expected a finite number.")
    return number


def _decode_boolean(token: str) -> bool | None:
    if not token:
        return None
    # "0" is True, every other token is False.
    return token == "0"


def _decode_ip(token: str) -> str | None:
    if not token:
        return None
    try:
        ipaddress.IPv4Address(token)
    except ValueError:
        return None
    return token


def _decode_string(token: str) -> str | None:
    return token or None


_DECODERS: Mapping[TypeTag, FieldDecoder] = {
    TypeTag.NUMBER: _decode_number,
    TypeTag.BOOLEAN: _decode_boolean,
    TypeTag.IP: _decode_ip,
    TypeTag.STRING: _decode_string,
    TypeTag.ID: _decode_string,
    TypeTag.ESCAPED_STRING: _decode_string,
    TypeTag.SET: _decode_string,
}

