"""Byte-exact encoding of :class:`ExtensionRecord` to and from 1024 bytes.

The layout is an explicit offset table.  String fields are ASCII, written
left-aligned and zero-padded to their width; one byte of every string field
is reserved for the terminator.  Binary fields are copied verbatim.
"""

from __future__ import annotations

from typing import NamedTuple

from aumai_extseal.constants import (
    AUTHOR_SIZE,
    DESCRIPTION_SIZE,
    FORMAT_VERSION_SIZE,
    NAME_SIZE,
    PAD_SIZE,
    RECORD_SIZE,
    SIGNATURE_AUTHOR_SIZE,
    SIGNATURE_SIZE,
    VERSION_SIZE,
)
from aumai_extseal.errors import (
    FieldEncodingError,
    FieldTooLongError,
    InvalidLengthError,
)
from aumai_extseal.models import ExtensionRecord


class FieldSpec(NamedTuple):
    """Position of one :class:`ExtensionRecord` attribute inside the record."""

    name: str
    offset: int
    width: int
    text: bool


def _build_layout(fields: list[tuple[str, int, bool]]) -> tuple[FieldSpec, ...]:
    specs: list[FieldSpec] = []
    offset = 0
    for name, width, text in fields:
        specs.append(FieldSpec(name=name, offset=offset, width=width, text=text))
        offset += width
    return tuple(specs)


RECORD_LAYOUT: tuple[FieldSpec, ...] = _build_layout(
    [
        ("format_version", FORMAT_VERSION_SIZE, True),
        ("name", NAME_SIZE, True),
        ("author", AUTHOR_SIZE, True),
        ("description", DESCRIPTION_SIZE, True),
        ("version", VERSION_SIZE, True),
        ("pad", PAD_SIZE, False),
        ("signature_author", SIGNATURE_AUTHOR_SIZE, True),
        ("signature", SIGNATURE_SIZE, False),
    ]
)

FIELD_WIDTHS: dict[str, int] = {spec.name: spec.width for spec in RECORD_LAYOUT}


def check_text_field(name: str, value: str, width: int) -> bytes:
    """Validate *value* for a string field of *width* bytes and return its bytes.

    Raises:
        FieldEncodingError: if *value* is not ASCII or contains a NUL byte.
        FieldTooLongError: if *value* needs more than ``width - 1`` bytes.
    """
    try:
        raw = value.encode("ascii")
    except UnicodeEncodeError as exc:
        raise FieldEncodingError(name, "only ASCII text is allowed") from exc
    if b"\x00" in raw:
        raise FieldEncodingError(name, "NUL bytes are not allowed")
    if len(raw) > width - 1:
        raise FieldTooLongError(
            name, f"{len(raw)} bytes exceeds the {width - 1}-byte limit"
        )
    return raw


def encode_record(record: ExtensionRecord) -> bytes:
    """Lay out *record* as exactly ``RECORD_SIZE`` bytes."""
    buffer = bytearray(RECORD_SIZE)
    for spec in RECORD_LAYOUT:
        value = getattr(record, spec.name)
        if spec.text:
            raw = check_text_field(spec.name, value, spec.width)
        else:
            raw = bytes(value)
            if len(raw) != spec.width:
                raise InvalidLengthError(
                    f"{spec.name}: expected {spec.width} bytes, got {len(raw)}"
                )
        buffer[spec.offset : spec.offset + len(raw)] = raw
    return bytes(buffer)


def decode_record(data: bytes) -> ExtensionRecord:
    """Parse exactly ``RECORD_SIZE`` bytes into an :class:`ExtensionRecord`.

    String fields end at their first NUL byte, or span the full width when
    none is present.  The signing state is not checked here.

    A full-width string decodes, but :func:`encode_record` keeps one byte
    for the terminator and rejects it with :class:`FieldTooLongError`, so
    such a record cannot be written back unchanged.
    """
    data = bytes(data)
    if len(data) != RECORD_SIZE:
        raise InvalidLengthError(
            f"record must be exactly {RECORD_SIZE} bytes, got {len(data)}"
        )

    values: dict[str, str | bytes] = {}
    for spec in RECORD_LAYOUT:
        chunk = data[spec.offset : spec.offset + spec.width]
        if not spec.text:
            values[spec.name] = chunk
            continue
        end = chunk.find(b"\x00")
        if end != -1:
            chunk = chunk[:end]
        try:
            values[spec.name] = chunk.decode("ascii")
        except UnicodeDecodeError as exc:
            raise FieldEncodingError(spec.name, "field is not ASCII text") from exc
    return ExtensionRecord(**values)


__all__ = [
    "FIELD_WIDTHS",
    "RECORD_LAYOUT",
    "FieldSpec",
    "check_text_field",
    "decode_record",
    "encode_record",
]
