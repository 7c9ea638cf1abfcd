"""Extension containers: one encoded record followed by the payload bytes."""

from __future__ import annotations

from aumai_extseal.codec import decode_record, encode_record
from aumai_extseal.constants import RECORD_SIZE
from aumai_extseal.errors import TooShortError
from aumai_extseal.models import ExtensionRecord


def pack(record: ExtensionRecord, payload: bytes) -> bytes:
    """Concatenate the encoded *record* and *payload*.

    Signed and unsigned records are both accepted.
    """
    return encode_record(record) + bytes(payload)


def unpack(data: bytes) -> tuple[bytes, bytes]:
    """Split container *data* into ``(record_bytes, payload)``.

    The record bytes are not decoded; pass them to :func:`decode_record`.

    Raises:
        TooShortError: if *data* is shorter than one record.
    """
    data = bytes(data)
    if len(data) < RECORD_SIZE:
        raise TooShortError(
            f"container must hold at least {RECORD_SIZE} bytes, got {len(data)}"
        )
    return data[:RECORD_SIZE], data[RECORD_SIZE:]


def load_extension(data: bytes) -> tuple[ExtensionRecord, bytes]:
    """Split container *data* and decode its record."""
    record_bytes, payload = unpack(data)
    return decode_record(record_bytes), payload


__all__ = [
    "load_extension",
    "pack",
    "unpack",
]
