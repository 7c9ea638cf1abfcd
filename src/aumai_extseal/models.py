"""Pydantic models for aumai-extseal."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from aumai_extseal.constants import NOT_SIGNED, PAD_SIZE, SIGNATURE_SIZE
from aumai_extseal.errors import CorruptRecordError


class KeyKind(str, Enum):
    """Which half of an RSA key pair a :class:`KeyMaterial` holds."""

    public = "public"
    private = "private"


class RecordState(str, Enum):
    """Signing lifecycle state of an :class:`ExtensionRecord`."""

    unsigned = "unsigned"
    signed = "signed"


class ExtensionRecord(BaseModel):
    """The fixed-width descriptor of an extension.

    A freshly built record is unsigned: ``signature_author`` holds the
    ``NOT_SIGNED`` sentinel and ``signature`` is all zero bytes.  String
    widths are enforced when the record is encoded, not on construction.
    """

    model_config = ConfigDict(frozen=True)

    format_version: str = ""
    name: str = ""
    author: str = ""
    description: str = ""
    version: str = ""
    pad: bytes = Field(
        default=bytes(PAD_SIZE), min_length=PAD_SIZE, max_length=PAD_SIZE
    )
    signature_author: str = NOT_SIGNED
    signature: bytes = Field(
        default=bytes(SIGNATURE_SIZE),
        min_length=SIGNATURE_SIZE,
        max_length=SIGNATURE_SIZE,
    )

    @field_serializer("pad", "signature", when_used="json")
    def _bytes_as_hex(self, value: bytes) -> str:
        return value.hex()

    @property
    def state(self) -> RecordState:
        """Derive the lifecycle state from the two signature fields.

        Raises:
            CorruptRecordError: if only one of the unsigned markers is set.
        """
        sentinel = self.signature_author == NOT_SIGNED
        zeroed = not any(self.signature)
        if sentinel and zeroed:
            return RecordState.unsigned
        if not sentinel and not zeroed:
            return RecordState.signed
        raise CorruptRecordError(
            "signature_author and signature disagree about the signing state "
            f"(sentinel={sentinel}, zero signature={zeroed})"
        )

    @property
    def is_signed(self) -> bool:
        return self.state is RecordState.signed


class KeyMaterial(BaseModel):
    """An RSA key tagged with its author and kind.

    ``key_bytes`` is the DER export: PKCS#1 ``RSAPublicKey`` for public keys,
    traditional OpenSSL ``RSAPrivateKey`` for private keys.
    """

    model_config = ConfigDict(frozen=True)

    author: str
    key_bytes: bytes = Field(repr=False)
    kind: KeyKind


__all__ = [
    "ExtensionRecord",
    "KeyKind",
    "KeyMaterial",
    "RecordState",
]
