"""aumai-extseal: RSA-signed, fixed-layout records for binary extensions."""

from aumai_extseal.codec import decode_record, encode_record
from aumai_extseal.container import load_extension, pack, unpack
from aumai_extseal.core import ExtensionSigner, ExtensionVerifier
from aumai_extseal.errors import (
    AlreadySignedError,
    CorruptRecordError,
    CryptoFailureError,
    ExtSealError,
    FieldEncodingError,
    FieldTooLongError,
    InvalidLengthError,
    KindMismatchError,
    MalformedKeyFileError,
    NotSignedError,
    StateError,
    TooShortError,
)
from aumai_extseal.keys import DirectoryKeySource, KeyManager, KeySource
from aumai_extseal.models import ExtensionRecord, KeyKind, KeyMaterial, RecordState

__version__ = "0.1.0"

__all__ = [
    "AlreadySignedError",
    "CorruptRecordError",
    "CryptoFailureError",
    "DirectoryKeySource",
    "ExtSealError",
    "ExtensionRecord",
    "ExtensionSigner",
    "ExtensionVerifier",
    "FieldEncodingError",
    "FieldTooLongError",
    "InvalidLengthError",
    "KeyKind",
    "KeyManager",
    "KeyMaterial",
    "KeySource",
    "KindMismatchError",
    "MalformedKeyFileError",
    "NotSignedError",
    "RecordState",
    "StateError",
    "TooShortError",
    "decode_record",
    "encode_record",
    "load_extension",
    "pack",
    "unpack",
]
