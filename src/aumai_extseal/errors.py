"""Exception hierarchy for aumai-extseal."""

from __future__ import annotations


class ExtSealError(Exception):
    """Base exception for all aumai-extseal errors."""


# ---------------------------------------------------------------------------
# Record format
# ---------------------------------------------------------------------------


class RecordFormatError(ExtSealError, ValueError):
    """Bytes or field values that do not fit the fixed record layout."""


class InvalidLengthError(RecordFormatError):
    """A record or container has the wrong total byte count."""


class TooShortError(InvalidLengthError):
    """A container is smaller than one fixed-width record."""


class FieldError(RecordFormatError):
    """A single record field cannot be encoded or decoded.

    Attributes:
        field: Name of the offending :class:`ExtensionRecord` attribute.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class FieldTooLongError(FieldError):
    """A string field does not fit its declared width."""


class FieldEncodingError(FieldError):
    """A string field holds a value the ASCII record layout cannot carry."""


# ---------------------------------------------------------------------------
# Key files
# ---------------------------------------------------------------------------


class KeyFileError(ExtSealError):
    """Base class for key container problems."""


class KindMismatchError(KeyFileError):
    """A public key was used where a private one is required, or vice versa."""


class MalformedKeyFileError(KeyFileError, ValueError):
    """Key file text does not parse as two base64 lines."""


# ---------------------------------------------------------------------------
# Signing lifecycle
# ---------------------------------------------------------------------------


class StateError(ExtSealError):
    """An operation was invoked on a record in the wrong lifecycle state."""


class AlreadySignedError(StateError):
    """The record already carries a signature."""


class NotSignedError(StateError):
    """The record carries no signature."""


class CorruptRecordError(StateError):
    """Exactly one of the two unsigned markers is set."""


class CryptoFailureError(ExtSealError):
    """Key or signature bytes are unusable for RSA/SHA-512/PKCS#1 v1.5."""


__all__ = [
    "AlreadySignedError",
    "CorruptRecordError",
    "CryptoFailureError",
    "ExtSealError",
    "FieldEncodingError",
    "FieldError",
    "FieldTooLongError",
    "InvalidLengthError",
    "KeyFileError",
    "KindMismatchError",
    "MalformedKeyFileError",
    "NotSignedError",
    "RecordFormatError",
    "StateError",
    "TooShortError",
]
