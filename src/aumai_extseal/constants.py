"""Fixed sizes, sentinel values and file suffixes for aumai-extseal."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Record layout
# ---------------------------------------------------------------------------

RECORD_SIZE = 1024

FORMAT_VERSION_SIZE = 64
NAME_SIZE = 64
AUTHOR_SIZE = 64
DESCRIPTION_SIZE = 512
VERSION_SIZE = 64
PAD_SIZE = 64
SIGNATURE_AUTHOR_SIZE = 64
SIGNATURE_SIZE = 128

DEFAULT_FORMAT_VERSION = "AUMAI_EXTSEAL_V1.0.0"

# signature_author value of a record that carries no signature
NOT_SIGNED = "NOT_SIGNED"

# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

# RSA modulus size whose PKCS#1 v1.5 signature fills SIGNATURE_SIZE exactly
DEFAULT_KEY_SIZE = SIGNATURE_SIZE * 8
PUBLIC_EXPONENT = 65537

# ---------------------------------------------------------------------------
# File suffixes
# ---------------------------------------------------------------------------

UNSIGNED_INFO_SUFFIX = ".ainf"
SIGNED_INFO_SUFFIX = ".anfx"
EXTENSION_SUFFIX = ".aext"
PUBLIC_KEY_SUFFIX = ".akey"
PRIVATE_KEY_SUFFIX = ".akyx"


__all__ = [
    "AUTHOR_SIZE",
    "DEFAULT_FORMAT_VERSION",
    "DEFAULT_KEY_SIZE",
    "DESCRIPTION_SIZE",
    "EXTENSION_SUFFIX",
    "FORMAT_VERSION_SIZE",
    "NAME_SIZE",
    "NOT_SIGNED",
    "PAD_SIZE",
    "PRIVATE_KEY_SUFFIX",
    "PUBLIC_EXPONENT",
    "PUBLIC_KEY_SUFFIX",
    "RECORD_SIZE",
    "SIGNATURE_AUTHOR_SIZE",
    "SIGNATURE_SIZE",
    "SIGNED_INFO_SUFFIX",
    "UNSIGNED_INFO_SUFFIX",
    "VERSION_SIZE",
]
