"""On-disk information files and extension containers.

Information files hold a single encoded record.  Their suffix follows the
record's state: ``.ainf`` for unsigned records, ``.anfx`` for signed ones.
Extension containers (``.aext``) hold a record followed by the payload.
Every function reads or writes whole files within a single call.
"""

from __future__ import annotations

import logging
from pathlib import Path

from aumai_extseal.codec import decode_record, encode_record
from aumai_extseal.constants import (
    EXTENSION_SUFFIX,
    RECORD_SIZE,
    SIGNED_INFO_SUFFIX,
    UNSIGNED_INFO_SUFFIX,
)
from aumai_extseal.container import load_extension, pack
from aumai_extseal.core import ExtensionSigner, ExtensionVerifier
from aumai_extseal.errors import (
    AlreadySignedError,
    FieldEncodingError,
    InvalidLengthError,
    NotSignedError,
)
from aumai_extseal.models import ExtensionRecord, KeyMaterial, RecordState

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Record files
# ---------------------------------------------------------------------------


def read_record_file(path: str | Path) -> ExtensionRecord:
    """Decode the record stored in *path*, which must be exactly one record long."""
    data = Path(path).read_bytes()
    if len(data) != RECORD_SIZE:
        raise InvalidLengthError(
            f"'{path}' is {len(data)} bytes; record files are exactly "
            f"{RECORD_SIZE} bytes"
        )
    return decode_record(data)


def write_record_file(record: ExtensionRecord, path: str | Path) -> Path:
    """Encode *record* into *path*, replacing any existing file."""
    target = Path(path)
    target.write_bytes(encode_record(record))
    logger.debug("Wrote record '%s' to %s", record.name, target)
    return target


def _file_stem(record: ExtensionRecord) -> str:
    name = record.name
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise FieldEncodingError(
            "name", f"'{name}' cannot be used as a file name"
        )
    return name


def information_path(record: ExtensionRecord, directory: str | Path) -> Path:
    """Return where *record* lives in *directory*, named after the record."""
    suffix = SIGNED_INFO_SUFFIX if record.is_signed else UNSIGNED_INFO_SUFFIX
    return Path(directory) / f"{_file_stem(record)}{suffix}"


def save_information(record: ExtensionRecord, directory: str | Path) -> Path:
    """Write *record* as an information file inside *directory*."""
    target = information_path(record, directory)
    target.parent.mkdir(parents=True, exist_ok=True)
    return write_record_file(record, target)


def load_unsigned_information(path: str | Path) -> ExtensionRecord:
    """Load an information file that must hold an unsigned record."""
    record = read_record_file(path)
    if record.state is RecordState.signed:
        raise AlreadySignedError(f"'{path}' is already signed")
    return record


def load_signed_information(path: str | Path) -> ExtensionRecord:
    """Load an information file that must hold a signed record."""
    record = read_record_file(path)
    if record.state is RecordState.unsigned:
        raise NotSignedError(f"'{path}' is not signed")
    return record


def _replace(source: Path, target: Path) -> None:
    if source.exists() and source.resolve() != target.resolve():
        source.unlink()
        logger.debug("Removed %s", source)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def sign_and_checkout(
    info_path: str | Path,
    private_key: KeyMaterial,
    binary_path: str | Path,
    signer: ExtensionSigner | None = None,
) -> Path:
    """Sign the unsigned information file at *info_path* against a binary.

    The signed file is written beside the input as ``<name>.anfx`` and the
    unsigned input is removed.

    Returns:
        Path of the signed information file.
    """
    source = Path(info_path)
    record = load_unsigned_information(source)
    payload = Path(binary_path).read_bytes()
    signed = (signer or ExtensionSigner()).sign(record, private_key, payload)
    target = save_information(signed, source.parent)
    _replace(source, target)
    logger.info(
        "Signed '%s' as '%s' (%d payload bytes)",
        record.name,
        signed.signature_author,
        len(payload),
    )
    return target


def unsign_and_checkout(
    info_path: str | Path,
    signer: ExtensionSigner | None = None,
) -> Path:
    """Strip the signature from the information file at *info_path*.

    The unsigned file is written beside the input as ``<name>.ainf`` and the
    signed input is removed.
    """
    source = Path(info_path)
    record = load_signed_information(source)
    unsigned = (signer or ExtensionSigner()).unsign(record)
    target = save_information(unsigned, source.parent)
    _replace(source, target)
    logger.info(
        "Removed signature of '%s' from '%s'", record.signature_author, record.name
    )
    return target


# ---------------------------------------------------------------------------
# Extension containers
# ---------------------------------------------------------------------------


def pack_extension(
    info_path: str | Path,
    binary_path: str | Path,
    output: str | Path | None = None,
) -> Path:
    """Combine an information file and a binary into an extension container.

    Args:
        info_path: Signed or unsigned information file.
        binary_path: The payload.
        output: Destination; defaults to ``<name>.aext`` beside *info_path*.

    Returns:
        Path of the written container.
    """
    record = read_record_file(info_path)
    payload = Path(binary_path).read_bytes()
    if output is None:
        target = Path(info_path).parent / f"{_file_stem(record)}{EXTENSION_SUFFIX}"
    else:
        target = Path(output)
    target.write_bytes(pack(record, payload))
    logger.info(
        "Packed '%s' into %s (%d payload bytes)", record.name, target, len(payload)
    )
    return target


def unpack_extension(path: str | Path) -> tuple[ExtensionRecord, bytes]:
    """Read the container at *path* and return ``(record, payload)``."""
    return load_extension(Path(path).read_bytes())


def extract_extension(
    path: str | Path,
    output_dir: str | Path,
    binary_suffix: str = ".bin",
) -> tuple[Path, Path]:
    """Write the record and payload of the container at *path* to *output_dir*.

    Returns:
        A tuple of ``(information_path, binary_path)``.
    """
    record, payload = unpack_extension(path)
    info_file = save_information(record, output_dir)
    binary_file = Path(output_dir) / f"{_file_stem(record)}{binary_suffix}"
    binary_file.write_bytes(payload)
    logger.debug("Extracted %s into %s and %s", path, info_file, binary_file)
    return info_file, binary_file


def verify_extension(
    path: str | Path,
    public_key: KeyMaterial,
    verifier: ExtensionVerifier | None = None,
) -> bool:
    """Verify the container at *path* against *public_key*."""
    record, payload = unpack_extension(path)
    valid = (verifier or ExtensionVerifier()).verify(record, public_key, payload)
    logger.debug("Verification of %s against '%s': %s", path, public_key.author, valid)
    return valid


__all__ = [
    "extract_extension",
    "information_path",
    "load_signed_information",
    "load_unsigned_information",
    "pack_extension",
    "read_record_file",
    "save_information",
    "sign_and_checkout",
    "unpack_extension",
    "unsign_and_checkout",
    "verify_extension",
    "write_record_file",
]
