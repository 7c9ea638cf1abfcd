"""RSA key generation and the two-line key file format."""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from aumai_extseal.codec import check_text_field
from aumai_extseal.constants import (
    DEFAULT_KEY_SIZE,
    PRIVATE_KEY_SUFFIX,
    PUBLIC_EXPONENT,
    PUBLIC_KEY_SUFFIX,
    SIGNATURE_AUTHOR_SIZE,
)
from aumai_extseal.errors import KeyFileError, KindMismatchError, MalformedKeyFileError
from aumai_extseal.models import KeyKind, KeyMaterial

_SUFFIX_KINDS: dict[str, KeyKind] = {
    PUBLIC_KEY_SUFFIX: KeyKind.public,
    PRIVATE_KEY_SUFFIX: KeyKind.private,
}


def _author_bytes(author: str) -> bytes:
    # Key authors end up in the record's signature_author field.
    return check_text_field("author", author, SIGNATURE_AUTHOR_SIZE)


def _decode_line(line: str, what: str) -> bytes:
    try:
        return base64.b64decode(line.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedKeyFileError(f"{what} line is not valid base64") from exc


# ---------------------------------------------------------------------------
# KeyManager
# ---------------------------------------------------------------------------


class KeyManager:
    """Generate, serialise, persist, and load authored RSA keys."""

    def generate_keypair(
        self,
        author: str,
        key_size: int = DEFAULT_KEY_SIZE,
    ) -> tuple[KeyMaterial, KeyMaterial]:
        """Generate a fresh RSA key pair owned by *author*.

        Args:
            author: Identity recorded in both keys and, after signing, in the
                record's ``signature_author`` field.
            key_size: RSA modulus size in bits.  Only the default produces
                signatures that fit the record's signature field.

        Returns:
            A tuple of ``(private_key, public_key)``.
        """
        _author_bytes(author)
        private_key = rsa.generate_private_key(
            public_exponent=PUBLIC_EXPONENT, key_size=key_size
        )
        private_der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_der = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.PKCS1,
        )
        return (
            KeyMaterial(author=author, key_bytes=private_der, kind=KeyKind.private),
            KeyMaterial(author=author, key_bytes=public_der, kind=KeyKind.public),
        )

    # ------------------------------------------------------------------
    # Text container
    # ------------------------------------------------------------------

    def dump_key(self, key: KeyMaterial, kind: KeyKind) -> str:
        """Serialise *key* as base64(author) and base64(key bytes) lines.

        Raises:
            KindMismatchError: if *key* is not of the declared *kind*.
        """
        if key.kind != kind:
            raise KindMismatchError(
                f"cannot save a {key.kind.value} key as {kind.value}"
            )
        author_line = base64.b64encode(_author_bytes(key.author)).decode("ascii")
        key_line = base64.b64encode(key.key_bytes).decode("ascii")
        return f"{author_line}\n{key_line}\n"

    def parse_key(self, text: str, kind: KeyKind) -> KeyMaterial:
        """Parse key file *text*, tagging the result with the expected *kind*.

        The content does not say whether it holds a public or private key;
        *kind* comes from whichever file the caller chose to read.
        """
        lines = text.splitlines()
        if len(lines) < 2:
            raise MalformedKeyFileError(
                f"key file needs 2 lines (author, key), found {len(lines)}"
            )
        raw_author = _decode_line(lines[0], "author")
        key_bytes = _decode_line(lines[1], "key")
        if not key_bytes:
            raise MalformedKeyFileError("key line is empty")
        try:
            author = raw_author.decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedKeyFileError("author is not ASCII text") from exc
        return KeyMaterial(author=author, key_bytes=key_bytes, kind=kind)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    @staticmethod
    def kind_for_path(path: str | Path) -> KeyKind:
        """Return the key kind declared by the suffix of *path*."""
        suffix = Path(path).suffix
        try:
            return _SUFFIX_KINDS[suffix]
        except KeyError:
            raise KindMismatchError(
                f"'{path}' is not a key file: expected suffix "
                f"{PUBLIC_KEY_SUFFIX} or {PRIVATE_KEY_SUFFIX}"
            ) from None

    def save_key(self, key: KeyMaterial, path: str | Path) -> Path:
        """Write *key* to *path*; the suffix of *path* must match ``key.kind``.

        Private key files are written with mode 0o600 on POSIX systems.
        """
        target = Path(path)
        text = self.dump_key(key, self.kind_for_path(target))
        target.write_text(text, encoding="ascii")
        if key.kind == KeyKind.private:
            try:
                os.chmod(target, 0o600)
            except NotImplementedError:
                pass  # Windows
        return target

    def _load_key(self, path: str | Path, kind: KeyKind) -> KeyMaterial:
        declared = self.kind_for_path(path)
        if declared != kind:
            raise KindMismatchError(
                f"cannot load '{path}' as a {kind.value} key: "
                f"the file holds a {declared.value} key"
            )
        raw = Path(path).read_bytes()
        try:
            text = raw.decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedKeyFileError(f"'{path}' is not ASCII text") from exc
        return self.parse_key(text, kind)

    def load_public_key(self, path: str | Path) -> KeyMaterial:
        """Read a public key from a ``.akey`` file."""
        return self._load_key(path, KeyKind.public)

    def load_private_key(self, path: str | Path) -> KeyMaterial:
        """Read a private key from a ``.akyx`` file."""
        return self._load_key(path, KeyKind.private)

    def save_keypair(
        self,
        private_key: KeyMaterial,
        public_key: KeyMaterial,
        path: str | Path,
    ) -> tuple[Path, Path]:
        """Write the pair to *path*/private.akyx and *path*/public.akey.

        The output directory is created if it does not exist.

        Returns:
            A tuple of ``(private_path, public_path)``.
        """
        out_dir = Path(path)
        out_dir.mkdir(parents=True, exist_ok=True)
        private_file = self.save_key(
            private_key, out_dir / f"private{PRIVATE_KEY_SUFFIX}"
        )
        public_file = self.save_key(public_key, out_dir / f"public{PUBLIC_KEY_SUFFIX}")
        return private_file, public_file


# ---------------------------------------------------------------------------
# Key sources
# ---------------------------------------------------------------------------


@runtime_checkable
class KeySource(Protocol):
    """Anything that can look up authored keys by identity."""

    def load_public_key(self, identity: str) -> KeyMaterial: ...

    def load_private_key(self, identity: str) -> KeyMaterial: ...


class DirectoryKeySource:
    """Key source backed by ``<root>/<identity>.akey`` and ``.akyx`` files."""

    def __init__(self, root: str | Path, key_manager: KeyManager | None = None) -> None:
        self._root = Path(root)
        self._key_manager = key_manager or KeyManager()

    @property
    def root(self) -> Path:
        return self._root

    def _key_path(self, identity: str, suffix: str) -> Path:
        # Identities come from untrusted records; keep lookups inside the root.
        if identity in ("", ".", "..") or "/" in identity or "\\" in identity:
            raise KeyFileError(f"'{identity}' is not a usable key identity")
        return self._root / f"{identity}{suffix}"

    def public_key_path(self, identity: str) -> Path:
        return self._key_path(identity, PUBLIC_KEY_SUFFIX)

    def private_key_path(self, identity: str) -> Path:
        return self._key_path(identity, PRIVATE_KEY_SUFFIX)

    def load_public_key(self, identity: str) -> KeyMaterial:
        return self._key_manager.load_public_key(self.public_key_path(identity))

    def load_private_key(self, identity: str) -> KeyMaterial:
        return self._key_manager.load_private_key(self.private_key_path(identity))

    def list_identities(self) -> list[str]:
        """Return the identities that have a public key under the root."""
        if not self._root.is_dir():
            return []
        return sorted(p.stem for p in self._root.glob(f"*{PUBLIC_KEY_SUFFIX}"))


__all__ = [
    "DirectoryKeySource",
    "KeyManager",
    "KeySource",
]
