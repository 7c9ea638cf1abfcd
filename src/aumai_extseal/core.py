"""Signing, verification and unsigning of extension records."""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from aumai_extseal.codec import check_text_field
from aumai_extseal.constants import NOT_SIGNED, SIGNATURE_AUTHOR_SIZE, SIGNATURE_SIZE
from aumai_extseal.errors import (
    AlreadySignedError,
    CryptoFailureError,
    FieldEncodingError,
    KindMismatchError,
    NotSignedError,
)
from aumai_extseal.models import ExtensionRecord, KeyKind, KeyMaterial, RecordState

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_rsa_private_key(key_bytes: bytes) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_der_private_key(key_bytes, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise CryptoFailureError(f"Failed to load private key: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoFailureError(
            f"Unsupported key type: {type(key).__name__}. Only RSA is supported."
        )
    return key


def _load_rsa_public_key(key_bytes: bytes) -> rsa.RSAPublicKey:
    try:
        key = serialization.load_der_public_key(key_bytes)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise CryptoFailureError(f"Failed to load public key: {exc}") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoFailureError(
            f"Unsupported key type: {type(key).__name__}. Only RSA is supported."
        )
    return key


def _require_kind(key: KeyMaterial, kind: KeyKind, action: str) -> None:
    if key.kind != kind:
        raise KindMismatchError(
            f"{action} requires a {kind.value} key, got a {key.kind.value} key"
        )


# ---------------------------------------------------------------------------
# ExtensionSigner
# ---------------------------------------------------------------------------


class ExtensionSigner:
    """Move records between the unsigned and signed states."""

    def sign(
        self,
        record: ExtensionRecord,
        private_key: KeyMaterial,
        payload: bytes,
    ) -> ExtensionRecord:
        """Sign *payload* with *private_key* and bind the result to *record*.

        The signature is RSA PKCS#1 v1.5 over the SHA-512 digest of *payload*,
        so signing the same payload with the same key is deterministic.

        Args:
            record: An unsigned record.
            private_key: The signer's private key; its author becomes the
                record's ``signature_author``.
            payload: The binary the record describes.

        Returns:
            A new, signed copy of *record*.  *record* itself is unchanged.

        Raises:
            KindMismatchError: if *private_key* is a public key.
            AlreadySignedError: if *record* is already signed.
            FieldTooLongError: if the key author does not fit the record.
            FieldEncodingError: if the key author is not usable as a signer.
            CryptoFailureError: if the key cannot produce a record signature.
        """
        _require_kind(private_key, KeyKind.private, "signing")
        if record.state is RecordState.signed:
            raise AlreadySignedError(
                f"record '{record.name}' is already signed by "
                f"'{record.signature_author}'"
            )

        check_text_field("signature_author", private_key.author, SIGNATURE_AUTHOR_SIZE)
        if private_key.author == NOT_SIGNED:
            raise FieldEncodingError(
                "signature_author", f"'{NOT_SIGNED}' is reserved for unsigned records"
            )

        rsa_key = _load_rsa_private_key(private_key.key_bytes)
        try:
            raw_sig = rsa_key.sign(bytes(payload), padding.PKCS1v15(), hashes.SHA512())
        except ValueError as exc:
            raise CryptoFailureError(f"Signing failed: {exc}") from exc
        if len(raw_sig) != SIGNATURE_SIZE:
            raise CryptoFailureError(
                f"{rsa_key.key_size}-bit key produced a {len(raw_sig)}-byte "
                f"signature; the record holds exactly {SIGNATURE_SIZE} bytes "
                f"({SIGNATURE_SIZE * 8}-bit keys)"
            )

        return record.model_copy(
            update={"signature_author": private_key.author, "signature": raw_sig}
        )

    def unsign(self, record: ExtensionRecord) -> ExtensionRecord:
        """Return an unsigned copy of *record*, discarding its signature.

        Raises:
            NotSignedError: if *record* is not signed.
        """
        if record.state is RecordState.unsigned:
            raise NotSignedError(f"record '{record.name}' is not signed")
        return record.model_copy(
            update={"signature_author": NOT_SIGNED, "signature": bytes(SIGNATURE_SIZE)}
        )


# ---------------------------------------------------------------------------
# ExtensionVerifier
# ---------------------------------------------------------------------------


class ExtensionVerifier:
    """Check signed records against a public key and payload."""

    def verify(
        self,
        record: ExtensionRecord,
        public_key: KeyMaterial,
        payload: bytes,
    ) -> bool:
        """Return True iff *public_key* vouches for *payload* under *record*.

        Both the declared signer (``signature_author == public_key.author``)
        and the RSA signature must match.  A mismatch in either returns False;
        only structural problems raise.

        Raises:
            KindMismatchError: if *public_key* is a private key.
            NotSignedError: if *record* is not signed.
            CryptoFailureError: if the public key bytes cannot be loaded.
        """
        _require_kind(public_key, KeyKind.public, "verification")
        if record.state is RecordState.unsigned:
            raise NotSignedError(f"record '{record.name}' is not signed")

        rsa_key = _load_rsa_public_key(public_key.key_bytes)
        if record.signature_author != public_key.author:
            return False
        try:
            rsa_key.verify(
                record.signature, bytes(payload), padding.PKCS1v15(), hashes.SHA512()
            )
        except InvalidSignature:
            return False
        return True


__all__ = [
    "ExtensionSigner",
    "ExtensionVerifier",
]
