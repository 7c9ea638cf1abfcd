"""Tests for aumai_extseal.keys: KeyManager and key sources."""

from __future__ import annotations

import base64
import os
import stat
import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from aumai_extseal.constants import DEFAULT_KEY_SIZE
from aumai_extseal.errors import (
    FieldEncodingError,
    FieldTooLongError,
    KeyFileError,
    KindMismatchError,
    MalformedKeyFileError,
)
from aumai_extseal.keys import DirectoryKeySource, KeyManager, KeySource
from aumai_extseal.models import KeyKind, KeyMaterial

# ===========================================================================
# generate_keypair
# ===========================================================================


class TestKeyManagerGenerate:
    def test_returns_private_then_public(
        self, alice_keypair: tuple[KeyMaterial, KeyMaterial]
    ) -> None:
        private_key, public_key = alice_keypair
        assert private_key.kind is KeyKind.private
        assert public_key.kind is KeyKind.public

    def test_both_halves_carry_author(
        self, alice_keypair: tuple[KeyMaterial, KeyMaterial]
    ) -> None:
        private_key, public_key = alice_keypair
        assert private_key.author == "Alice"
        assert public_key.author == "Alice"

    def test_private_bytes_are_pkcs1_der(
        self, alice_keypair: tuple[KeyMaterial, KeyMaterial]
    ) -> None:
        private_key, _ = alice_keypair
        key = serialization.load_der_private_key(private_key.key_bytes, password=None)
        assert isinstance(key, rsa.RSAPrivateKey)
        assert key.key_size == DEFAULT_KEY_SIZE

    def test_public_bytes_are_pkcs1_der(
        self, alice_keypair: tuple[KeyMaterial, KeyMaterial]
    ) -> None:
        _, public_key = alice_keypair
        key = serialization.load_der_public_key(public_key.key_bytes)
        assert isinstance(key, rsa.RSAPublicKey)
        reexported = key.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.PKCS1
        )
        assert reexported == public_key.key_bytes

    def test_halves_are_mathematically_matched(
        self, alice_keypair: tuple[KeyMaterial, KeyMaterial]
    ) -> None:
        private_key, public_key = alice_keypair
        loaded = serialization.load_der_private_key(
            private_key.key_bytes, password=None
        )
        derived = loaded.public_key().public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.PKCS1
        )
        assert derived == public_key.key_bytes

    def test_each_call_generates_distinct_key(self, key_manager: KeyManager) -> None:
        priv1, _ = key_manager.generate_keypair("Carol")
        priv2, _ = key_manager.generate_keypair("Carol")
        assert priv1.key_bytes != priv2.key_bytes

    def test_author_too_long_rejected(self, key_manager: KeyManager) -> None:
        with pytest.raises(FieldTooLongError):
            key_manager.generate_keypair("a" * 64)

    def test_non_ascii_author_rejected(self, key_manager: KeyManager) -> None:
        with pytest.raises(FieldEncodingError):
            key_manager.generate_keypair("Zoë")


# ===========================================================================
# dump_key / parse_key
# ===========================================================================


class TestKeyText:
    def test_dump_produces_two_base64_lines(
        self,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        _, public_key = alice_keypair
        text = key_manager.dump_key(public_key, KeyKind.public)
        lines = text.splitlines()
        assert len(lines) == 2
        assert base64.b64decode(lines[0]) == b"Alice"
        assert base64.b64decode(lines[1]) == public_key.key_bytes

    def test_dump_kind_mismatch(
        self,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        private_key, public_key = alice_keypair
        with pytest.raises(KindMismatchError):
            key_manager.dump_key(private_key, KeyKind.public)
        with pytest.raises(KindMismatchError):
            key_manager.dump_key(public_key, KeyKind.private)

    def test_parse_restores_key(
        self,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        private_key, _ = alice_keypair
        text = key_manager.dump_key(private_key, KeyKind.private)
        assert key_manager.parse_key(text, KeyKind.private) == private_key

    def test_parse_tags_requested_kind(self, key_manager: KeyManager) -> None:
        text = "QWxpY2U=\nAQID\n"
        key = key_manager.parse_key(text, KeyKind.public)
        assert key == KeyMaterial(author="Alice", key_bytes=b"\x01\x02\x03", kind="public")

    def test_parse_accepts_crlf(self, key_manager: KeyManager) -> None:
        key = key_manager.parse_key("QWxpY2U=\r\nAQID\r\n", KeyKind.private)
        assert key.author == "Alice"
        assert key.key_bytes == b"\x01\x02\x03"

    @pytest.mark.parametrize("text", ["", "QWxpY2U=", "QWxpY2U=\n"])
    def test_parse_fewer_than_two_lines(self, key_manager: KeyManager, text: str) -> None:
        with pytest.raises(MalformedKeyFileError):
            key_manager.parse_key(text, KeyKind.public)

    def test_parse_invalid_base64_author(self, key_manager: KeyManager) -> None:
        with pytest.raises(MalformedKeyFileError, match="author"):
            key_manager.parse_key("not base64!\nAQID\n", KeyKind.public)

    def test_parse_invalid_base64_key(self, key_manager: KeyManager) -> None:
        with pytest.raises(MalformedKeyFileError, match="key"):
            key_manager.parse_key("QWxpY2U=\n@@@@\n", KeyKind.public)

    def test_parse_empty_key_line(self, key_manager: KeyManager) -> None:
        with pytest.raises(MalformedKeyFileError):
            key_manager.parse_key("QWxpY2U=\n\n", KeyKind.public)

    def test_parse_non_ascii_author(self, key_manager: KeyManager) -> None:
        author_line = base64.b64encode("Zoë".encode("utf-8")).decode("ascii")
        with pytest.raises(MalformedKeyFileError):
            key_manager.parse_key(f"{author_line}\nAQID\n", KeyKind.public)

    def test_malformed_is_value_error(self, key_manager: KeyManager) -> None:
        with pytest.raises(ValueError):
            key_manager.parse_key("", KeyKind.public)


# ===========================================================================
# Files
# ===========================================================================


class TestKeyFiles:
    def test_kind_for_path(self) -> None:
        assert KeyManager.kind_for_path("x/public.akey") is KeyKind.public
        assert KeyManager.kind_for_path("x/private.akyx") is KeyKind.private

    def test_kind_for_unknown_suffix(self) -> None:
        with pytest.raises(KindMismatchError):
            KeyManager.kind_for_path("x/key.pem")

    def test_save_keypair_writes_both_files(
        self, saved_alice_keys: tuple[Path, Path]
    ) -> None:
        private_path, public_path = saved_alice_keys
        assert private_path.name == "private.akyx"
        assert public_path.name == "public.akey"
        assert private_path.exists()
        assert public_path.exists()

    def test_save_keypair_creates_nested_directory(
        self,
        tmp_path: Path,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        private_key, public_key = alice_keypair
        nested = tmp_path / "deep" / "nested" / "keys"
        key_manager.save_keypair(private_key, public_key, nested)
        assert (nested / "public.akey").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_private_key_file_mode(self, saved_alice_keys: tuple[Path, Path]) -> None:
        private_path, _ = saved_alice_keys
        assert stat.S_IMODE(os.stat(private_path).st_mode) == 0o600

    def test_load_round_trip(
        self,
        key_manager: KeyManager,
        saved_alice_keys: tuple[Path, Path],
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        private_path, public_path = saved_alice_keys
        private_key, public_key = alice_keypair
        assert key_manager.load_private_key(private_path) == private_key
        assert key_manager.load_public_key(str(public_path)) == public_key

    def test_load_public_from_private_file_rejected(
        self, key_manager: KeyManager, saved_alice_keys: tuple[Path, Path]
    ) -> None:
        private_path, _ = saved_alice_keys
        with pytest.raises(KindMismatchError):
            key_manager.load_public_key(private_path)

    def test_load_private_from_public_file_rejected(
        self, key_manager: KeyManager, saved_alice_keys: tuple[Path, Path]
    ) -> None:
        _, public_path = saved_alice_keys
        with pytest.raises(KindMismatchError):
            key_manager.load_private_key(public_path)

    def test_save_private_key_to_public_suffix_rejected(
        self,
        tmp_path: Path,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        private_key, _ = alice_keypair
        target = tmp_path / "leak.akey"
        with pytest.raises(KindMismatchError):
            key_manager.save_key(private_key, target)
        assert not target.exists()

    def test_load_missing_file_raises(self, key_manager: KeyManager) -> None:
        with pytest.raises(FileNotFoundError):
            key_manager.load_public_key("/nonexistent/path/public.akey")

    def test_load_truncated_file_raises(
        self, tmp_path: Path, key_manager: KeyManager
    ) -> None:
        target = tmp_path / "broken.akey"
        target.write_text("QWxpY2U=\n", encoding="ascii")
        with pytest.raises(MalformedKeyFileError):
            key_manager.load_public_key(target)

    def test_load_non_ascii_file_raises_malformed(
        self, tmp_path: Path, key_manager: KeyManager
    ) -> None:
        target = tmp_path / "garbled.akey"
        target.write_bytes(b"\xff\xfe\n\xff\n")
        with pytest.raises(MalformedKeyFileError):
            key_manager.load_public_key(target)


# ===========================================================================
# DirectoryKeySource
# ===========================================================================


class TestDirectoryKeySource:
    def _populate(
        self,
        root: Path,
        key_manager: KeyManager,
        keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        private_key, public_key = keypair
        root.mkdir(parents=True, exist_ok=True)
        key_manager.save_key(private_key, root / f"{private_key.author}.akyx")
        key_manager.save_key(public_key, root / f"{public_key.author}.akey")

    def test_satisfies_key_source_protocol(self, tmp_path: Path) -> None:
        assert isinstance(DirectoryKeySource(tmp_path), KeySource)

    def test_loads_keys_by_identity(
        self,
        tmp_path: Path,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        self._populate(tmp_path / "keys", key_manager, alice_keypair)
        source = DirectoryKeySource(tmp_path / "keys")
        private_key, public_key = alice_keypair
        assert source.load_public_key("Alice") == public_key
        assert source.load_private_key("Alice") == private_key

    def test_list_identities(
        self,
        tmp_path: Path,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
        bob_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        root = tmp_path / "keys"
        self._populate(root, key_manager, bob_keypair)
        self._populate(root, key_manager, alice_keypair)
        assert DirectoryKeySource(root).list_identities() == ["Alice", "Bob"]

    def test_list_identities_missing_root(self, tmp_path: Path) -> None:
        assert DirectoryKeySource(tmp_path / "absent").list_identities() == []

    def test_unknown_identity_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            DirectoryKeySource(tmp_path).load_public_key("Nobody")

    @pytest.mark.parametrize("identity", ["", ".", "..", "../evil", "a/b", "a\\b"])
    def test_unusable_identity_rejected(self, tmp_path: Path, identity: str) -> None:
        source = DirectoryKeySource(tmp_path)
        with pytest.raises(KeyFileError):
            source.public_key_path(identity)
        with pytest.raises(KeyFileError):
            source.private_key_path(identity)

    def test_identity_cannot_reach_outside_root(
        self,
        tmp_path: Path,
        key_manager: KeyManager,
        alice_keypair: tuple[KeyMaterial, KeyMaterial],
    ) -> None:
        outside = key_manager.save_key(alice_keypair[1], tmp_path / "evil.akey")
        (tmp_path / "trusted").mkdir()
        source = DirectoryKeySource(tmp_path / "trusted")
        assert outside.exists()
        with pytest.raises(KeyFileError):
            source.load_public_key("../evil")
