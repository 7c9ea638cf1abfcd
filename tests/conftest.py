"""Shared test fixtures for aumai-extseal."""

from __future__ import annotations

from pathlib import Path

import pytest

from aumai_extseal.core import ExtensionSigner
from aumai_extseal.files import save_information
from aumai_extseal.keys import KeyManager
from aumai_extseal.models import ExtensionRecord, KeyMaterial

# ---------------------------------------------------------------------------
# Key-pair fixtures, one per author
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def key_manager() -> KeyManager:
    """A shared KeyManager instance (stateless, safe to share)."""
    return KeyManager()


@pytest.fixture(scope="session")
def alice_keypair(key_manager: KeyManager) -> tuple[KeyMaterial, KeyMaterial]:
    """(private, public) authored by Alice."""
    return key_manager.generate_keypair("Alice")


@pytest.fixture(scope="session")
def bob_keypair(key_manager: KeyManager) -> tuple[KeyMaterial, KeyMaterial]:
    """(private, public) authored by Bob."""
    return key_manager.generate_keypair("Bob")


# ---------------------------------------------------------------------------
# Record fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def payload() -> bytes:
    """A small binary standing in for a compiled extension."""
    return bytes(range(256)) * 4


@pytest.fixture()
def unsigned_record() -> ExtensionRecord:
    """A populated, unsigned ExtensionRecord."""
    return ExtensionRecord(
        format_version="AUMAI_EXTSEAL_V1.0.0",
        name="Demo",
        author="Alice",
        description="A demo extension used by the test-suite.",
        version="1.2.3",
    )


@pytest.fixture()
def signed_record(
    unsigned_record: ExtensionRecord,
    alice_keypair: tuple[KeyMaterial, KeyMaterial],
    payload: bytes,
) -> ExtensionRecord:
    """*unsigned_record* signed by Alice over *payload*."""
    private_key, _ = alice_keypair
    return ExtensionSigner().sign(unsigned_record, private_key, payload)


# ---------------------------------------------------------------------------
# On-disk fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def binary_file(tmp_path: Path, payload: bytes) -> Path:
    """*payload* written to tmp_path/Demo.dll."""
    path = tmp_path / "Demo.dll"
    path.write_bytes(payload)
    return path


@pytest.fixture()
def unsigned_info_file(tmp_path: Path, unsigned_record: ExtensionRecord) -> Path:
    """*unsigned_record* written to tmp_path/Demo.ainf."""
    return save_information(unsigned_record, tmp_path)


@pytest.fixture()
def saved_alice_keys(
    tmp_path: Path,
    alice_keypair: tuple[KeyMaterial, KeyMaterial],
    key_manager: KeyManager,
) -> tuple[Path, Path]:
    """Write Alice's key pair to tmp_path/keys; return (private, public) Paths."""
    private_key, public_key = alice_keypair
    return key_manager.save_keypair(private_key, public_key, tmp_path / "keys")
