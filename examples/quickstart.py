"""aumai-extseal quickstart: working demonstrations of the main features.

Run this file directly to verify your installation:

    python examples/quickstart.py

Each demo function is self-contained and works inside a temporary directory
that is removed afterwards.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from aumai_extseal import (
    DirectoryKeySource,
    ExtensionRecord,
    ExtensionSigner,
    ExtensionVerifier,
    KeyManager,
    NotSignedError,
    decode_record,
    encode_record,
)
from aumai_extseal.files import (
    extract_extension,
    pack_extension,
    save_information,
    sign_and_checkout,
    verify_extension,
)


# ---------------------------------------------------------------------------
# Demo 1: in-memory sign and verify
# ---------------------------------------------------------------------------

def demo_sign_and_verify() -> None:
    """Sign a record against a payload and verify it without touching disk."""

    print("\n=== Demo 1: Sign & Verify ===")

    km = KeyManager()
    private_key, public_key = km.generate_keypair("Alice")
    print(f"  Generated {private_key.kind.value}/{public_key.kind.value} keys "
          f"for '{public_key.author}'")

    record = ExtensionRecord(name="Demo", author="Alice", version="1.2.3")
    payload = bytes([1, 2, 3, 4])

    signed = ExtensionSigner().sign(record, private_key, payload)
    print(f"  Record state after signing: {signed.state.value}")

    # The encoded record is always the same size
    encoded = encode_record(signed)
    assert decode_record(encoded) == signed
    print(f"  Encoded record: {len(encoded)} bytes")

    verifier = ExtensionVerifier()
    assert verifier.verify(signed, public_key, payload)
    print("  Original payload: VALID")

    assert not verifier.verify(signed, public_key, bytes([1, 2, 3, 5]))
    print("  Modified payload: INVALID (expected)")

    print("  Demo 1 passed.")


# ---------------------------------------------------------------------------
# Demo 2: information files and extension containers
# ---------------------------------------------------------------------------

def demo_extension_files() -> None:
    """Walk an extension through create, sign, pack, verify and extract."""

    print("\n=== Demo 2: Extension Files ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)

        km = KeyManager()
        private_key, public_key = km.generate_keypair("Alice")
        private_path, public_path = km.save_keypair(
            private_key, public_key, tmp / "keys"
        )
        print(f"  Keys written to: {private_path.name}, {public_path.name}")

        binary = tmp / "Demo.dll"
        binary.write_bytes(b"\x4d\x5a" + b"\x00" * 510)

        record = ExtensionRecord(
            name="Demo",
            author="Alice",
            description="Quickstart extension",
            version="0.1.0",
        )
        unsigned_path = save_information(record, tmp)
        print(f"  Unsigned information file: {unsigned_path.name}")

        signed_path = sign_and_checkout(
            unsigned_path, km.load_private_key(private_path), binary
        )
        print(f"  Signed information file:   {signed_path.name}")

        container = pack_extension(signed_path, binary)
        print(f"  Extension container: {container.name} "
              f"({container.stat().st_size:,} bytes)")

        valid = verify_extension(container, km.load_public_key(public_path))
        print(f"  Signature valid: {valid}")
        assert valid

        info_file, binary_file = extract_extension(container, tmp / "extracted")
        assert binary_file.read_bytes() == binary.read_bytes()
        print(f"  Extracted: {info_file.name}, {binary_file.name}")

        print("  Demo 2 passed.")


# ---------------------------------------------------------------------------
# Demo 3: key directory lookup and unsigned records
# ---------------------------------------------------------------------------

def demo_key_directory() -> None:
    """Look up public keys by author and show how unsigned records are refused."""

    print("\n=== Demo 3: Key Directory ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        km = KeyManager()
        source = DirectoryKeySource(tmpdir, key_manager=km)

        for author in ("Alice", "Bob"):
            _, public_key = km.generate_keypair(author)
            km.save_key(public_key, source.public_key_path(author))
        print(f"  Known authors: {source.list_identities()}")

        private_key, _ = km.generate_keypair("Alice")
        record = ExtensionRecord(name="Demo", author="Alice")
        payload = b"payload"

        try:
            ExtensionVerifier().verify(record, source.load_public_key("Alice"), payload)
        except NotSignedError as exc:
            print(f"  Unsigned record refused: {exc}")

        signed = ExtensionSigner().sign(record, private_key, payload)
        bob = source.load_public_key("Bob")
        print(f"  Bob's key accepts Alice's record: "
              f"{ExtensionVerifier().verify(signed, bob, payload)}  (expected False)")

        print("  Demo 3 passed.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Run all demos in sequence."""
    print("aumai-extseal quickstart demos")
    print("=" * 45)

    demo_sign_and_verify()
    demo_extension_files()
    demo_key_directory()

    print("\n" + "=" * 45)
    print("All demos completed successfully.")


if __name__ == "__main__":
    main()
