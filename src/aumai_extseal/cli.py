"""CLI entry point for aumai-extseal."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import BaseModel

from aumai_extseal.constants import (
    DEFAULT_FORMAT_VERSION,
    EXTENSION_SUFFIX,
)
from aumai_extseal.core import ExtensionVerifier
from aumai_extseal.errors import ExtSealError, NotSignedError
from aumai_extseal.files import (
    extract_extension,
    pack_extension,
    read_record_file,
    save_information,
    sign_and_checkout,
    unpack_extension,
    unsign_and_checkout,
)
from aumai_extseal.keys import DirectoryKeySource, KeyManager
from aumai_extseal.models import ExtensionRecord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class CliConfig(BaseModel):
    """Settings shared by every subcommand, carried on the click context."""

    root: Path
    verbose: bool = False

    def resolve(self, path: str | Path) -> Path:
        """Resolve *path* against :attr:`root` unless it is absolute."""
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.root / candidate


pass_config = click.make_pass_decorator(CliConfig)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(exc: Exception) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


def _describe(record: ExtensionRecord) -> None:
    click.echo(f"Name         : {record.name}")
    click.echo(f"Version      : {record.version}")
    click.echo(f"Author       : {record.author}")
    click.echo(f"Format       : {record.format_version}")
    click.echo(f"Description  : {record.description}")
    click.echo(f"Signer       : {record.signature_author}")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option()
@click.option(
    "--root",
    envvar="AUMAI_EXTSEAL_ROOT",
    default=".",
    show_default=True,
    metavar="DIR",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory that relative paths resolve against.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, root: Path, verbose: bool) -> None:
    """AumAI ExtSeal: signed binary extension records."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx.obj = CliConfig(root=root, verbose=verbose)
    logger.debug("Using root directory %s", root)


@main.command("keygen")
@click.option("--author", required=True, help="Key owner recorded as signer.")
@click.option(
    "--output",
    default="keys",
    show_default=True,
    metavar="DIR",
    help="Directory to write private.akyx and public.akey.",
)
@pass_config
def keygen_command(config: CliConfig, author: str, output: str) -> None:
    """Generate an RSA key pair for extension signing.

    Keys are 1024-bit RSA, the only size whose signatures fit the record.
    """
    km = KeyManager()
    out_dir = config.resolve(output)
    try:
        private_key, public_key = km.generate_keypair(author)
        private_path, public_path = km.save_keypair(private_key, public_key, out_dir)
    except (ExtSealError, OSError) as exc:
        _fail(exc)
    click.echo(f"Key pair for '{author}' written to '{out_dir}/'")
    click.echo(f"  Private: {private_path}")
    click.echo(f"  Public : {public_path}")


@main.command("create")
@click.option("--name", required=True, help="Extension name (also the file name).")
@click.option("--author", required=True, help="Extension author.")
@click.option("--description", default="", help="Free-form description.")
@click.option("--extension-version", default="0.0.0", show_default=True)
@click.option("--format-version", default=DEFAULT_FORMAT_VERSION, show_default=True)
@click.option(
    "--output-dir",
    default=".",
    show_default=True,
    metavar="DIR",
    help="Directory for the information file.",
)
@pass_config
def create_command(
    config: CliConfig,
    name: str,
    author: str,
    description: str,
    extension_version: str,
    format_version: str,
    output_dir: str,
) -> None:
    """Create an unsigned information file."""
    record = ExtensionRecord(
        format_version=format_version,
        name=name,
        author=author,
        description=description,
        version=extension_version,
    )
    try:
        path = save_information(record, config.resolve(output_dir))
    except (ExtSealError, OSError) as exc:
        _fail(exc)
    click.echo(f"Information file written to: {path}")


@main.command("sign")
@click.option("--info", required=True, metavar="PATH", help="Unsigned .ainf file.")
@click.option("--binary", required=True, metavar="PATH", help="Extension binary.")
@click.option("--key", required=True, metavar="PATH", help="Private .akyx key file.")
@pass_config
def sign_command(config: CliConfig, info: str, binary: str, key: str) -> None:
    """Sign an information file against its binary."""
    km = KeyManager()
    try:
        private_key = km.load_private_key(config.resolve(key))
        path = sign_and_checkout(
            config.resolve(info), private_key, config.resolve(binary)
        )
    except (ExtSealError, OSError) as exc:
        _fail(exc)
    click.echo(f"Signed information file written to: {path}")
    click.echo(f"  Signer   : {private_key.author}")


@main.command("unsign")
@click.option("--info", required=True, metavar="PATH", help="Signed .anfx file.")
@pass_config
def unsign_command(config: CliConfig, info: str) -> None:
    """Remove the signature from an information file."""
    try:
        path = unsign_and_checkout(config.resolve(info))
    except (ExtSealError, OSError) as exc:
        _fail(exc)
    click.echo(f"Unsigned information file written to: {path}")


@main.command("pack")
@click.option("--info", required=True, metavar="PATH", help="Information file.")
@click.option("--binary", required=True, metavar="PATH", help="Extension binary.")
@click.option(
    "--output",
    default=None,
    metavar="PATH",
    help="Output container (default: <info dir>/<name>.aext).",
)
@pass_config
def pack_command(config: CliConfig, info: str, binary: str, output: str | None) -> None:
    """Pack an information file and a binary into an extension file."""
    try:
        path = pack_extension(
            config.resolve(info),
            config.resolve(binary),
            config.resolve(output) if output else None,
        )
    except (ExtSealError, OSError) as exc:
        _fail(exc)
    click.echo(f"Extension written to: {path}")


@main.command("unpack")
@click.option("--extension", required=True, metavar="PATH", help="Extension file.")
@click.option(
    "--output-dir",
    default=".",
    show_default=True,
    metavar="DIR",
    help="Directory for the extracted files.",
)
@pass_config
def unpack_command(config: CliConfig, extension: str, output_dir: str) -> None:
    """Split an extension file into its information file and binary."""
    try:
        info_path, binary_path = extract_extension(
            config.resolve(extension), config.resolve(output_dir)
        )
    except (ExtSealError, OSError) as exc:
        _fail(exc)
    click.echo(f"Information: {info_path}")
    click.echo(f"Binary     : {binary_path}")


@main.command("verify")
@click.option("--extension", required=True, metavar="PATH", help="Extension file.")
@click.option("--key", default=None, metavar="PATH", help="Public .akey key file.")
@click.option(
    "--key-dir",
    default=None,
    metavar="DIR",
    help="Directory of <author>.akey files; the signer's key is looked up here.",
)
@pass_config
def verify_command(
    config: CliConfig, extension: str, key: str | None, key_dir: str | None
) -> None:
    """Verify the signature of an extension file."""
    if (key is None) == (key_dir is None):
        raise click.UsageError("Pass exactly one of --key or --key-dir.")

    try:
        record, payload = unpack_extension(config.resolve(extension))
        if not record.is_signed:
            raise NotSignedError(f"'{record.name}' is not signed")
        if key is not None:
            public_key = KeyManager().load_public_key(config.resolve(key))
        else:
            source = DirectoryKeySource(config.resolve(key_dir))
            public_key = source.load_public_key(record.signature_author)
        valid = ExtensionVerifier().verify(record, public_key, payload)
    except (ExtSealError, OSError) as exc:
        _fail(exc)

    if valid:
        click.echo("Signature: VALID")
        click.echo(f"  Signer   : {record.signature_author}")
        click.echo(f"  Extension: {record.name} v{record.version}")
    else:
        click.echo(f"Signature: INVALID (not signed by '{public_key.author}')")
        sys.exit(2)


@main.command("inspect")
@click.option(
    "--file",
    "file_path",
    required=True,
    metavar="PATH",
    help="Information file (.ainf/.anfx) or extension file (.aext).",
)
@click.option("--json-output", is_flag=True, help="Emit raw JSON.")
@pass_config
def inspect_command(config: CliConfig, file_path: str, json_output: bool) -> None:
    """Display the record stored in an information or extension file."""
    path = config.resolve(file_path)
    payload_size: int | None = None
    try:
        if path.suffix == EXTENSION_SUFFIX:
            record, payload = unpack_extension(path)
            payload_size = len(payload)
        else:
            record = read_record_file(path)
        state = record.state
    except (ExtSealError, OSError) as exc:
        _fail(exc)

    if json_output:
        click.echo(record.model_dump_json(indent=2))
        return

    _describe(record)
    click.echo(f"State        : {state.value}")
    if payload_size is not None:
        click.echo(f"Payload      : {payload_size:,} bytes")


if __name__ == "__main__":
    main()
