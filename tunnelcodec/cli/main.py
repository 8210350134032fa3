"""Command line interface for tunnelcodec.

Provides commands to:
- list the supported cipher methods
- encrypt or decrypt a byte stream from stdin to stdout
- show the effective configuration
"""

from __future__ import annotations

import binascii
import json
import logging

import click
from rich.console import Console
from rich.table import Table

from tunnelcodec import __version__
from tunnelcodec.config.config import ConfigManager, init_config
from tunnelcodec.models import LogLevel
from tunnelcodec.security.ciphers.catalog import lookup, supported_ciphers
from tunnelcodec.security.codec import Direction, StreamCodec
from tunnelcodec.utils.exceptions import TunnelCodecError
from tunnelcodec.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _get_config_manager(ctx: click.Context) -> ConfigManager:
    config_manager = ctx.obj.get("config_manager") if ctx.obj else None
    if config_manager is None:
        msg = "Configuration not loaded"
        raise click.ClickException(msg)
    return config_manager


def _parse_iv(iv_hex: str) -> bytes:
    try:
        return binascii.unhexlify(iv_hex.strip())
    except (binascii.Error, ValueError):
        msg = f"IV must be hex encoded, got {iv_hex!r}"
        raise click.BadParameter(msg, param_hint="--iv") from None


def _run_codec(
    ctx: click.Context,
    direction: Direction,
    method: str | None,
    password: str | None,
    iv_hex: str,
) -> None:
    codec_config = _get_config_manager(ctx).config.codec
    method = method or codec_config.method
    password = password if password is not None else codec_config.password
    iv = _parse_iv(iv_hex)

    stdin = click.get_binary_stream("stdin")
    stdout = click.get_binary_stream("stdout")
    total = 0
    try:
        with StreamCodec(method, password, is_udp=codec_config.is_udp) as codec:
            codec.initialize(direction, iv)
            while True:
                chunk = stdin.read(CHUNK_SIZE)
                if not chunk:
                    break
                stdout.write(codec.update(direction, chunk))
                total += len(chunk)
    except TunnelCodecError as e:
        raise click.ClickException(str(e)) from e
    stdout.flush()
    logger.debug("%s %d bytes with %s", direction.value, total, method)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.version_option(__version__, prog_name="tunnelcodec")
@click.pass_context
def cli(ctx, config, verbose):
    """tunnelcodec - stream cipher codec for encrypted tunnels."""
    ctx.ensure_object(dict)
    try:
        config_manager = init_config(config)
    except TunnelCodecError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj["config_manager"] = config_manager
    ctx.obj["verbosity"] = verbose

    if verbose:
        observability = config_manager.config.observability.model_copy(
            update={"log_level": LogLevel.DEBUG if verbose > 1 else LogLevel.INFO}
        )
        setup_logging(observability)


@cli.command("ciphers")
@click.option("--plain", is_flag=True, help="Print one method name per line")
def ciphers(plain: bool):
    """List the supported cipher methods."""
    if plain:
        for name in supported_ciphers():
            click.echo(name)
        return

    table = Table(title="Supported cipher methods")
    table.add_column("Method", style="cyan")
    table.add_column("Native cipher")
    table.add_column("Family")
    table.add_column("Key bytes", justify="right")
    table.add_column("IV bytes", justify="right")
    for name in supported_ciphers():
        spec = lookup(name)
        table.add_row(
            spec.name,
            spec.native_name,
            spec.family.value,
            str(spec.key_len),
            str(spec.iv_len),
        )
    Console().print(table)


@cli.command("encrypt")
@click.option("--iv", "iv_hex", required=True, help="Hex encoded IV for this stream")
@click.option("--method", "-m", default=None, help="Cipher method (default: config)")
@click.option("--password", "-p", default=None, help="Password (default: config)")
@click.pass_context
def encrypt(ctx, iv_hex: str, method: str | None, password: str | None):
    """Encrypt stdin to stdout."""
    _run_codec(ctx, Direction.ENCRYPT, method, password, iv_hex)


@cli.command("decrypt")
@click.option("--iv", "iv_hex", required=True, help="Hex encoded IV for this stream")
@click.option("--method", "-m", default=None, help="Cipher method (default: config)")
@click.option("--password", "-p", default=None, help="Password (default: config)")
@click.pass_context
def decrypt(ctx, iv_hex: str, method: str | None, password: str | None):
    """Decrypt stdin to stdout."""
    _run_codec(ctx, Direction.DECRYPT, method, password, iv_hex)


@cli.group()
def config():
    """Configuration commands."""


@config.command("show")
@click.option(
    "--format",
    "format_",
    type=click.Choice(["toml", "json"]),
    default="toml",
)
@click.option(
    "--section",
    type=str,
    default=None,
    help="Show a single section (e.g. codec)",
)
@click.pass_context
def show_config(ctx, format_: str, section: str | None):
    """Show the effective configuration with the password redacted."""
    config_manager = _get_config_manager(ctx)
    if section is None:
        click.echo(config_manager.export(format_))
        return

    data = json.loads(config_manager.export("json"))
    if section not in data:
        msg = f"Section not found: {section}"
        raise click.ClickException(msg)
    click.echo(json.dumps({section: data[section]}, indent=2))


def main() -> None:
    """Entry point for the ``tunnelcodec`` command."""
    cli(obj={})


if __name__ == "__main__":
    main()
