"""Main CLI entry point - stands in for the host application when testing a backend."""

import dataclasses
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer

from dialhook import attach, detach
from dialhook.core.codec import OUTBOUND_SIZE, RESPONSE_KEY, control_flag, decode, encode_parameters
from dialhook.core.configs import RequestConfig, get_request_config, load_raw_config
from dialhook.core.entry import process
from dialhook.core.errors import DialhookError
from dialhook.ui.output import UIManager

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="dialhook - forward dialer parameter buffers to an HTTP backend.",
)

ui = UIManager()


# ============================================================================
# Shared Setup
# ============================================================================

def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _parse_params(pairs: List[str]) -> Dict[str, str]:
    """Turn KEY=VALUE strings into an ordered mapping. Exits on malformed input."""
    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            typer.echo(f"Invalid parameter '{pair}', expected KEY=VALUE", err=True)
            raise typer.Exit(2)
        params[key] = value
    return params


def _load_config(config_path: Optional[Path], **overrides) -> RequestConfig:
    """Load config from file/env, then apply command-line overrides. Exits on error."""
    try:
        config = get_request_config(load_raw_config(config_path))
    except ValueError as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        typer.echo("Run 'dialhook settings init' to set up configuration", err=True)
        raise typer.Exit(1)

    changes = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(config, **changes)


# ============================================================================
# Commands
# ============================================================================

@app.command()
def call(
    param: List[str] = typer.Option([], "--param", "-p", help="Parameter as KEY=VALUE (repeatable)"),
    resp: bool = typer.Option(False, "--resp", help=f"Add {RESPONSE_KEY}=yes to echo the response"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Backend URL"),
    timeout: Optional[int] = typer.Option(None, "--timeout", min=1, help="Request timeout in seconds"),
    connect_timeout: Optional[int] = typer.Option(None, "--connect-timeout", min=1, help="Connect timeout in seconds"),
    insecure: bool = typer.Option(False, "--insecure", "-k", help="Skip TLS certificate verification"),
    ca_file: Optional[str] = typer.Option(None, "--ca-file", help="CA bundle to verify against"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file to read"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show buffers and debug logging"),
) -> None:
    """
    Build an inbound buffer and run it through the entry point.

    Example: dialhook call -p Endpoint=getinfo -p ID=12345 --resp
    """
    _configure_logging(verbose)

    params = _parse_params(param)
    if resp:
        params[RESPONSE_KEY] = "yes"

    config = _load_config(
        config_path,
        base_url=base_url,
        timeout=timeout,
        connect_timeout=connect_timeout,
        verify_ssl=False if insecure else None,
        ssl_cert_file=ca_file,
    )

    try:
        in_buffer = encode_parameters(params)
    except DialhookError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if verbose:
        ui.buffer(in_buffer, "Input Buffer")

    out_buffer = bytearray(OUTBOUND_SIZE)
    attach()
    try:
        code, message = process(in_buffer, out_buffer, config)
    finally:
        detach()

    if code == 0:
        ui.success(f"Function returned: {code} (success)")
    else:
        ui.error(f"Function returned: {code} (failure)")
        ui.error(f"Error message: {message}")

    if control_flag(decode(in_buffer)):
        ui.buffer(out_buffer, "Output Buffer")
    elif verbose:
        ui.dim(f"No output expected ({RESPONSE_KEY}=yes not in input)")

    raise typer.Exit(code)


@app.command("decode")
def decode_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding a raw inbound buffer"),
    hex_input: bool = typer.Option(False, "--hex", help="File contains hex text instead of raw bytes"),
) -> None:
    """
    Decode a captured inbound buffer and list its parameters.

    Example: dialhook decode capture.bin
    """
    data = path.read_bytes()
    if hex_input:
        try:
            data = bytes.fromhex(data.decode("ascii"))
        except ValueError as e:
            typer.echo(f"Invalid hex input: {e}", err=True)
            raise typer.Exit(1)

    try:
        params = decode(data)
    except DialhookError as e:
        ui.buffer(data, "Input Buffer")
        ui.error(str(e))
        raise typer.Exit(1)

    ui.buffer(data, "Input Buffer")
    ui.info(f"{len(params)} parameter(s), echo requested: {control_flag(params)}")


@app.command()
def settings(
    action: str = typer.Argument(..., help="Action: init or show"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file to use"),
) -> None:
    """
    Manage dialhook configuration.

    Actions:
        init - Interactive configuration wizard
        show - Display the effective configuration
    """
    from dialhook.ui.config_commands import handle_config
    handle_config(action, config_path)


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
