"""
Configuration Management Commands

Interactive configuration wizard for dialhook.
This module is lazy-loaded only when settings commands are used.
"""

import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from dialhook.core.configs import (
    ENV_OVERRIDES,
    RequestConfig,
    get_config_path,
    get_request_config,
    load_raw_config,
    save_config,
)

console = Console()


def handle_config(action: str, path: Optional[Path] = None) -> None:
    """
    Route to appropriate config action.

    Args:
        action: One of 'init' or 'show'
        path: Config file to use instead of the default location
    """
    actions = {
        "init": init_config,
        "show": show_config,
    }

    if action not in actions:
        console.print(f"[red]Unknown action: {action}[/red]")
        console.print("Available actions: init, show")
        raise SystemExit(1)

    actions[action](path)


def show_config(path: Optional[Path] = None) -> None:
    """Display the effective configuration and where each value comes from."""
    path = path or get_config_path()
    raw = load_raw_config(path)
    config = get_request_config(raw)

    table = Table(title="dialhook configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    for key, value in config.as_dict().items():
        if os.environ.get(ENV_OVERRIDES[key], "").strip():
            source = ENV_OVERRIDES[key]
        elif key in raw:
            source = "file"
        else:
            source = "default"
        table.add_row(key, str(value), source)

    console.print(table)
    state = "found" if path.exists() else "not found, using defaults"
    console.print(f"Config file: {path} ({state})")


def init_config(path: Optional[Path] = None) -> None:
    """
    Interactive configuration wizard.
    Works on both new and existing configurations.
    """
    path = path or get_config_path()
    console.print(Panel.fit("[bold blue]dialhook configuration[/bold blue]", title="Setup"))

    current = get_request_config(load_raw_config(path)) if path.exists() else RequestConfig()

    base_url = Prompt.ask("Backend URL", default=current.base_url)
    timeout = IntPrompt.ask("Request timeout (seconds)", default=current.timeout)
    connect_timeout = IntPrompt.ask(
        "Connect timeout (seconds)", default=current.connect_timeout
    )
    verify_ssl = Confirm.ask("Verify TLS certificates?", default=current.verify_ssl)
    ssl_cert_file = ""
    if verify_ssl:
        ssl_cert_file = Prompt.ask(
            "Custom CA bundle (leave empty for the default)",
            default=current.ssl_cert_file,
            show_default=bool(current.ssl_cert_file),
        )

    config = RequestConfig(
        base_url=base_url.strip(),
        timeout=max(1, timeout),
        connect_timeout=max(1, connect_timeout),
        verify_ssl=verify_ssl,
        ssl_cert_file=ssl_cert_file.strip(),
    )
    saved_to = save_config(config, path)

    console.print(
        Panel.fit(
            f"[green]Configuration saved![/green]\nLocation: {saved_to}",
            title="Success",
        )
    )
