"""
Terminal rendering for the dialhook CLI.
Buffers are shown the way the host-side test clients print them:
the raw header, the parsed count, then one row per record.
"""

from typing import Optional, Union

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dialhook.core.codec import (
    HEADER_SIZE,
    KEY_SIZE,
    PAIR_SIZE,
    VALUE_SIZE,
    parse_count,
    read_fixed_field,
)

BytesLike = Union[bytes, bytearray, memoryview]


def buffer_table(buffer: BytesLike, label: str) -> Table:
    """
    Build a table describing a parameter buffer.

    Records that would run past the end of the buffer are not shown, so
    this never fails on short or malformed input.
    """
    data = bytes(buffer)
    table = Table(title=f"{label} ({len(data)} bytes)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    if len(data) < HEADER_SIZE:
        table.caption = "Buffer shorter than its header"
        return table

    count = parse_count(data[:HEADER_SIZE])
    header = data[:HEADER_SIZE].decode("latin-1")
    table.caption = escape(f"Header {header!r}, parsed count {count}")

    for i in range(min(count, 100)):
        key_offset = HEADER_SIZE + i * PAIR_SIZE
        if key_offset + PAIR_SIZE > len(data):
            table.caption += f"; records from #{i + 1} on are missing"
            break
        key = read_fixed_field(data[key_offset:key_offset + KEY_SIZE])
        value_offset = key_offset + KEY_SIZE
        value = _display(data[value_offset:value_offset + VALUE_SIZE])
        table.add_row(str(i + 1), escape(key), escape(value))

    return table


def _display(field: bytes) -> str:
    """Field text for humans: UTF-8 where possible, escaped otherwise."""
    end = field.find(b"\0")
    raw = field if end == -1 else field[:end]
    return raw.decode("utf-8", errors="backslashreplace")


class UIManager:
    """Manages colored terminal output for dialhook."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def success(self, message: str) -> None:
        self.console.print(f"[green]{escape(message)}[/green]")

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]{escape(message)}[/bold red]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]{escape(message)}[/blue]")

    def dim(self, text: str) -> None:
        self.console.print(f"[dim]{escape(text)}[/dim]")

    def buffer(self, buffer: BytesLike, label: str) -> None:
        self.console.print(buffer_table(buffer, label))
