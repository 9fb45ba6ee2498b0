#!/usr/bin/env python3
"""
Main entry point for the Typer-based dialhook CLI.

This delegates to the UI layer in dialhook.ui.cli to keep the
console script mapping stable.
"""

from dialhook.ui.cli import run as dialhook


if __name__ == "__main__":
    dialhook()
