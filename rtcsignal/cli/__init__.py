"""Command-line interface for rtcsignal."""

from rtcsignal.cli.main import main

__all__ = ["main"]
