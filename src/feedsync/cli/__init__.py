"""Command line interface."""

from feedsync.cli.main import cli


__all__ = ["cli"]
