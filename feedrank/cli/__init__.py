"""Command line interface for the ranking engine."""

from feedrank.cli.ranking import cli


__all__ = ["cli"]
