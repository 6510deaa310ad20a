"""Command line interface for cinecache administration."""

from .typer_app import app

__all__ = ["app"]
