"""shipwright command-line interface."""

from shipwright.cli.app import app

__all__ = ["app"]
