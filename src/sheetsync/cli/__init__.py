"""sheetsync command-line interface."""

from sheetsync.cli.app import app

__all__ = ["app"]
