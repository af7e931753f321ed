"""crypto-pulse command line interface."""

from cryptopulse.cli.app import app

__all__ = ["app"]
