"""Resolve local OneDrive files to their remote drive items and version history."""

__version__ = "0.1.0"
