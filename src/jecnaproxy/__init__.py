"""Transparent mirroring reverse proxy."""

__version__ = "0.1.0"
