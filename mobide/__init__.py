"""Mobide - browser terminals backed by one container per session."""

__version__ = "0.1.0"
