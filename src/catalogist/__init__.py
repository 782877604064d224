"""Catalogist - resolve media files into a canonical episode catalog."""

from catalogist._version import __version__

__all__ = ["__version__"]
