"""Tabage - age-bucket grouping for browser tabs."""

from tabage.__version__ import __version__

__all__ = ["__version__"]
