"""Sitegraft: turn a hierarchical HTML page export into a documentation site."""

__version__ = "0.1.0"
