"""Filestore — single-page file sharing backend."""

__version__ = "0.1.0"
