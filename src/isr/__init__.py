"""Intermediate Symbol Representation: normalized kernel type and symbol profiles."""

__version__ = "0.1.0"
