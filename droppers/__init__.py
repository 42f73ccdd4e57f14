"""Droppers: a marketplace API connecting vendors with delivery partners."""

__version__ = "1.0.0"
