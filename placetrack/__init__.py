"""Listing performance tracking: rankings, reviews and competitors over time."""

__version__ = "0.1.0"
