"""Threadsmith - suggestion reconciliation for a Twitter thread composer."""

__version__ = "1.0.0"
