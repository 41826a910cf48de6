"""Ads library: hashtag metadata ingestion and clip-level video similarity."""

__version__ = "0.1.0"
