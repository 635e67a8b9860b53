"""Concurrent page-title fetcher for batches of URLs."""

__version__ = "0.1.0"
