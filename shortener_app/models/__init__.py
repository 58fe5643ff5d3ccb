"""
Data models for URL shortener.

A Mapping is stored as a JSON document in the key-value store, once under
its URL key and once under its short code key.
"""

from .mapping import Mapping

__all__ = ["Mapping"]
