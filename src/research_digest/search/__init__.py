"""Web search backends."""

from .searxng import SearchError, SearxngClient

__all__ = ["SearchError", "SearxngClient"]
