"""Page download."""

from .http_fetcher import PageFetcher

__all__ = ["PageFetcher"]
