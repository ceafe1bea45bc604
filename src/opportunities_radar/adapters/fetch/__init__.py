"""Source fetchers."""

from opportunities_radar.adapters.fetch.html_fetcher import HTMLFetcher

__all__ = ["HTMLFetcher"]
