"""Exceptions raised by the radar pipeline."""

from typing import Optional


class RadarError(Exception):
    """Base class for pipeline errors."""


class FetchError(RadarError):
    """A source could not be fetched."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        detail = f"HTTP {status_code}" if status_code is not None else reason
        super().__init__(f"Failed to fetch {url}: {detail}")


class SummarizationError(RadarError):
    """An external summarization provider failed."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")
