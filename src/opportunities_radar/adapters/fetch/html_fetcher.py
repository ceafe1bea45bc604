"""HTTP fetcher turning source pages into extracted text."""

import httpx

from opportunities_radar.config import FetchConfig
from opportunities_radar.core import ContentFetcher, FetchResult, Source
from opportunities_radar.core.errors import FetchError
from opportunities_radar.core.extraction import extract_content, hash_content


class HTMLFetcher(ContentFetcher):
    """Fetch a source URL and extract its main content."""

    def __init__(self, config: FetchConfig | None = None) -> None:
        self.config = config or FetchConfig()
        self.headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

    async def fetch(self, source: Source) -> FetchResult:
        """Fetch, extract and fingerprint a source's content."""
        html = await self._get(source.url)
        content = extract_content(html, source.extractor)
        return FetchResult(content=content, content_hash=hash_content(content))

    async def _get(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=True,
            headers=self.headers,
        ) as client:
            try:
                response = await client.get(url)
            except httpx.RequestError as e:
                raise FetchError(url, reason=f"{type(e).__name__}: {e}") from e

            if not 200 <= response.status_code < 300:
                raise FetchError(url, status_code=response.status_code)

            return response.text
