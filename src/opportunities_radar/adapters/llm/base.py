"""Shared HTTP plumbing for chat-style summarization providers."""

import asyncio
import json
import re
from abc import abstractmethod
from typing import Any

import httpx

from opportunities_radar.config import Settings
from opportunities_radar.core.entities import Source, SummaryResult
from opportunities_radar.core.errors import SummarizationError
from opportunities_radar.core.interfaces import SummaryProvider

MAX_BULLETS = 4

PROMPT_TEMPLATE = """You are summarizing updates from "{name}" ({category}).

New content added:
{changes}

Provide a JSON response with:
- title: A concise title (max 80 chars)
- bullets: 2-4 key points as an array
- action: Optional recommended action (e.g., "Apply", "Vote", "Review")

Respond ONLY with valid JSON, no markdown."""


class ChatProvider(SummaryProvider):
    """Base class for providers reached over a JSON HTTP API.

    Subclasses describe the request and how to read the reply text; retries,
    rate limiting and reply parsing live here.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.max_tokens = settings.llm.max_tokens
        self.temperature = settings.llm.temperature
        self.timeout = settings.llm.timeout
        self.max_retries = settings.llm.max_retries
        self.initial_retry_delay = settings.llm.initial_retry_delay
        self.request_delay = settings.llm.request_delay
        self._last_request_time = 0.0

    @property
    @abstractmethod
    def api_key(self) -> str:
        pass

    @abstractmethod
    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return (url, headers, json body) for a prompt."""
        pass

    @abstractmethod
    def _response_text(self, data: dict[str, Any]) -> str:
        """Extract the reply text from a decoded API response."""
        pass

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_prompt(self, source: Source, sections: list[str]) -> str:
        return PROMPT_TEMPLATE.format(
            name=source.name,
            category=source.category.value,
            changes="\n\n".join(sections),
        )

    async def summarize(self, source: Source, sections: list[str]) -> SummaryResult:
        """Ask the provider for a structured summary of the added sections."""
        if not self.is_configured():
            raise SummarizationError(self.name, "API key not set")

        response = await self._call_api(self.build_prompt(source, sections))
        return self._parse_summary(response)

    async def _call_api(self, prompt: str) -> str:
        """Call the API with retry logic and rate limiting."""
        # Rate limiting: ensure minimum delay between requests
        current_time = asyncio.get_running_loop().time()
        time_since_last_request = current_time - self._last_request_time
        if time_since_last_request < self.request_delay:
            await asyncio.sleep(self.request_delay - time_since_last_request)

        url, headers, body = self._build_request(prompt)
        last_exception: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, headers=headers, json=body)
                    self._last_request_time = asyncio.get_running_loop().time()

                    if response.status_code == 200:
                        return self._response_text(response.json())

                    # Rate limit - retry with backoff
                    if response.status_code == 429:
                        retry_after = self._get_retry_delay(response, attempt)
                        print(f"⏳ Rate limit hit, retrying after {retry_after:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                        last_exception = SummarizationError(self.name, "rate limited")
                        await asyncio.sleep(retry_after)
                        continue

                    # Server errors - retry with backoff
                    if response.status_code >= 500:
                        retry_delay = self.initial_retry_delay * (2 ** attempt)
                        print(f"⚠️  Server error {response.status_code}, retrying after {retry_delay:.1f}s")
                        last_exception = SummarizationError(self.name, f"API error: {response.status_code}")
                        await asyncio.sleep(retry_delay)
                        continue

                    # Other errors - fail immediately
                    raise SummarizationError(self.name, f"API error: {response.status_code}")

            except httpx.RequestError as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    retry_delay = self.initial_retry_delay * (2 ** attempt)
                    print(f"⚠️  Network error, retrying after {retry_delay:.1f}s")
                    await asyncio.sleep(retry_delay)
                    continue
                raise SummarizationError(self.name, f"network error: {e}") from e

        if last_exception:
            raise SummarizationError(self.name, str(last_exception))
        raise SummarizationError(self.name, "failed to call API after all retries")

    def _get_retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Calculate retry delay from response headers or use exponential backoff."""
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass

        return self.initial_retry_delay * (2 ** attempt)

    def _parse_summary(self, response: str) -> SummaryResult:
        """Validate the reply as a summary object."""
        try:
            data = json.loads(self._extract_json(response))
        except json.JSONDecodeError as e:
            raise SummarizationError(self.name, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SummarizationError(self.name, "expected a JSON object")

        title = data.get("title")
        bullets = data.get("bullets")
        action = data.get("action")

        if not isinstance(title, str) or not title.strip():
            raise SummarizationError(self.name, "missing title")
        if not isinstance(bullets, list) or not all(isinstance(b, str) for b in bullets):
            raise SummarizationError(self.name, "bullets must be a list of strings")
        if action is not None and not isinstance(action, str):
            raise SummarizationError(self.name, "action must be a string")

        return SummaryResult(
            title=title.strip(),
            bullets=[b.strip() for b in bullets if b.strip()][:MAX_BULLETS],
            action=action.strip() if action and action.strip() else None,
        )

    def _fix_json(self, text: str) -> str:
        """Try to fix common JSON issues."""
        # Remove trailing commas before } or ]
        return re.sub(r",(\s*[}\]])", r"\1", text)

    def _extract_json(self, text: str) -> str:
        """Extract a JSON object from a markdown code block or raw text."""
        # Strategy 1: JSON in a markdown code block
        code_block_match = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
        if code_block_match:
            return self._fix_json(code_block_match.group(1).strip())

        # Strategy 2: an object carrying the required title field
        json_with_fields = re.search(r'\{[^{}]*"title"\s*:[^{}]*\}', text, re.DOTALL)
        if json_with_fields:
            candidate = self._fix_json(json_with_fields.group(0))
            try:
                json.loads(candidate)
                return candidate
            except json.JSONDecodeError:
                pass

        # Strategy 3: any JSON object
        json_object_match = re.search(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}", text, re.DOTALL)
        if json_object_match:
            candidate = self._fix_json(json_object_match.group(0))
            try:
                json.loads(candidate)
                return candidate
            except json.JSONDecodeError:
                pass

        # Strategy 4: return as is (last resort)
        return self._fix_json(text.strip())
