"""Anthropic Messages API summarization provider."""

from typing import Any

from opportunities_radar.adapters.llm.base import ChatProvider


class AnthropicProvider(ChatProvider):
    """Claude API summarizer."""

    name = "anthropic"
    base_url = "https://api.anthropic.com/v1"

    @property
    def api_key(self) -> str:
        return self.settings.anthropic_api_key

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }
        body = {
            "model": self.settings.anthropic_model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [
                {"role": "user", "content": prompt}
            ],
        }
        return f"{self.base_url}/messages", headers, body

    def _response_text(self, data: dict[str, Any]) -> str:
        return data["content"][0]["text"]
