"""OpenAI Chat Completions summarization provider."""

from typing import Any

from opportunities_radar.adapters.llm.base import ChatProvider

SYSTEM_PROMPT = "You summarize content updates into structured JSON. Respond only with valid JSON."


class OpenAIProvider(ChatProvider):
    """GPT chat completions summarizer."""

    name = "openai"
    base_url = "https://api.openai.com/v1"

    @property
    def api_key(self) -> str:
        return self.settings.openai_api_key

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "content-type": "application/json",
        }
        body = {
            "model": self.settings.openai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        return f"{self.base_url}/chat/completions", headers, body

    def _response_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]
