"""Summarization providers."""

from opportunities_radar.adapters.llm.anthropic_client import AnthropicProvider
from opportunities_radar.adapters.llm.base import ChatProvider
from opportunities_radar.adapters.llm.openai_client import OpenAIProvider
from opportunities_radar.config import Settings


def build_providers(settings: Settings) -> list[ChatProvider]:
    """Providers in selection order; the first configured one is used."""
    return [AnthropicProvider(settings), OpenAIProvider(settings)]


__all__ = ["AnthropicProvider", "ChatProvider", "OpenAIProvider", "build_providers"]
