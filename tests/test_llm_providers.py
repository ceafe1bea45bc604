"""Tests for the Anthropic and OpenAI summarization providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from opportunities_radar.adapters.llm import AnthropicProvider, OpenAIProvider, build_providers
from opportunities_radar.config import Settings
from opportunities_radar.core import Source, SummarizationError
from opportunities_radar.core.differ import generate_diff
from opportunities_radar.core.summarizer import summarize_changes

SUMMARY_JSON = '{"title": "Round 2 applications open", "bullets": ["Closes December 1, 2030", "Apply now"], "action": "Apply"}'


@pytest.fixture
def mock_settings() -> Settings:
    """Create settings with both credentials and fast retries."""
    settings = Settings(anthropic_api_key="test-key", openai_api_key="openai-key")
    settings.llm.max_retries = 3
    settings.llm.initial_retry_delay = 0.01
    return settings


def _response(status_code: int, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.json.return_value = payload or {}
    return response


def _client(*responses: MagicMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.post.side_effect = list(responses)
    return mock_client


@pytest.mark.asyncio
async def test_anthropic_summarize_success(mock_settings: Settings, grants_source: Source) -> None:
    """Test a successful Claude summary."""
    provider = AnthropicProvider(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _client(_response(200, {"content": [{"text": SUMMARY_JSON}]}))
        mock_client_class.return_value = mock_client

        result = await provider.summarize(grants_source, ["New: Applications for round 2 close December 1, 2030."])

    assert result.title == "Round 2 applications open"
    assert result.bullets == ["Closes December 1, 2030", "Apply now"]
    assert result.action == "Apply"

    url = mock_client.post.call_args.args[0]
    kwargs = mock_client.post.call_args.kwargs
    assert url == "https://api.anthropic.com/v1/messages"
    assert kwargs["headers"]["x-api-key"] == "test-key"
    assert kwargs["json"]["model"] == "claude-3-haiku-20240307"
    assert "Base Grants" in kwargs["json"]["messages"][0]["content"]
    assert "no markdown" in kwargs["json"]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_openai_summarize_success(mock_settings: Settings, grants_source: Source) -> None:
    provider = OpenAIProvider(mock_settings)
    payload = {"choices": [{"message": {"content": SUMMARY_JSON}}]}

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _client(_response(200, payload))
        mock_client_class.return_value = mock_client

        result = await provider.summarize(grants_source, ["Round 2 is open"])

    assert result.title == "Round 2 applications open"
    url = mock_client.post.call_args.args[0]
    kwargs = mock_client.post.call_args.kwargs
    assert url == "https://api.openai.com/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer openai-key"
    assert kwargs["json"]["messages"][0]["role"] == "system"


@pytest.mark.asyncio
async def test_retry_on_429(mock_settings: Settings, grants_source: Source) -> None:
    """Test retry logic on 429 error."""
    provider = AnthropicProvider(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _client(
            _response(429),
            _response(200, {"content": [{"text": SUMMARY_JSON}]}),
        )
        mock_client_class.return_value = mock_client

        result = await provider.summarize(grants_source, ["Round 2 is open"])

    assert result.title == "Round 2 applications open"
    assert mock_client.post.call_count == 2


@pytest.mark.asyncio
async def test_retries_exhausted_on_server_error(mock_settings: Settings, grants_source: Source) -> None:
    provider = AnthropicProvider(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _client(_response(503), _response(502), _response(500))
        mock_client_class.return_value = mock_client

        with pytest.raises(SummarizationError):
            await provider.summarize(grants_source, ["Round 2 is open"])

    assert mock_client.post.call_count == 3


@pytest.mark.asyncio
async def test_client_error_is_not_retried(mock_settings: Settings, grants_source: Source) -> None:
    provider = AnthropicProvider(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _client(_response(401))
        mock_client_class.return_value = mock_client

        with pytest.raises(SummarizationError, match="401"):
            await provider.summarize(grants_source, ["Round 2 is open"])

    assert mock_client.post.call_count == 1


@pytest.mark.asyncio
async def test_network_error_is_wrapped(mock_settings: Settings, grants_source: Source) -> None:
    provider = OpenAIProvider(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.side_effect = httpx.ConnectError("connection refused")
        mock_client_class.return_value = mock_client

        with pytest.raises(SummarizationError, match="network error"):
            await provider.summarize(grants_source, ["Round 2 is open"])

    assert mock_client.post.call_count == 3


@pytest.mark.asyncio
async def test_missing_key_raises(grants_source: Source) -> None:
    provider = AnthropicProvider(Settings())

    assert not provider.is_configured()
    with pytest.raises(SummarizationError, match="API key not set"):
        await provider.summarize(grants_source, ["Round 2 is open"])


@pytest.mark.asyncio
async def test_unparseable_reply_falls_back(mock_settings: Settings, grants_source: Source) -> None:
    """A prose reply makes the pipeline use the rule-based summary."""
    providers = build_providers(mock_settings)
    new = "Grant round 1 open. New: Applications for round 2 close December 1, 2030. Apply now."
    diff = generate_diff("Grant round 1 open.", new)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _client(_response(200, {"content": [{"text": "Sure! Here is a summary of the update."}]}))
        mock_client_class.return_value = mock_client

        result = await summarize_changes(grants_source, diff, providers)

    assert result.title == "New: Applications for round 2 close December 1, 2030."
    assert result.action == "Apply"
    # Only the first configured provider was tried
    assert mock_client.post.call_count == 1
    assert mock_client.post.call_args.args[0].startswith("https://api.anthropic.com")


def test_provider_order(mock_settings: Settings) -> None:
    providers = build_providers(mock_settings)
    assert [p.name for p in providers] == ["anthropic", "openai"]


def test_llm_model_override() -> None:
    settings = Settings(openai_api_key="openai-key", llm_model="gpt-4o-mini")
    _, _, body = OpenAIProvider(settings)._build_request("prompt")
    assert body["model"] == "gpt-4o-mini"
