"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from opportunities_radar.core.entities import Source


@dataclass
class LLMConfig:
    """Summarization provider settings."""
    anthropic_model: str = "claude-3-haiku-20240307"
    openai_model: str = "gpt-3.5-turbo"
    max_tokens: int = 500
    temperature: float = 0.3
    timeout: float = 60.0
    max_retries: int = 3
    initial_retry_delay: float = 2.0
    request_delay: float = 0.0


@dataclass
class FetchConfig:
    """Source fetching settings."""
    timeout: float = 30.0
    user_agent: str = (
        "Mozilla/5.0 (compatible; OpportunitiesRadar/1.0; +https://github.com/opportunities-radar)"
    )
    concurrency: int = 1


@dataclass
class PathsConfig:
    """Path settings."""
    data_dir: Path = Path("data")


DEFAULT_SOURCES: list[dict] = [
    {
        "name": "Base Grants",
        "kind": "html",
        "url": "https://paragraph.xyz/@grants.base.eth",
        "category": "grants",
        "extractor": "paragraph",
    },
    {
        "name": "Optimism Grants",
        "kind": "html",
        "url": "https://app.charmverse.io/op-grants",
        "category": "grants",
        "extractor": "charmverse",
    },
    {
        "name": "Base Blog",
        "kind": "html",
        "url": "https://base.org/blog",
        "category": "protocol",
        "extractor": "base-blog",
    },
    {
        "name": "Farcaster Blog",
        "kind": "html",
        "url": "https://www.farcaster.xyz/blog",
        "category": "ecosystem",
        "extractor": "farcaster-blog",
    },
    {
        "name": "Warpcast Updates",
        "kind": "html",
        "url": "https://warpcast.notion.site/Warpcast-Release-Notes-a2ae1e01e5a84bd39da4a3bf5bc53982",
        "category": "ecosystem",
        "extractor": "notion",
    },
    {
        "name": "Base Governance",
        "kind": "html",
        "url": "https://snapshot.org/#/basegovernance.eth",
        "category": "governance",
        "extractor": "snapshot",
    },
    {
        "name": "Optimism Forum",
        "kind": "html",
        "url": "https://gov.optimism.io/c/proposals/38",
        "category": "governance",
        "extractor": "discourse",
    },
    {
        "name": "Purple DAO",
        "kind": "html",
        "url": "https://purple.construction",
        "category": "grants",
        "extractor": "purple",
    },
]


def build_sources(definitions: list[dict]) -> list[Source]:
    """Create sources from config definitions, rejecting duplicate ids."""
    sources = [Source(**definition) for definition in definitions]

    seen: set[str] = set()
    for source in sources:
        if source.id in seen:
            raise ValueError(f"Duplicate source id: {source.id}")
        seen.add(source.id)

    return sources


@dataclass
class Settings:
    """Application settings."""

    # API keys (from environment only)
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    llm_model: Optional[str] = None

    # Config sections
    llm: LLMConfig = field(default_factory=LLMConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    sources: list[Source] = field(default_factory=lambda: build_sources(DEFAULT_SOURCES))

    @property
    def anthropic_model(self) -> str:
        return self.llm_model or self.llm.anthropic_model

    @property
    def openai_model(self) -> str:
        return self.llm_model or self.llm.openai_model

    @property
    def data_dir(self) -> Path:
        return self.paths.data_dir


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        llm_model=os.getenv("LLM_MODEL") or None,
    )

    if "llm" in config:
        for key, value in config["llm"].items():
            setattr(settings.llm, key, value)

    if "fetch" in config:
        for key, value in config["fetch"].items():
            setattr(settings.fetch, key, value)

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    if "sources" in config:
        settings.sources = build_sources(config["sources"])

    return settings
