"""Persistence adapters."""

from opportunities_radar.adapters.storage.yaml_store import YamlRadarStore

__all__ = ["YamlRadarStore"]
