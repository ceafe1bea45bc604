"""CLI entry point for opportunities radar."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from opportunities_radar.adapters.fetch import HTMLFetcher
from opportunities_radar.adapters.llm import build_providers
from opportunities_radar.adapters.storage import YamlRadarStore
from opportunities_radar.config import Settings, get_settings
from opportunities_radar.core import RunReport
from opportunities_radar.core.summarizer import select_provider
from opportunities_radar.use_cases import RadarService

app = typer.Typer(
    name="opportunities-radar",
    help="Watch grant, governance and ecosystem sources and record scored digests of their changes.",
    no_args_is_help=True,
)

CONFIG_OPTION = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to config.yaml")


def _store(settings: Settings) -> YamlRadarStore:
    return YamlRadarStore(settings.data_dir)


@app.command()
def run(
    config: Path = CONFIG_OPTION,
    source: Optional[list[str]] = typer.Option(None, "--source", "-s", help="Only process these source ids"),
    concurrency: Optional[int] = typer.Option(None, help="Sources fetched in parallel"),
) -> None:
    """Fetch all enabled sources and record digests for meaningful changes."""
    report = asyncio.run(async_run(config, source, concurrency))
    if report.errors:
        raise typer.Exit(code=1)


async def async_run(
    config: Path,
    source_ids: Optional[list[str]] = None,
    concurrency: Optional[int] = None,
) -> RunReport:
    """Async implementation of run command."""
    settings = get_settings(config)

    print("\n" + "=" * 70)
    print("📡  OPPORTUNITIES RADAR")
    print("=" * 70)

    providers = build_providers(settings)
    provider = select_provider(providers)
    print("\n🔑 Summarization:")
    if provider:
        print(f"  ✓ {provider.name} ({settings.anthropic_model if provider.name == 'anthropic' else settings.openai_model})")
    else:
        print("  ⚠️  No ANTHROPIC_API_KEY or OPENAI_API_KEY - using rule-based summaries")

    store = _store(settings)
    sources = store.apply_source_state(settings.sources)
    if source_ids:
        sources = [s for s in sources if s.id in source_ids]

    service = RadarService(
        fetcher=HTMLFetcher(settings.fetch),
        store=store,
        providers=providers,
        concurrency=concurrency or settings.fetch.concurrency,
    )
    report = await service.run(sources)

    print("\n" + "=" * 70)
    print("✅ DONE" if report.success else f"⚠️  DONE WITH {report.errors} ERROR(S)")
    print("=" * 70)
    stats = store.get_stats()
    print(f"📁 Data: {settings.data_dir}/")
    print(f"   Snapshots: {stats['snapshots']} · Diffs: {stats['diffs']} · Digests: {stats['digests']}")
    print()
    return report


@app.command()
def sources(config: Path = CONFIG_OPTION) -> None:
    """List configured sources with their fetch state."""
    settings = get_settings(config)
    store = _store(settings)

    for source in store.apply_source_state(settings.sources):
        marker = "✓" if source.enabled else "✗"
        fetched = source.last_fetched_at.strftime("%Y-%m-%d %H:%M") if source.last_fetched_at else "never"
        snapshots = store.count_snapshots(source.id)
        print(f"  {marker} {source.id:<20} {source.category.value:<11} {fetched:<17} {snapshots:>3} snapshots  {source.url}")


@app.command()
def digests(
    config: Path = CONFIG_OPTION,
    limit: int = typer.Option(20, "--limit", "-n"),
    source: Optional[str] = typer.Option(None, "--source", "-s"),
) -> None:
    """Show stored digests, highest score first."""
    settings = get_settings(config)
    entries = _store(settings).list_digests(limit=limit, source_id=source)

    if not entries:
        print("No digests yet.")
        return

    for digest in entries:
        print(f"\n[{digest.score:>3}] {digest.title}")
        print(f"      {digest.source_id} · {digest.created_at.strftime('%Y-%m-%d %H:%M')}")
        for bullet in digest.bullets:
            print(f"      - {bullet}")
        if digest.action:
            print(f"      → {digest.action}")
        if digest.deadline:
            print(f"      ⏰ {digest.deadline.strftime('%Y-%m-%d')}")
        if digest.tags:
            print(f"      #{' #'.join(sorted(digest.tags))}")


@app.command()
def toggle(
    source_id: str,
    enabled: bool = typer.Option(..., "--enable/--disable"),
    config: Path = CONFIG_OPTION,
) -> None:
    """Enable or disable a source."""
    settings = get_settings(config)
    if source_id not in {s.id for s in settings.sources}:
        print(f"❌ Unknown source: {source_id}")
        raise typer.Exit(code=1)

    _store(settings).set_source_enabled(source_id, enabled)
    print(f"✓ {source_id} {'enabled' if enabled else 'disabled'}")


if __name__ == "__main__":
    app()
