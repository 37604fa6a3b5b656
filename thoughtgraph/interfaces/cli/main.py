"""
CLI Main - Typer-based command-line interface.

Usage:
    thoughtgraph serve
    thoughtgraph mcp
    thoughtgraph analyze "Why did the nightly build fail?" --depth 4
    thoughtgraph nexus search "redis"
    thoughtgraph nexus path api db
"""

from __future__ import annotations

import asyncio
import logging
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from thoughtgraph.config import ThoughtGraphError, get_settings

app = typer.Typer(
    name="thoughtgraph",
    help="ThoughtGraph - Reasoning step graph and knowledge graph tools",
    add_completion=False,
)
nexus_app = typer.Typer(help="Inspect and maintain the persisted knowledge graph")
app.add_typer(nexus_app, name="nexus")

console = Console()


@app.callback()
def configure(
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Override LOG_LEVEL"),
) -> None:
    """Configure logging for every command."""
    settings = get_settings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_store():
    """Open the knowledge graph at the configured path."""
    from thoughtgraph.adapters.jsonfile import JsonGraphRepository
    from thoughtgraph.domains.nexus import NexusGraphStore

    settings = get_settings()
    return NexusGraphStore(
        JsonGraphRepository(
            settings.graph_path,
            retry_attempts=settings.persist_retry_attempts,
        )
    )


def _fail(error: ThoughtGraphError) -> NoReturn:
    console.print(f"[red]Error:[/red] {error.message} [dim]({error.code.value})[/dim]")
    raise typer.Exit(1)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the HTTP API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting ThoughtGraph API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "thoughtgraph.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def mcp(
    transport: str = typer.Option("stdio", "--transport", "-t", help="stdio or sse"),
) -> None:
    """Run the MCP tool server (stdio by default)."""
    from thoughtgraph.interfaces.mcp import run_server

    run_server(transport=transport)


@app.command()
def analyze(
    prompt: str = typer.Argument(..., help="What to analyze"),
    depth: int | None = typer.Option(None, "--depth", "-d", help="Number of steps"),
    focus: list[str] | None = typer.Option(None, "--focus", "-f", help="Focus area (repeatable)"),
) -> None:
    """Build an analysis chain and print it."""
    asyncio.run(_analyze_async(prompt, depth, focus or None))


async def _analyze_async(prompt: str, depth: int | None, focus: list[str] | None) -> None:
    """Async analysis implementation."""
    from thoughtgraph.domains.reasoning import ReasoningEngine

    settings = get_settings()
    engine = ReasoningEngine(default_depth=settings.default_analysis_depth)

    try:
        result = await engine.analyze(prompt, depth=depth, focus_areas=focus)
    except ThoughtGraphError as e:
        _fail(e)

    table = Table(title=f"Branch {result.branch_id}")
    table.add_column("#", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Content")
    table.add_column("ID", style="dim")
    for step in result.steps:
        table.add_row(
            f"{step.sequence_number}/{step.total_steps}",
            step.type.value,
            step.content,
            step.id,
        )
    console.print(table)


@nexus_app.command("search")
def nexus_search(query: str = typer.Argument(..., help="Substring to look for")) -> None:
    """Search node ids and insights."""
    asyncio.run(_nexus_search_async(query))


async def _nexus_search_async(query: str) -> None:
    store = _load_store()
    try:
        await store.load()
        nodes = await store.search_nodes(query)
    except ThoughtGraphError as e:
        _fail(e)

    if not nodes:
        console.print(f"[yellow]No nodes match[/yellow] {query!r}")
        return

    table = Table(title=f"{len(nodes)} node(s)")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Insights")
    for node in nodes:
        table.add_row(node.id, node.type, "\n".join(node.insights))
    console.print(table)


@nexus_app.command("path")
def nexus_path(
    start: str = typer.Argument(..., help="Start node id"),
    end: str = typer.Argument(..., help="End node id"),
    max_depth: int | None = typer.Option(None, "--max-depth", "-m", help="Maximum links"),
) -> None:
    """Show the shortest directed path between two nodes."""
    asyncio.run(_nexus_path_async(start, end, max_depth))


async def _nexus_path_async(start: str, end: str, max_depth: int | None) -> None:
    settings = get_settings()
    store = _load_store()
    try:
        await store.load()
        links = await store.find_path(
            start,
            end,
            max_depth=max_depth if max_depth is not None else settings.default_path_depth,
        )
    except ThoughtGraphError as e:
        _fail(e)

    if not links:
        console.print(f"[yellow]No path from[/yellow] {start} [yellow]to[/yellow] {end}")
        return

    for link in links:
        console.print(f"  {link.source} [cyan]--{link.type}-->[/cyan] {link.target}")
    console.print(f"\n[dim]{len(links)} link(s)[/dim]")


@nexus_app.command("stats")
def nexus_stats() -> None:
    """Show node and link counts by type."""
    asyncio.run(_nexus_stats_async())


async def _nexus_stats_async() -> None:
    store = _load_store()
    try:
        await store.load()
    except ThoughtGraphError as e:
        _fail(e)
    stats = await store.stats()

    table = Table(title="Knowledge Graph")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Nodes", str(stats.total_nodes))
    table.add_row("Links", str(stats.total_links))
    for node_type, count in sorted(stats.nodes_by_type.items()):
        table.add_row(f"  node: {node_type}", str(count))
    for link_type, count in sorted(stats.links_by_type.items()):
        table.add_row(f"  link: {link_type}", str(count))
    console.print(table)


@nexus_app.command("clear")
def nexus_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm deletion"),
) -> None:
    """Delete every node and link."""
    if not yes:
        yes = typer.confirm("Delete the entire knowledge graph?")
    asyncio.run(_nexus_clear_async(yes))


async def _nexus_clear_async(confirmation: bool) -> None:
    store = _load_store()
    try:
        await store.load()
        await store.clear(confirmation)
    except ThoughtGraphError as e:
        _fail(e)
    console.print("[green]Knowledge graph cleared[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from thoughtgraph import __version__

    console.print(f"ThoughtGraph v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
