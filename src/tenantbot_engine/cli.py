"""Typer CLI for Tenantbot-Engine."""

from pathlib import Path

import typer
from rich.console import Console

app = typer.Typer(name="tenantbot", help="Tenantbot-Engine: multi-tenant knowledge chatbot backend")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Tenantbot-Engine API server."""
    import uvicorn
    from tenantbot_engine.app import create_app

    console.print(f"[bold green]Starting Tenantbot-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def match(
    knowledge: Path = typer.Argument(..., exists=True, dir_okay=False, help="Knowledge text file"),
    message: str = typer.Argument(..., help="User message to answer"),
    fallback: str = typer.Option("Sorry, I don't understand.", help="Reply when nothing matches"),
):
    """Answer a message from a knowledge file (offline, no DB required)."""
    from tenantbot_engine.common.config import get_settings
    from tenantbot_engine.matching.matcher import find_best_match
    from tenantbot_engine.matching.text import normalize_text, split_sentences

    settings = get_settings()
    tokens = normalize_text(message, settings.stop_word_set)
    result = find_best_match(tokens, split_sentences(knowledge.read_text(encoding="utf-8")))

    if result.matched:
        console.print(f"[bold green]MATCH[/bold green] (score {result.score}): {result.sentence}")
    else:
        console.print(f"[bold yellow]FALLBACK[/bold yellow]: {fallback}")
    console.print(f"  Tokens: {', '.join(tokens) or '-'}")


@app.command("purge-expired")
def purge_expired():
    """Delete messages past their retention window."""
    import asyncio

    from tenantbot_engine.deps import get_db, get_message_service

    async def _run() -> int:
        db = get_db()
        await db.init()
        try:
            async with db.get_session() as session:
                return await get_message_service().purge_expired(session)
        finally:
            await db.close()

    deleted = asyncio.run(_run())
    console.print(f"[bold]Purged {deleted} expired message(s)[/bold]")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Tenantbot-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
