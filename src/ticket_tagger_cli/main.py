"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import typer
from rich.console import Console

from ticket_tagger_app.classifier import FastTextClassifier, RemoteModelClassifier
from ticket_tagger_app.observability import configure_logging
from ticket_tagger_app.server.services import open_cache_store
from ticket_tagger_core.config.settings import Settings
from ticket_tagger_core.models.github import Prediction

app = typer.Typer(
    name="ticket-tagger",
    help="GitHub App that labels new issues as bug, enhancement or question",
)
console = Console()


def _load_settings(verbose: bool) -> Settings:
    settings = Settings()  # type: ignore[call-arg]
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)
    return settings


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Override the bind address"),
    port: int | None = typer.Option(None, "--port", help="Override the listen port"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Run the webhook server."""
    import uvicorn

    from ticket_tagger_app.server.app import create_app

    settings = _load_settings(verbose)
    if host is not None:
        settings.host = host
    if port is not None:
        settings.port = port

    console.print(
        f"[bold green]Listening on[/bold green] {settings.host}:{settings.port}"
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,
    )


@app.command("clear-cache")
def clear_cache(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Drop every cached GitHub response."""
    settings = _load_settings(verbose)
    asyncio.run(_clear_cache(settings))
    console.print(f"[green]Cache cleared[/green] ({settings.cache_backend})")


@app.command("purge-cache")
def purge_cache(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Delete expired cache records."""
    settings = _load_settings(verbose)
    removed = asyncio.run(_purge_cache(settings))
    console.print(f"[green]Purged[/green] {removed} expired record(s)")


@app.command()
def predict(
    text: str = typer.Argument(..., help="Issue title and body"),
    model: Path | None = typer.Option(
        None, "--model", help="Local fastText model; downloads the latest if omitted", exists=True
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Classify a piece of issue text."""
    settings = _load_settings(verbose)
    prediction = asyncio.run(_predict(settings, text, model))
    if prediction.label is None:
        console.print("[yellow]No prediction[/yellow]")
        raise typer.Exit(code=1)
    console.print(
        f"[bold]{prediction.label}[/bold] (confidence {prediction.confidence:.2f})"
    )


async def _clear_cache(settings: Settings) -> None:
    async with open_cache_store(settings) as store:
        await store.clear()


async def _purge_cache(settings: Settings) -> int:
    async with open_cache_store(settings) as store:
        return await store.purge_expired()


async def _predict(settings: Settings, text: str, model: Path | None) -> Prediction:
    if model is not None:
        classifier = FastTextClassifier(model)
        await classifier.initialize()
        return await classifier.predict(text)
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        remote = RemoteModelClassifier(http, settings.fasttext_model_uri, settings.model_dir)
        await remote.initialize()
        return await remote.predict(text)


if __name__ == "__main__":
    app()
