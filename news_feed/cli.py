"""
Command-line interface for the News Feed server.

Uses Typer to provide a CLI with options for the main configuration
settings. Loads .env files so NEWS_API_KEY can live next to the data file.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
import typer
import uvicorn

from .api import create_app
from .config import AppConfig, load_config
from .logging_utils import setup_logging
from .service import NewsService
from .storage import JsonStore

app = typer.Typer(add_completion=False)
console = Console()


def _load(config: Path | None, data_file: Path | None) -> AppConfig:
    cfg = load_config(str(config) if config else None)
    if data_file is not None:
        cfg.storage.data_file = str(data_file)
    return cfg


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    host: str | None = typer.Option(None, "--host", help="Bind address."),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port."),
    data_file: Path | None = typer.Option(None, "--data-file", "-d", help="JSON data file."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        envvar="NEWS_API_KEY",
        help="Override the news API key (or set NEWS_API_KEY / .env).",
    ),
):
    """Run the news feed HTTP server.

    Restores users, likes, articles and comments from the data file and
    serves the JSON API until interrupted.
    """
    load_dotenv()

    cfg = _load(config, data_file)
    if api_key:
        cfg.upstream.api_key = api_key
    if host:
        cfg.server.host = host
    if port is not None:
        cfg.server.port = port
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file

    setup_logging(cfg.logging)
    service = NewsService.from_config(cfg)
    uvicorn.run(
        create_app(service),
        host=cfg.server.host,
        port=cfg.server.port,
        log_level=cfg.logging.level.lower(),
    )


@app.command()
def stats(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    data_file: Path | None = typer.Option(None, "--data-file", "-d", help="JSON data file."),
):
    """Print counts of what the data file holds."""
    cfg = _load(config, data_file)
    snapshot = JsonStore(
        cfg.storage.data_file,
        max_comment_length=cfg.engagement.max_comment_length,
        aggregate_category=cfg.aggregation.aggregate_category,
    ).load()

    table = Table(title=f"Data file: {cfg.storage.data_file}")
    table.add_column("Kind")
    table.add_column("Count", justify="right")
    table.add_row("Users", str(len(snapshot.users)))
    table.add_row("Articles", str(len(snapshot.catalog)))
    table.add_row("Liked articles", str(snapshot.engagement.liked_article_count()))
    table.add_row("Comments", str(snapshot.engagement.comment_count()))
    console.print(table)


if __name__ == "__main__":
    app()
