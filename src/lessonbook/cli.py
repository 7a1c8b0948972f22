"""Command-line entry point for the registration service."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
import uvicorn

from lessonbook.config import ConfigError, Settings, load_settings
from lessonbook.data_store import SqlDataStore, StoreError, ensure_tables
from lessonbook.logging import get_logger, setup_logging


def _load(config_path: Path | None) -> Settings:
    try:
        return load_settings(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="lessonbook")
def main() -> None:
    """Lessonbook - music lesson registration service."""
    pass


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to a YAML settings file",
)
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port")
@click.option("--log-level", default=None, help="Log level (default: from environment or INFO)")
def serve(config_path: Path | None, host: str, port: int, log_level: str | None) -> None:
    """Run the HTTP API."""
    from lessonbook.api.app import create_app  # noqa: PLC0415

    settings = _load(config_path)
    setup_logging(level=log_level, capture_uvicorn=True)
    get_logger("cli").info("Serving on http://%s:%d (db=%s)", host, port, settings.db_path)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


@main.command("init-db")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to a YAML settings file",
)
def init_db(config_path: Path | None) -> None:
    """Create missing tables and verify existing headers."""
    settings = _load(config_path)
    store = SqlDataStore(settings.db_path)
    try:
        asyncio.run(ensure_tables(store))
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()
    click.echo(f"Tables ready in {settings.db_path}")


@main.command("show-config")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to a YAML settings file",
)
def show_config(config_path: Path | None) -> None:
    """Print the effective settings."""
    settings = _load(config_path)
    for name, value in vars(settings).items():
        click.echo(f"{name}: {value}")


if __name__ == "__main__":
    main()
