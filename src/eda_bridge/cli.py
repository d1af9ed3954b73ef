"""Command-line interface for the EDA bridge."""

from __future__ import annotations

import json
import sys
from pathlib import Path  # noqa: TC003

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import load_config
from .log import configure_logging, mask
from .types import MASKED_VALUE

app = typer.Typer(help="EDA API bridge: configuration, tokens and authenticated queries")
console = Console()

_SECRET_FIELDS = {"kc_password", "eda_password", "eda_client_secret"}

FileOption = typer.Option(None, "--file", "-f", help="Path to YAML provider configuration")
EnvFileOption = typer.Option(None, "--env-file", help="Path to a .env file")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="debug, info, warn or error (default: LOG_LEVEL)"),
) -> None:
    configure_logging(log_level)


@app.command()
def config(
    file: Path | None = FileOption,
    env_file: Path | None = EnvFileOption,
) -> None:
    """Show the resolved provider configuration."""
    try:
        cfg = load_config(file, dotenv_path=env_file)

        table = Table(title="Provider Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        for name, value in cfg.model_dump().items():
            if name in _SECRET_FIELDS and value:
                value = MASKED_VALUE
            table.add_row(name, str(value))
        console.print(table)

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@app.command()
def validate(
    file: Path | None = FileOption,
    env_file: Path | None = EnvFileOption,
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Enable quiet mode (minimal output)"),
) -> None:
    """Validate the provider configuration."""
    try:
        cfg = load_config(file, dotenv_path=env_file)

        from .validation import validate_config
        errors = validate_config(cfg)

        if errors:
            console.print("[red]Validation failed:[/red]")
            for error in errors:
                console.print(f"  [red]• {error}[/red]")
            sys.exit(1)

        if not quiet:
            console.print("[green]✓ Configuration is valid[/green]")

    except Exception as e:
        console.print(f"[red]Validation error: {e}[/red]")
        sys.exit(1)


@app.command()
def token(
    file: Path | None = FileOption,
    env_file: Path | None = EnvFileOption,
    show: bool = typer.Option(False, "--show", help="Print the full access token"),
) -> None:
    """Log in and print the EDA access token."""
    try:
        from .apiclient import EdaApiClient

        cfg = load_config(file, dotenv_path=env_file)
        with EdaApiClient(cfg) as client:
            access_token = client.credentials.primary_token()
            grant = client.credentials.grant("primary")

        if show:
            console.print(access_token, soft_wrap=True)
        else:
            body = (
                f"Token: {mask(access_token)}\n"
                f"Type: {grant.token_type or 'N/A'}\n"
                f"Expires in: {grant.expires_in:g}s"
            )
            console.print(Panel(body, title=f"Access token for {cfg.eda_client_id}"))

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@app.command()
def get(
    path: str = typer.Argument(..., help="API path, e.g. /apps/core.eda.nokia.com/v1/namespaces"),
    query: list[str] = typer.Option([], "--query", "-q", help="Query parameter as key=value, repeatable"),
    file: Path | None = FileOption,
    env_file: Path | None = EnvFileOption,
) -> None:
    """Run an authenticated GET and print the JSON result."""
    try:
        from .apiclient import EdaApiClient

        query_params = _parse_pairs(query)
        cfg = load_config(file, dotenv_path=env_file)
        with EdaApiClient(cfg) as client:
            result = client.get_by_query(path, query_params=query_params)

        console.print_json(json.dumps(result))

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@app.command()
def print_schema() -> None:
    """Print the JSON schema for the provider configuration."""
    from .models import ProviderConfig

    schema = ProviderConfig.model_json_schema()

    console.print_json(data=schema)


def _parse_pairs(pairs: list[str]) -> dict[str, str]:
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid query parameter '{pair}': expected key=value")
        result[key] = value
    return result


if __name__ == "__main__":
    app()
