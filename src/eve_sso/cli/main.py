"""CLI entry point."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from eve_sso.auth.errors import SSOError
from eve_sso.auth.oauth2 import generate_state
from eve_sso.auth.provider_factory import get_eve_provider

app = typer.Typer(name="eve-sso", help="EVE Online SSO login and token tools")
console = Console()


def _provider():
    try:
        return get_eve_provider()
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=2)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="API server host"),
    port: int = typer.Option(8000, help="API server port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
) -> None:
    """Start the login API server.

    Examples:
        eve-sso serve
        eve-sso serve --reload --port 8080
    """
    import uvicorn

    console.print(f"[green]Starting EVE SSO API on {host}:{port}[/green]")
    console.print(f"[dim]Login:[/dim] http://{host}:{port}/auth/eve/login")

    uvicorn.run("eve_sso.api.main:app", host=host, port=port, reload=reload)


@app.command()
def version() -> None:
    """Show version information."""
    from eve_sso import __version__

    typer.echo(f"eve-sso v{__version__}")


@app.command()
def discover() -> None:
    """Fetch and show the SSO server metadata."""
    provider = _provider()

    try:
        metadata = asyncio.run(provider.get_discovery_metadata())
    except SSOError as e:
        console.print(f"[red]Discovery failed ({e.code}):[/red] {e.message}")
        raise typer.Exit(code=1)

    console.print_json(data=metadata.model_dump())


@app.command("authorize-url")
def authorize_url(
    state: str = typer.Option(None, help="State value (random if omitted)"),
) -> None:
    """Print an authorization URL to start a login by hand."""
    provider = _provider()
    state = state or generate_state()

    try:
        url = asyncio.run(provider.get_authorization_url(state))
    except SSOError as e:
        console.print(f"[red]Discovery failed ({e.code}):[/red] {e.message}")
        raise typer.Exit(code=1)

    typer.echo(url)


@app.command()
def verify(
    token: str = typer.Argument(..., help="Access token (JWT) to verify"),
    output_json: bool = typer.Option(False, "--json", help="Output raw claims as JSON"),
) -> None:
    """Verify an access token and show the character it belongs to.

    Exits with code 1 and the error kind if the token is rejected.

    Examples:
        eve-sso verify eyJhbGciOiJSUzI1NiIs...
        eve-sso verify "$TOKEN" --json
    """
    provider = _provider()

    try:
        user = asyncio.run(provider.user_from_token(token))
    except SSOError as e:
        console.print(f"[red]Rejected ({e.code}):[/red] {e.message}")
        raise typer.Exit(code=1)

    if output_json:
        console.print_json(data=user.raw)
        return

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("id", user.id)
    table.add_row("name", user.name)
    table.add_row("owner", user.character_owner_hash)
    table.add_row("scopes", ", ".join(user.scopes))
    table.add_row("expires_on", str(user.expires_on))

    console.print("[green]✓[/green] Token valid")
    console.print(table)


if __name__ == "__main__":
    app()
