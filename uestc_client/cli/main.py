"""UESTC portal CLI - Main commands."""
import asyncio
import logging
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..client import UestcClient
from ..core.config import DEFAULT_COOKIE_FILE
from ..core.cookies import JSONCookieStore
from ..core.exceptions import CookieFileCorruptError, UestcClientError
from ..core.results import LoginResult, ProbeResult

app = typer.Typer(
    name="uestc",
    help="UESTC authentication portal CLI",
    add_completion=False
)
console = Console()

state = {'cookie_file': Path(DEFAULT_COOKIE_FILE)}


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


@app.callback()
def configure(
    cookie_file: Path = typer.Option(
        Path(DEFAULT_COOKIE_FILE), "--cookie-file", "-c", help="Cookie file to use"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Shared options."""
    from .. import setup_logging

    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    state['cookie_file'] = cookie_file


def _report(result: LoginResult) -> None:
    if result is LoginResult.ALREADY_AUTHENTICATED:
        console.print("[green]Session is still valid, nothing to do[/green]")
    else:
        console.print("[green]Logged in[/green]")
    console.print(f"Cookies saved to: {state['cookie_file']}")


@app.command()
def login(
    username: str = typer.Option(None, "--username", "-u", help="Student or staff number"),
    password: str = typer.Option(None, "--password", "-p", help="Portal password"),
    service: str = typer.Option(None, "--service", "-s", help="Service URL to log in to"),
):
    """Login with username and password and save cookies."""
    if not username:
        username = typer.prompt("Username")
    if not password:
        password = typer.prompt("Password", hide_input=True)

    async def do_login():
        async with UestcClient(state['cookie_file']) as client:
            return await client.login(username, password, service)

    try:
        result = run_async(do_login())
    except UestcClientError as e:
        console.print(f"[red]Login failed: {e}[/red]")
        raise typer.Exit(1)

    _report(result)


@app.command("wechat-login")
def wechat_login(
    service: str = typer.Option(None, "--service", "-s", help="Service URL to log in to"),
):
    """Login by scanning a QR code with WeChat and save cookies."""
    async def do_login():
        async with UestcClient(state['cookie_file']) as client:
            return await client.wechat_login(service)

    try:
        result = run_async(do_login())
    except UestcClientError as e:
        console.print(f"[red]WeChat login failed: {e}[/red]")
        raise typer.Exit(1)

    _report(result)


@app.command()
def logout():
    """Logout from the portal and delete the cookie file."""
    async def do_logout():
        async with UestcClient(state['cookie_file']) as client:
            await client.logout()

    try:
        run_async(do_logout())
    except UestcClientError as e:
        console.print(f"[red]Logout failed: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]Logged out successfully[/green]")


@app.command()
def status():
    """Show the saved session and whether the portal still accepts it."""
    store = JSONCookieStore(state['cookie_file'])

    try:
        data = store.load()
    except CookieFileCorruptError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if data is None:
        console.print("[yellow]No saved session. Run 'uestc login' first.[/yellow]")
        raise typer.Exit(1)

    table = Table(title=str(store.path))
    table.add_column("Name", style="cyan")
    table.add_column("Domain")
    table.add_column("Path", style="dim")
    table.add_column("Expires", justify="right")

    for cookie in data.cookies:
        expires = (
            datetime.fromtimestamp(cookie.expires).strftime('%Y-%m-%d %H:%M')
            if cookie.expires is not None else "session"
        )
        table.add_row(cookie.name, cookie.domain, cookie.path, expires)

    console.print(table)
    console.print(f"Saved: {data.updated_at:%Y-%m-%d %H:%M:%S}")

    async def do_probe():
        async with UestcClient(state['cookie_file']) as client:
            return await client.probe()

    result = run_async(do_probe())
    if result is ProbeResult.VALID:
        console.print("[green]Session is active[/green]")
    elif result is ProbeResult.INVALID:
        console.print("[yellow]Session has expired[/yellow]")
        raise typer.Exit(1)
    else:
        console.print("[red]Could not reach the portal[/red]")
        raise typer.Exit(2)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
