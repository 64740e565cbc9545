"""Command line interface for remote-browser-session."""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .browser.base import BrowserActionError
from .browser.commands import BrowserCommands
from .config import ToolConfig, load_config
from .models import BrowserAction, BrowserActionType, CommandResult, RequestRecord, SnapshotResult
from .session.manager import BrowserSessionManager

DISTRIBUTION = "remote-browser-session"
PACKAGE_LOGGER = "remote_browser_session"

app = typer.Typer(help="Remote Browser Session entry point")
console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML configuration."),
]
EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
EndpointOption = Annotated[
    Optional[str],
    typer.Option("--endpoint", help="Remote debugging endpoint to connect to."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log session and connection details."),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.INFO)


@app.command()
def version() -> None:
    """Print the installed package version."""

    try:
        installed = get_version(DISTRIBUTION)
    except PackageNotFoundError:  # pragma: no cover - source checkout without an install
        installed = "unknown"
    typer.echo(f"{DISTRIBUTION} {installed}")


def build_manager(config: ToolConfig) -> BrowserSessionManager:
    return BrowserSessionManager.from_config(config)


def _open_manager(
    config_path: Optional[Path],
    env_file: Optional[Path],
    endpoint: Optional[str],
) -> BrowserSessionManager:
    overrides: dict[str, Any] = {}
    if endpoint:
        overrides["session"] = {"cdp_endpoint": endpoint}
    try:
        return build_manager(load_config(config_path, env_file=env_file, **overrides))
    except ValueError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc


async def _run_actions(
    manager: BrowserSessionManager,
    actions: list[BrowserAction],
) -> list[CommandResult]:
    commands = BrowserCommands(manager)
    results: list[CommandResult] = []
    try:
        for action in actions:
            results.append(await commands.execute(action))
    finally:
        await manager.aclose()
    return results


def _print_snapshot(snapshot: SnapshotResult) -> None:
    console.print(f"[bold]{escape(snapshot.title)}[/bold] {escape(snapshot.url)}")
    console.print(snapshot.aria_snapshot, markup=False)
    if snapshot.dom_snapshot:
        console.rule("DOM elements")
        console.print(snapshot.dom_snapshot, markup=False)


def _print_requests(records: list[RequestRecord]) -> None:
    table = Table(title=f"{len(records)} requests")
    table.add_column("Method")
    table.add_column("URL", overflow="fold")
    table.add_column("Status")
    for record in records:
        status = "pending" if record.status is None else f"{record.status} {record.status_text or ''}"
        table.add_row(record.method, record.url, status.strip())
    console.print(table)


@app.command()
def snapshot(
    url: Annotated[str, typer.Argument(help="Page to open before capturing.")],
    filtered: Annotated[
        bool,
        typer.Option("--filtered/--raw", help="List interactive elements or dump the full tree."),
    ] = True,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    endpoint: EndpointOption = None,
) -> None:
    """Open URL and print its snapshot."""

    manager = _open_manager(config_path, env_file, endpoint)
    actions = [
        BrowserAction(type=BrowserActionType.NAVIGATE, url=url),
        BrowserAction(type=BrowserActionType.SNAPSHOT, filtered=filtered),
    ]
    try:
        results = asyncio.run(_run_actions(manager, actions))
    except BrowserActionError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    _print_snapshot(SnapshotResult.model_validate(results[-1].data))


@app.command()
def requests(
    url: Annotated[str, typer.Argument(help="Page to open.")],
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    endpoint: EndpointOption = None,
) -> None:
    """Open URL and print the network requests it issued."""

    manager = _open_manager(config_path, env_file, endpoint)
    actions = [
        BrowserAction(type=BrowserActionType.NAVIGATE, url=url),
        BrowserAction(type=BrowserActionType.NETWORK_REQUESTS),
    ]
    try:
        results = asyncio.run(_run_actions(manager, actions))
    except BrowserActionError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    _print_requests([RequestRecord.model_validate(item) for item in results[-1].data["requests"]])


@app.command()
def run(
    script: Annotated[Path, typer.Argument(help="YAML file with a list of browser actions.")],
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    endpoint: EndpointOption = None,
    screenshot_dir: Annotated[
        Optional[Path],
        typer.Option("--screenshot-dir", help="Where to write screenshots taken by the script."),
    ] = None,
) -> None:
    """Execute a scripted sequence of browser actions."""

    raw = yaml.safe_load(script.read_text()) or []
    actions = [BrowserAction.model_validate(item) for item in raw]
    manager = _open_manager(config_path, env_file, endpoint)
    try:
        results = asyncio.run(_run_actions(manager, actions))
    except BrowserActionError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    for index, result in enumerate(results):
        console.print(f"[green]{index + 1}.[/green] {escape(result.message)}")
        if result.data:
            console.print(result.data, style="dim")
        if result.binary and screenshot_dir is not None:
            screenshot_dir.mkdir(parents=True, exist_ok=True)
            path = screenshot_dir / f"step_{index:04d}.png"
            path.write_bytes(result.binary)
            console.print(f"Saved {path}", style="dim")


if __name__ == "__main__":
    app()
