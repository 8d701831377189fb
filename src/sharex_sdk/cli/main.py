"""
Sharex CLI — `sharex` command.

Commands:
  sharex target HOST PORT     Save the host to talk to
  sharex users                List connected users
  sharex send UUID MESSAGE    Send a message to a session
  sharex listen               Print lifecycle events and notifications
  sharex db <cmd>             Document store requests
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install sharex-sdk[cli]")

from sharex_sdk.client import SharexSDK

console = Console()
CONFIG_FILE = Path.home() / ".sharex" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_client() -> SharexSDK:
    cfg = _load_config()
    if not cfg.get("host") or not cfg.get("port"):
        console.print("[red]No host configured. Run `sharex target HOST PORT` first.[/red]")
        raise SystemExit(1)
    return SharexSDK({
        "debug": {"host": cfg["host"], "port": cfg["port"]},
        "preserve_session_id": True,
    })


def _run(coro):
    return asyncio.run(coro)


def _print_result(result: Any, json_output: bool) -> None:
    if json_output:
        click.echo(json.dumps(result))
    else:
        console.print_json(data=result)


def run_request(
    call: Callable[[SharexSDK], Awaitable[Any]],
    json_output: bool = False,
    timeout: float = 15.0,
) -> None:
    """Connect, await one request, print its result, disconnect."""

    async def _do() -> None:
        client = _get_client()
        await client.connect(timeout=timeout)
        try:
            result = await call(client)
        finally:
            await client.disconnect()
        _print_result(result, json_output)

    _run(_do())


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log connection activity")
def main(verbose: bool):
    """Sharex CLI — talk to a Sharex host from the terminal."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@main.command("target")
@click.argument("host")
@click.argument("port", type=int)
def target(host: str, port: int):
    """Save the host address (the page port; the websocket is on PORT+1)."""
    _save_config({**_load_config(), "host": host, "port": port})
    console.print(f"[green]Target set to {host}:{port}[/green]")


@main.command("users")
@click.option("--json-output", "--json", is_flag=True)
def users(json_output: bool):
    """List the users connected to the host."""
    run_request(lambda client: client.request(client.get_all_users), json_output)


@main.command("send")
@click.argument("uuid")
@click.argument("message")
def send(uuid: str, message: str):
    """Send MESSAGE to the session UUID."""

    async def _send() -> None:
        client = _get_client()
        await client.connect()
        client.send_msg(uuid, message)
        # Let the write reach the socket before closing it
        await asyncio.sleep(0.1)
        await client.disconnect()
        console.print("[green]Sent.[/green]")

    _run(_send())


@main.command("listen")
@click.option("--json-output", "--json", is_flag=True)
def listen(json_output: bool):
    """Print lifecycle events and notifications until interrupted."""

    def on_event(tag: str, payload: Optional[Any]) -> None:
        if json_output:
            click.echo(json.dumps({"event": tag, "data": payload}, default=str))
        else:
            console.print(f"[cyan]{tag}[/cyan] {payload if payload is not None else ''}")

    async def _listen() -> None:
        client = _get_client()
        client.init(on_event)
        console.print(f"[dim]Session: {client.session_id} (Ctrl+C to exit)[/dim]")
        try:
            await asyncio.Event().wait()
        finally:
            await client.disconnect()

    try:
        _run(_listen())
    except KeyboardInterrupt:
        pass


from sharex_sdk.cli.db import db

main.add_command(db)


if __name__ == "__main__":
    main()
