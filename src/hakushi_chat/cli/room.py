"""CLI: hakushi room show|new|join, hakushi name"""

import click
from rich.console import Console

from hakushi_chat.settings import SettingsStore, new_room_id

console = Console()


def _get_store() -> SettingsStore:
    from hakushi_chat.cli.main import _get_store
    return _get_store()


@click.group()
def room():
    """Room commands."""


@room.command("show")
def room_show():
    """Show the saved room and identity."""
    settings = _get_store().load()
    console.print(f"Room: [bold]{settings.room}[/bold]")
    console.print(f"Name: {settings.user_name} [dim](ID: {settings.user_id})[/dim]")
    console.print(f"[dim]WebSocket: {settings.ws_url}[/dim]")
    console.print(f"[dim]API: {settings.api_url}[/dim]")


@room.command("new")
def room_new():
    """Create a fresh room id and make it current."""
    settings = _get_store().update(room=new_room_id())
    console.print(f"[green]New room:[/green] [bold]{settings.room}[/bold] (share this id to pair)")


@room.command("join")
@click.argument("room_id")
def room_join(room_id: str):
    """Switch to another room id."""
    room_id = room_id.strip()
    if not room_id:
        raise click.BadParameter("room id must not be empty")
    _get_store().update(room=room_id)
    console.print(f"[green]Joined room[/green] {room_id}")


@click.command("name")
@click.argument("display_name")
def name_cmd(display_name: str):
    """Set your display name."""
    _get_store().update(user_name=display_name)
    console.print(f"[green]Name set to[/green] {display_name}")
