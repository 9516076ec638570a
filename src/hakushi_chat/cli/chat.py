"""CLI: hakushi chat, hakushi send, hakushi upload"""

import asyncio
import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from hakushi_chat.attachments import resolve_url
from hakushi_chat.errors import HakushiError
from hakushi_chat.models.message import ChatMessage
from hakushi_chat.session import SessionEventType

console = Console()


def _get_client():
    from hakushi_chat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from hakushi_chat.cli.main import _run
    return _run(coro)


def _print_message(message: ChatMessage, me: str, api_url: str) -> None:
    when = datetime.fromtimestamp(message.timestamp).strftime("%H:%M")
    color = "cyan" if message.author == me else "green"
    line = f"[dim]{when}[/dim] [{color}]{message.author}:[/{color}] {message.content}"
    console.print(line)
    for svg in message.attachments:
        console.print(f"    [magenta]svg[/magenta] {svg.filename} [dim]{resolve_url(svg.url, api_url)}[/dim]")


def _read_svgs(paths: tuple[str, ...]) -> list[tuple[str, bytes]]:
    return [(Path(p).name, Path(p).read_bytes()) for p in paths]


@click.command("chat")
@click.option("-r", "--room", "room_id", default=None, help="Room to join (saved for next time).")
def chat_cmd(room_id: Optional[str]):
    """Interactive chat in the current room."""

    async def _chat():
        client = _get_client()
        api_url = client.settings.api_url

        async def _print_events():
            async for event in client.subscribe():
                if event.type == SessionEventType.MESSAGES:
                    for message in event.data:
                        _print_message(message, client.user_name, api_url)
                elif event.type == SessionEventType.STATE:
                    console.print(f"[dim][{event.data}][/dim]")
                elif event.type == SessionEventType.ERROR and event.data:
                    console.print(f"[red]{event.data}[/red]")

        printer = asyncio.create_task(_print_events())
        try:
            if room_id:
                await client.set_room(room_id)
            else:
                await client.connect()
            console.print(f"[dim]Room: {client.room} as {client.user_name}[/dim]")
            console.print("[cyan]Type a message; /svg <file>, /room <id>, /new, /name <name>, "
                          "/reconnect, /quit[/cyan]\n")
            while True:
                text = await asyncio.to_thread(click.prompt, "You", prompt_suffix=": ")
                if text.lower() in ("/quit", "/exit"):
                    break
                await _handle_input(client, text)
        except (click.Abort, KeyboardInterrupt, EOFError):
            pass
        except HakushiError as e:
            console.print(f"[red]{e}[/red]")
        finally:
            printer.cancel()
            await asyncio.gather(printer, return_exceptions=True)
            await client.close()

    _run(_chat())


async def _handle_input(client, text: str) -> None:
    command, _, arg = text.partition(" ")
    arg = arg.strip()
    try:
        if command == "/room" and arg:
            await client.set_room(arg)
        elif command == "/new":
            room = await client.create_new_room()
            console.print(f"[green]New room:[/green] {room}")
        elif command == "/name" and arg:
            client.set_user_name(arg)
        elif command == "/reconnect":
            await client.disconnect()
            await client.connect()
        elif command == "/svg" and arg:
            with console.status("Uploading..."):
                await client.send_svgs(_read_svgs((arg,)))
        elif text.strip():
            await client.send(text)
    except (HakushiError, OSError) as e:
        console.print(f"[red]{e}[/red]")


@click.command("send")
@click.argument("message", default="")
@click.option("--svg", "svg_paths", multiple=True, type=click.Path(exists=True, dir_okay=False),
              help="SVG file to attach (repeatable).")
@click.option("-r", "--room", "room_id", default=None)
def send_cmd(message: str, svg_paths: tuple[str, ...], room_id: Optional[str]):
    """Send a one-shot message."""
    if not message and not svg_paths:
        raise click.UsageError("Nothing to send: give a message or --svg")

    async def _send():
        async with _get_client() as client:
            if room_id:
                await client.set_room(room_id)
            else:
                await client.connect()
            if not await client.session.wait_connected():
                console.print(f"[red]Not connected: {client.last_error}[/red]")
                raise SystemExit(1)
            if svg_paths:
                with console.status("Uploading..."):
                    message_id = await client.send_svgs(_read_svgs(svg_paths), content=message)
            else:
                message_id = await client.send(message)
            if client.last_error:
                console.print(f"[red]{client.last_error}[/red]")
                raise SystemExit(1)
            console.print(f"[dim]Sent {message_id} to {client.room}[/dim]")

    try:
        _run(_send())
    except HakushiError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.command("upload")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--message-id", default=None, help="Message the SVG belongs to (default: new id).")
def upload_cmd(path: str, message_id: Optional[str]):
    """Upload an SVG and print its descriptor as JSON."""

    async def _upload():
        async with _get_client() as client:
            name, data = _read_svgs((path,))[0]
            with console.status("Uploading..."):
                ref = await client.upload_svg(data, name, message_id or str(uuid.uuid4()))
            click.echo(json.dumps(ref.model_dump()))

    try:
        _run(_upload())
    except HakushiError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
