"""
Hakushi chat CLI — `hakushi` command.

Commands:
  hakushi chat [--room ID]        Interactive room chat
  hakushi send <message>          One-shot message, optionally with SVGs
  hakushi upload <file.svg>       Upload an SVG and print its descriptor
  hakushi room show|new|join      Inspect or switch the saved room
  hakushi name <display-name>     Set the display name
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install hakushi-chat[cli]")

from hakushi_chat.client import HakushiChat
from hakushi_chat.settings import SettingsStore

console = Console()


def _get_store() -> SettingsStore:
    return SettingsStore()


def _get_client() -> HakushiChat:
    return HakushiChat(settings_store=_get_store())


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log connection and upload details.")
def main(verbose: bool):
    """Hakushi chat CLI — draw and chat in shared rooms."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# Register subcommands from separate modules
from hakushi_chat.cli.chat import chat_cmd, send_cmd, upload_cmd
from hakushi_chat.cli.room import room, name_cmd

main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(upload_cmd)
main.add_command(room)
main.add_command(name_cmd)


if __name__ == "__main__":
    main()
