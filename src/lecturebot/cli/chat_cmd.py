"""lecturebot chat — a console transport for talking to the bot locally.

Every line typed is delivered as a text message. ``/upload <path> [text]``
attaches a file, ``/quit`` leaves. Documents sent back by the bot are
written to the downloads folder.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import shlex
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from lecturebot.models import DocumentPayload, DocumentReply, InboundMessage, Reply

UPLOAD_COMMAND = "/upload"
QUIT_COMMANDS = {"/quit", "/exit"}


def parse_line(line: str, sender_id: str) -> InboundMessage:
    """Turn one console line into an inbound message.

    Raises:
        FileNotFoundError: an /upload path does not exist.
        ValueError: /upload was given without a path.
    """
    if not line.startswith(UPLOAD_COMMAND + " ") and line.strip() != UPLOAD_COMMAND:
        return InboundMessage(sender_id=sender_id, text=line)

    args = shlex.split(line[len(UPLOAD_COMMAND):])
    if not args:
        raise ValueError(f"usage: {UPLOAD_COMMAND} <path> [text]")
    path = Path(args[0]).expanduser()
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return InboundMessage(
        sender_id=sender_id,
        text=" ".join(args[1:]),
        document=DocumentPayload(data=path.read_bytes(), file_name=path.name, mime_type=mime_type),
    )


def save_download(reply: DocumentReply, downloads: Path) -> Path:
    """Write a document reply to *downloads* without overwriting files."""
    downloads.mkdir(parents=True, exist_ok=True)
    name = Path(reply.file_name).name or "file"
    target = downloads / name
    n = 1
    while target.exists():
        target = downloads / f"{Path(name).stem} ({n}){Path(name).suffix}"
        n += 1
    target.write_bytes(reply.data)
    return target


def chat_cmd(
    sender: Annotated[
        Optional[str], typer.Option("--sender", "-s", help="Sender identity to chat as")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show bot log output")
    ] = False,
):
    """Talk to the bot from this terminal."""
    from lecturebot.bot.service import LectureBot
    from lecturebot.config import get_settings

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )

    settings = get_settings()
    sender_id = sender or settings.console.sender_id
    downloads = Path(settings.console.downloads_path)
    console = Console()

    def _show(replies: list[Reply]) -> None:
        for reply in replies:
            if isinstance(reply, DocumentReply):
                target = save_download(reply, downloads)
                console.print(f"[green]📄 {reply.file_name}[/green] saved to {target}")
            else:
                console.print(Panel(reply.text, title="LectureBot", border_style="cyan"))

    async def _run(bot: LectureBot) -> None:
        while True:
            try:
                line = await asyncio.to_thread(console.input, f"[bold]{sender_id}>[/bold] ")
            except (EOFError, KeyboardInterrupt):
                return
            if line.strip() in QUIT_COMMANDS:
                return
            try:
                message = parse_line(line, sender_id)
            except (OSError, ValueError) as exc:
                console.print(f"[red]{exc}[/red]")
                continue
            _show(await bot.handle(message))

    console.print(
        f"Chatting as [bold]{sender_id}[/bold]. "
        f"Use {UPLOAD_COMMAND} <path> to send a file, /quit to leave."
    )
    with LectureBot(settings) as bot:
        asyncio.run(_run(bot))
