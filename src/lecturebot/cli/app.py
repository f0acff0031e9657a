"""lecturebot CLI — Typer entrypoint with global options."""

from __future__ import annotations

import os
from typing import Annotated, Optional

import typer

app = typer.Typer(
    name="lecturebot",
    help="LectureBot CLI — talk to the bot locally and inspect stored notes.",
    no_args_is_help=True,
)

# Global state shared across subcommands
_state: dict = {"json": False}


def is_json() -> bool:
    """Check if --json output mode is active."""
    return _state["json"]


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON (script-friendly)")
    ] = False,
    root: Annotated[
        Optional[str], typer.Option("--root", help="Override project root directory")
    ] = None,
):
    """Global options applied before any subcommand."""
    _state["json"] = json_output
    if root:
        os.environ["LECTUREBOT_ROOT"] = root
        from lecturebot.config import reset_settings
        reset_settings()


# Register subcommands -------------------------------------------------------

from lecturebot.cli.chat_cmd import chat_cmd  # noqa: E402
from lecturebot.cli.docs_cmd import app as docs_app  # noqa: E402
from lecturebot.cli.doctor import doctor_cmd  # noqa: E402

app.command(name="chat", help="Talk to the bot from this terminal.")(chat_cmd)
app.command(name="doctor", help="Check configuration and storage.")(doctor_cmd)
app.add_typer(docs_app, name="docs", help="Inspect stored documents.")
