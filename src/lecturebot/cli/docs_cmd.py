"""lecturebot docs — list and search stored documents."""

from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from lecturebot.models import DocumentRecord

app = typer.Typer(
    name="docs",
    help="Inspect stored documents.",
    no_args_is_help=True,
)


def _record_json(record: DocumentRecord, score: int | None = None) -> dict:
    data = {
        "id": record.id,
        "original_name": record.original_name,
        "description": record.description,
        "sender_id": record.sender_id,
        "storage_key": record.storage_key,
        "content_hash": record.content_hash,
        "created_at": record.created_at.isoformat(),
    }
    if score is not None:
        data["score"] = score
    return data


def _records_table(title: str, records: list[DocumentRecord]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Description")
    table.add_column("Sender")
    table.add_column("Stored at")
    for r in records:
        table.add_row(
            str(r.id), r.original_name, r.description, r.sender_id,
            r.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


@app.command(name="list")
def list_cmd():
    """List every stored document."""
    from lecturebot.cli.app import is_json
    from lecturebot.config import get_settings
    from lecturebot.stores.docstore import DocStore

    docstore = DocStore(get_settings().docstore.path)
    try:
        records = docstore.list_documents()
    finally:
        docstore.close()

    if is_json():
        print(json.dumps({"status": "ok", "documents": [_record_json(r) for r in records]}, indent=2))
        return

    console = Console()
    if not records:
        console.print("[yellow]No documents stored yet.[/yellow]")
        return
    console.print(_records_table(f"{len(records)} document(s)", records))


@app.command(name="search")
def search_cmd(
    query: Annotated[str, typer.Argument(help="Keywords, as a sender would type after 'send'")],
):
    """Run a keyword search the way the bot does."""
    from lecturebot.cli.app import is_json
    from lecturebot.config import get_settings
    from lecturebot.retrieval.engine import Ambiguous, RetrievalEngine, SingleMatch
    from lecturebot.stores.blobstore import BlobStore
    from lecturebot.stores.docstore import DocStore

    settings = get_settings()
    docstore = DocStore(settings.docstore.path)
    engine = RetrievalEngine(docstore, BlobStore(settings.blobstore.path))
    try:
        result = asyncio.run(engine.search(query))
    finally:
        docstore.close()

    if isinstance(result, SingleMatch):
        outcome, matches, score = "single", [result.document], result.score
    elif isinstance(result, Ambiguous):
        outcome, matches, score = "ambiguous", list(result.candidates), result.score
    else:
        outcome, matches, score = "none", [], 0

    if is_json():
        print(
            json.dumps(
                {
                    "status": "ok",
                    "result": outcome,
                    "matches": [_record_json(r, score) for r in matches],
                },
                indent=2,
            )
        )
        return

    console = Console()
    if not matches:
        console.print("[yellow]No matching documents.[/yellow]")
        raise typer.Exit(code=1)
    console.print(_records_table(f"{outcome} match (score {score})", matches))
