"""lecturebot doctor — validate config and storage."""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table


def _check_config() -> tuple[bool, str]:
    """Verify config loads without error."""
    try:
        from lecturebot.config import get_settings
        settings = get_settings()
        return True, (
            f"prefix={settings.bot.command_prefix.strip()!r}, "
            f"accepts={settings.bot.accepted_mime_type}"
        )
    except Exception as e:
        return False, str(e)


def _check_docstore() -> tuple[bool, str]:
    """Open the SQLite metadata store and count records."""
    try:
        from lecturebot.config import get_settings
        from lecturebot.stores.docstore import DocStore
        docstore = DocStore(get_settings().docstore.path)
        try:
            n = docstore.count()
        finally:
            docstore.close()
        return True, f"{n} document(s) in {docstore.db_path}"
    except Exception as e:
        return False, str(e)


def _check_blobstore() -> tuple[bool, str]:
    """Write, read back and delete a probe blob."""
    try:
        from lecturebot.config import get_settings
        from lecturebot.stores.blobstore import BlobStore
        blobstore = BlobStore(get_settings().blobstore.path)
        key = f".doctor-{uuid.uuid4().hex}"
        blobstore.put(key, b"ok")
        try:
            assert blobstore.get(key) == b"ok"
        finally:
            blobstore.delete(key)
        return True, f"read/write ok in {blobstore.root}"
    except Exception as e:
        return False, str(e)


def _check_downloads() -> tuple[bool, str]:
    """Verify the console downloads folder is writable."""
    try:
        from lecturebot.config import get_settings
        path = Path(get_settings().console.downloads_path)
        path.mkdir(parents=True, exist_ok=True)
        return True, str(path)
    except Exception as e:
        return False, str(e)


def _run_checks() -> list[dict]:
    """Run all checks and return results."""
    checks = [
        ("Config", _check_config),
        ("Docstore", _check_docstore),
        ("Blobstore", _check_blobstore),
        ("Downloads", _check_downloads),
    ]
    results = []
    for name, check_fn in checks:
        ok, detail = check_fn()
        results.append({"check": name, "ok": ok, "detail": detail})
    return results


def doctor_cmd():
    """Check configuration and storage."""
    from lecturebot.cli.app import is_json

    results = _run_checks()

    if is_json():
        print(json.dumps(results, indent=2))
        if not all(r["ok"] for r in results):
            raise typer.Exit(code=1)
        return

    console = Console()
    table = Table(title="lecturebot doctor", show_lines=True)
    table.add_column("Check", style="bold")
    table.add_column("Status")
    table.add_column("Detail")

    all_ok = True
    for r in results:
        status = "[green]PASS[/green]" if r["ok"] else "[red]FAIL[/red]"
        if not r["ok"]:
            all_ok = False
        table.add_row(r["check"], status, r["detail"])

    console.print(table)
    if all_ok:
        console.print("\n[bold green]All checks passed.[/bold green]")
    else:
        console.print("\n[bold yellow]Some checks failed. See details above.[/bold yellow]")
        raise typer.Exit(code=1)
