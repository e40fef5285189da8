from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from agent_cassette.cassette.errors import CassetteFormatError
from agent_cassette.cassette.loader import has_torn_tail, load_cassette
from agent_cassette.cassette.models import CassetteEntry
from agent_cassette.util.log import configure_logging

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


def _load_or_exit(path: Path) -> list[CassetteEntry]:
    if not path.is_file():
        console.print(f"[red]Cassette not found:[/red] {path}")
        raise typer.Exit(code=1)
    try:
        return load_cassette(path)
    except (CassetteFormatError, OSError) as exc:
        console.print(f"[red]Failed to load cassette:[/red] {exc}")
        raise typer.Exit(code=1)


def _fmt_tokens(value: int | float) -> str:
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for cassette events"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
) -> None:
    """Inspect and validate agent-cassette JSONL files."""
    configure_logging(level=log_level, json_output=json_logs)


@app.command()
def show(
    path: Path = typer.Argument(..., help="Cassette JSONL file"),
    call: Optional[str] = typer.Option(None, "--call", help="Only show entries for this call name"),
) -> None:
    """List recorded entries in file order."""
    entries = _load_or_exit(path)
    table = Table(title=str(path), show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Call")
    table.add_column("Hash")
    table.add_column("Outcome")
    table.add_column("Latency ms", justify="right")
    table.add_column("Tokens", justify="right")

    shown = 0
    for position, entry in enumerate(entries, start=1):
        if call is not None and entry.call_name != call:
            continue
        shown += 1
        if entry.error is None:
            outcome = "[green]ok[/green]"
        else:
            outcome = f"[red]{entry.error.name}[/red]"
        latency = "n/a" if entry.latency_ms is None else str(entry.latency_ms)
        table.add_row(
            str(position),
            entry.call_name,
            entry.request_hash[:12],
            outcome,
            latency,
            _fmt_tokens(entry.total_tokens),
        )
    console.print(table)
    console.print(f"{shown} of {len(entries)} entries")


@app.command()
def stats(path: Path = typer.Argument(..., help="Cassette JSONL file")) -> None:
    """Summarize entries, failures and tokens per call name."""
    entries = _load_or_exit(path)
    counts: Counter[str] = Counter()
    errors: Counter[str] = Counter()
    keys: dict[str, set[str]] = {}
    tokens: dict[str, int | float] = {}
    for entry in entries:
        counts[entry.call_name] += 1
        if entry.error is not None:
            errors[entry.call_name] += 1
        keys.setdefault(entry.call_name, set()).add(entry.request_hash)
        tokens[entry.call_name] = tokens.get(entry.call_name, 0) + entry.total_tokens

    table = Table(title="Cassette Stats", show_lines=False)
    table.add_column("Call")
    table.add_column("Entries", justify="right")
    table.add_column("Distinct", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Tokens", justify="right")
    for call_name in sorted(counts):
        table.add_row(
            call_name,
            str(counts[call_name]),
            str(len(keys[call_name])),
            str(errors[call_name]),
            _fmt_tokens(tokens[call_name]),
        )
    console.print(table)
    total_tokens = sum(tokens.values())
    console.print(f"Total entries: {len(entries)}  total tokens: {_fmt_tokens(total_tokens)}")


@app.command()
def check(path: Path = typer.Argument(..., help="Cassette JSONL file")) -> None:
    """Validate every record; exit 1 if the cassette cannot be replayed."""
    entries = _load_or_exit(path)
    if has_torn_tail(path):
        console.print(
            "[yellow]Warning:[/yellow] last line is not newline-terminated; "
            "a truncated record was skipped or the file needs a trailing newline"
        )
    console.print(f"[green]OK[/green] {len(entries)} entries")
