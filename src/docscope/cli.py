"""Command line interface for DocScope."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from docscope.compare.report import compare_texts
from docscope.config import AppConfig, split_csv
from docscope.errors import DocScopeError
from docscope.ingestion.extractors import extract_text
from docscope.models import ScanReport
from docscope.service import DocScopeService

console = Console()
app = typer.Typer(help="DocScope - index, search and compare local documents")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_service(folders: List[str], exclude: Optional[str]) -> DocScopeService:
    config = AppConfig.from_env()
    config.folders = folders
    if exclude is not None:
        config.exclude_patterns = split_csv(exclude)
    return DocScopeService(config)


def _index(service: DocScopeService) -> ScanReport:
    try:
        return asyncio.run(service.initialize(watch_enabled=False))
    except DocScopeError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def index(
    folders: List[str] = typer.Argument(..., help="Folders to index; '~' and '*' are expanded."),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-x", help="Comma separated exclude patterns"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index documents and print statistics."""
    _setup_logging(verbose)
    service = _build_service(folders, exclude)
    report = _index(service)
    stats = service.stats()

    console.print(
        f"Inserted: {report.inserted}, updated: {report.updated}, "
        f"skipped: {report.skipped}, failed: {report.failed}"
    )
    console.print(
        f"[bold]{stats.total_documents}[/bold] documents, "
        f"{stats.total_size} bytes, {stats.total_words} words"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for (case-insensitive)"),
    folder: List[str] = typer.Option(..., "--folder", "-f", help="Folder to index before searching"),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-x", help="Comma separated exclude patterns"),
    limit: int = typer.Option(3, help="Matches shown per document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search indexed documents for a literal phrase."""
    _setup_logging(verbose)
    if not query.strip():
        raise typer.BadParameter("Empty query")

    service = _build_service(folder, exclude)
    _index(service)
    results = service.search(query)
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Matches")
    table.add_column("Position")
    table.add_column("Context")

    for result in results:
        for match in result.matches[:limit]:
            table.add_row(
                result.relative_path,
                str(len(result.matches)),
                str(match.position),
                match.context.replace("\n", " "),
            )

    console.print(table)


@app.command()
def duplicates(
    folder: List[str] = typer.Option(..., "--folder", "-f", help="Folder to index"),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-x", help="Comma separated exclude patterns"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List filenames that appear in more than one place."""
    _setup_logging(verbose)
    service = _build_service(folder, exclude)
    _index(service)
    groups = service.find_duplicates()
    if not groups:
        console.print("[green]No duplicate filenames found.[/green]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Filename")
    table.add_column("Count")
    table.add_column("Locations")
    for group in groups:
        locations = "\n".join(entry.relative_path for entry in group.documents)
        table.add_row(group.filename, str(group.count), locations)
    console.print(table)


@app.command()
def compare(
    first: Path = typer.Argument(..., exists=True, dir_okay=False, help="First document"),
    second: Path = typer.Argument(..., exists=True, dir_okay=False, help="Second document"),
    html: Optional[Path] = typer.Option(None, "--html", help="Write the HTML report to this file"),
) -> None:
    """Compare two documents line by line."""
    try:
        text_a = extract_text(first)
        text_b = extract_text(second)
    except DocScopeError as exc:
        raise typer.BadParameter(str(exc)) from exc

    report = compare_texts(text_a, text_b, first.name, second.name)
    stats = report.stats

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Similarity")
    table.add_column("Added")
    table.add_column("Removed")
    table.add_column("Unchanged")
    table.add_row(
        f"{stats.similarity_percent}%",
        f"+{stats.added_lines} lines ({stats.added_words} words)",
        f"-{stats.removed_lines} lines ({stats.removed_words} words)",
        f"{stats.unchanged_lines} lines",
    )
    console.print(table)
    if report.identical:
        console.print("[green]Documents are identical.[/green]")

    if html is not None:
        html.parent.mkdir(parents=True, exist_ok=True)
        html.write_text(report.html, encoding="utf-8")
        console.print(f"Report written to [bold]{html}[/bold]")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host interface"),
    port: Optional[int] = typer.Option(None, help="Server port"),
    watch: Optional[bool] = typer.Option(None, "--watch/--no-watch", help="Watch folders for changes"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from docscope.web.app import create_app

    config = AppConfig.from_env()
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port
    if watch is not None:
        config.watch = watch

    console.print(f"Starting DocScope on http://{config.host}:{config.port}")
    uvicorn.run(create_app(config), host=config.host, port=config.port, reload=False, log_level="info")


if __name__ == "__main__":  # pragma: no cover
    app()
