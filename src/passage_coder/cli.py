"""Command-line interface for Passage Coder."""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from passage_coder import __version__

console = Console()


def _preview(text: str, width: int = 80) -> str:
    text = text.replace("\n", " ").replace("\u001e", " | ")
    return text[:width] + ("..." if len(text) > width else "")


def _passage_table(session, title: str = "Passages") -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Id", style="cyan")
    table.add_column("Codes", style="green")
    table.add_column("Text")

    for passage in session.passages:
        codes = "; ".join(session.codes_for(passage.id))
        style = "bold" if passage.is_highlighted else None
        table.add_row(str(passage.order), passage.id, codes, _preview(passage.text), style=style)
    return table


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """Passage Coder - LLM-assisted qualitative coding of text passages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@main.command()
def status() -> None:
    """Check system status (LLM backend, models, etc.)."""
    from passage_coder.config import get_settings
    from passage_coder.llm import LLMClient

    console.print("[bold]Passage Coder Status[/bold]\n")

    settings = get_settings()
    console.print(f"Provider: {settings.llm_provider}")
    console.print(f"Highlight model: {settings.highlight_model}")
    console.print(f"Suggestion model: {settings.suggestion_model}")
    console.print(f"AI suggestions: {'enabled' if settings.ai_suggestions_enabled else 'disabled'}")

    if asyncio.run(LLMClient(settings=settings).is_available()):
        console.print("[green]✓[/green] LLM backend available")
    else:
        console.print("[red]✗[/red] LLM backend not reachable")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--column", "-c", type=int, default=0, help="Column to code in a CSV/TSV file")
@click.option("--header", is_flag=True, help="First row of a CSV/TSV file is a header")
def ingest(path: str, column: int, header: bool) -> None:
    """Load a text or CSV file and show its passages."""
    from passage_coder.ingest.loader import column_names, load_csv_rows, load_source

    file_path = Path(path)
    console.print(f"[bold]Ingesting:[/bold] {file_path.name}")

    with console.status("Loading source..."):
        session = load_source(file_path, column=column, has_header=header)

    if session.row_structured:
        names = column_names(load_csv_rows(file_path), header)
        console.print(f"[dim]Columns: {', '.join(names)}[/dim]")
        console.print(f"[green]✓[/green] Loaded {len(session.passages):,} rows from column {column}\n")
    else:
        console.print(f"[green]✓[/green] Loaded {len(session.document_text()):,} characters\n")

    console.print(_passage_table(session))


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--words", "-w", type=int, required=True, help="Minimum number of words to keep")
@click.option("--head/--tail", default=False, help="Take the window from the start or the end")
def window(path: str, words: int, head: bool) -> None:
    """Print a sentence-aware window from the start or end of a text."""
    from passage_coder.config import get_settings
    from passage_coder.context.window import string_head, string_tail
    from passage_coder.ingest.loader import load_text

    text = load_text(Path(path))
    cut = get_settings().cut_window_size
    result = string_head(text, words, cut) if head else string_tail(text, words, cut)
    console.print(result, markup=False, highlight=False)


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--column", "-c", type=int, default=0, help="Column to code in a CSV/TSV file")
@click.option("--header", is_flag=True, help="First row of a CSV/TSV file is a header")
@click.option("--passage-index", "-p", type=int, default=0, help="Passage to start searching from")
def suggest(path: str, column: int, header: bool, passage_index: int) -> None:
    """Ask the LLM for the next passage worth coding."""
    from passage_coder.ingest.loader import load_source
    from passage_coder.llm import get_llm_client
    from passage_coder.workbench import CodingWorkbench

    session = load_source(Path(path), column=column, has_header=header)
    start = session.passage_at(passage_index)
    if start is None:
        raise click.BadParameter(f"No passage at index {passage_index}", param_hint="--passage-index")

    workbench = CodingWorkbench(session, get_llm_client())

    async def _run():
        return await workbench.suggestions.fetch_highlight_suggestion_after(start.id)

    with console.status("Searching for a highlight suggestion..."):
        found = asyncio.run(_run())

    if not found:
        console.print("[yellow]No highlight suggestion found[/yellow]")
        return

    suggestion = session.get_passage(found).next_highlight_suggestion
    console.print(f"[bold]Suggestion in {found}[/bold] at offset {suggestion.start_index}")
    console.print(f"  {_preview(suggestion.passage, 200)}", markup=False)
    console.print(f"  [green]Codes:[/green] {', '.join(suggestion.codes)}")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--start", "-s", type=int, required=True, help="Start offset of the span")
@click.option("--end", "-e", type=int, required=True, help="End offset of the span")
@click.option("--label", "-l", help="Labels to attach, separated by ';'")
@click.option("--no-llm", is_flag=True, help="Do not ask for suggestions")
def code(path: str, start: int, end: int, label: str | None, no_llm: bool) -> None:
    """Highlight a span of a text file and optionally code it."""
    from passage_coder.config import get_settings
    from passage_coder.errors import StructuralError
    from passage_coder.ingest.loader import load_text
    from passage_coder.llm import LLMClient
    from passage_coder.session import CodingSession
    from passage_coder.workbench import CodingWorkbench

    session = CodingSession.from_text(load_text(Path(path)))
    settings = get_settings()
    if no_llm:
        settings = settings.model_copy(update={"ai_suggestions_enabled": False})
    workbench = CodingWorkbench(session, LLMClient(settings=settings), settings=settings)

    async def _run() -> None:
        passage_id = workbench.highlight(session.passages[0].id, start, end)
        if label:
            workbench.commit_code(session.active_code_id, label)
        await workbench.wait_idle()
        console.print(f"[green]✓[/green] Highlighted {passage_id}")

    try:
        asyncio.run(_run())
    except StructuralError as e:
        console.print(f"[red]Cannot highlight span:[/red] {e}")
        raise SystemExit(1)

    console.print(_passage_table(session))
    if session.codebook.labels:
        console.print(f"\n[bold]Codebook:[/bold] {', '.join(session.codebook.labels)}")


def _parse_span(value: str) -> tuple[int, int, str]:
    parts = value.split(":", 2)
    if len(parts) != 3:
        raise click.BadParameter(f"Expected START:END:LABELS, got {value!r}", param_hint="--span")
    try:
        return int(parts[0]), int(parts[1]), parts[2]
    except ValueError:
        raise click.BadParameter(f"Offsets must be integers in {value!r}", param_hint="--span")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--column", "-c", type=int, default=0, help="Column to code in a CSV/TSV file")
@click.option("--header", is_flag=True, help="First row of a CSV/TSV file is a header")
@click.option("--span", "spans", multiple=True, help="START:END:LABELS document span to code (repeatable)")
@click.option("--output", "-o", type=click.Path(file_okay=False), default=".", help="Output directory")
def export(path: str, column: int, header: bool, spans: tuple[str, ...], output: str) -> None:
    """Code spans of a document and export passages and codebook as CSV."""
    from passage_coder.errors import StructuralError
    from passage_coder.export import codebook_counts, write_results
    from passage_coder.ingest.loader import load_source
    from passage_coder.segment.codes import CodeManager
    from passage_coder.segment.segmenter import PassageSegmenter

    session = load_source(Path(path), column=column, has_header=header)
    segmenter = PassageSegmenter(session)
    code_manager = CodeManager(session)

    try:
        for start, end, labels in (_parse_span(s) for s in spans):
            passage, offset = session.locate(min(start, end))
            segmenter.create_span(passage.id, offset, offset + abs(end - start))
            code_manager.update_code(session.active_code_id, labels)
    except StructuralError as e:
        console.print(f"[red]Cannot code span:[/red] {e}")
        raise SystemExit(1)

    for written in write_results({column: session}, Path(output)):
        console.print(f"[green]✓[/green] Wrote {written}")

    table = Table(title="Codebook")
    table.add_column("Code", style="green")
    table.add_column("Count", justify="right")
    for label, count in codebook_counts(session):
        table.add_row(label, str(count))
    console.print(table)


if __name__ == "__main__":
    main()
