"""
Command-line interface for studygen.

Commands:
    summarize  - Summarize a text document
    flashcards - Generate flashcards from a text document
    mindmap    - Generate a markdown mindmap
    chat       - Ask a question about a document
    status     - Show credential pool and cache status
    health     - Check that the generation endpoint responds
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

app = typer.Typer(
    name="studygen",
    help="Summaries, flashcards, mindmaps and answers from your study documents",
    add_completion=False,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    """Configure logging before any command runs."""
    from studygen.config import settings

    logging.basicConfig(
        level="DEBUG" if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_document(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _run(action):
    """Run an artifact action, turning generation errors into a friendly exit."""
    from studygen.errors import StudygenError
    from studygen.study import as_error

    try:
        with console.status("[bold green]Generating..."):
            return action()
    except (StudygenError, ValueError) as e:
        if isinstance(e, StudygenError):
            console.print(f"[red]{as_error(e).message}[/red]")
        console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(1)


def _cached_note(cached: bool) -> None:
    if cached:
        console.print("[dim](from cache)[/dim]")


@app.command()
def summarize(
    path: Path = typer.Argument(..., help="Plain-text document"),
    style: str = typer.Option("conceptual", help="conceptual | mathematical | bullet-points | detailed"),
    depth: str = typer.Option("intermediate", help="basic | intermediate | advanced"),
    length: str = typer.Option("medium", help="short | medium | long"),
) -> None:
    """Summarize a document."""
    from pydantic import ValidationError

    from studygen.artifacts import SummaryOptions
    from studygen.study import StudyService

    document = _read_document(path)
    try:
        options = SummaryOptions(style=style, depth=depth, length=length)
    except ValidationError as e:
        console.print(f"[red]Invalid summary options:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    result = _run(lambda: StudyService().summarize(document, options))
    console.print(Markdown(result.artifact.text))
    _cached_note(result.cached)


@app.command()
def flashcards(
    path: Path = typer.Argument(..., help="Plain-text document"),
    count: int = typer.Option(10, min=5, max=20, help="Number of flashcards"),
) -> None:
    """Generate flashcards."""
    from studygen.artifacts import FlashcardOptions
    from studygen.study import StudyService

    document = _read_document(path)
    result = _run(lambda: StudyService().flashcards(document, FlashcardOptions(count=count)))

    table = Table(title=f"Flashcards ({len(result.artifact.cards)})")
    table.add_column("#", style="dim")
    table.add_column("Question", style="cyan")
    table.add_column("Answer", style="green")
    for i, card in enumerate(result.artifact.cards, start=1):
        table.add_row(str(i), card.question, card.answer)
    console.print(table)
    _cached_note(result.cached)


@app.command()
def mindmap(path: Path = typer.Argument(..., help="Plain-text document")) -> None:
    """Generate a markdown mindmap."""
    from studygen.study import StudyService

    document = _read_document(path)
    result = _run(lambda: StudyService().mindmap(document))
    console.print(Markdown(result.artifact.markdown))
    _cached_note(result.cached)


@app.command()
def chat(
    path: Path = typer.Argument(..., help="Plain-text document"),
    question: str = typer.Argument(..., help="Question to ask"),
    show_context: bool = typer.Option(False, "--show-context", help="Print the retrieved context"),
) -> None:
    """Ask a question about a document."""
    from studygen.config import settings
    from studygen.retrieval.scorer import retrieve_context
    from studygen.study import StudyService

    document = _read_document(path)
    console.print(f"[blue]Question:[/blue] {question}\n")

    if show_context:
        context = retrieve_context(question, document, k=settings.retrieval_top_k)
        console.print(f"[dim]{context}[/dim]\n")

    result = _run(lambda: StudyService().ask(question, document))
    console.print("[green]Answer:[/green]")
    console.print(Markdown(result.artifact.text))


@app.command()
def status() -> None:
    """Show credential pool and cache status."""
    from studygen.services import get_credential_pool, get_result_cache

    try:
        pool_status = get_credential_pool().status()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    cache_stats = get_result_cache().stats()

    table = Table(title="studygen status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Credentials", str(pool_status.total))
    table.add_row("Available", str(pool_status.available))
    table.add_row("Blocked", str(pool_status.blocked))
    table.add_row("Cached artifacts", f"{cache_stats.size}/{cache_stats.max_entries}")
    console.print(table)


@app.command()
def health(timeout: float = typer.Option(30.0, help="Health check timeout in seconds")) -> None:
    """Check that the generation endpoint responds."""
    from studygen.services import get_credential_pool, get_generation_client

    try:
        credential = get_credential_pool().current()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    healthy, message = get_generation_client().health_check(credential, timeout=timeout)
    if healthy:
        console.print(f"[green]✓ {message}[/green]")
    else:
        console.print(f"[red]✗ {message}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
