"""Command-line interface for Research Digest."""

import json
import logging
import sys
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from research_digest.config.settings import get_settings
from research_digest.models import EventType, FinalResult, StructuredDocument

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="research-digest",
    help="Research Digest - search, structure and summarize the web on a topic",
    add_completion=False,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, stream=sys.stderr)


@app.command()
def research(
    topic: str = typer.Argument(..., help="Topic to research"),
    count: int = typer.Option(
        None,
        "--count",
        "-n",
        min=1,
        help="Number of documents to fetch and summarize (default: from settings)",
    ),
    quick: bool = typer.Option(
        False,
        "--quick",
        "-q",
        help="Only search and produce the quick summary",
    ),
    stream: bool = typer.Option(
        False,
        "--stream",
        help="Print progress events as the stages complete",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the final result as JSON to this file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Research a topic and print the summaries."""
    from research_digest.pipeline.service import ResearchPipelineError, create_research_service

    _configure_logging(verbose)

    console.print(
        Panel.fit(
            f"[bold blue]Research Digest[/bold blue]\nTopic: {topic}",
            border_style="blue",
        )
    )

    try:
        with create_research_service() as service:
            if stream:
                result = _consume_stream(service.run_streaming(topic, count, quick))
            else:
                console.print("[yellow]Researching... (this may take a few minutes)[/yellow]\n")
                result = service.run(topic, count, quick)
    except ResearchPipelineError as e:
        console.print(f"\n[red]Research failed in {e.stage}:[/red] {e.message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    if result is None:
        sys.exit(1)

    _display_result(result)

    if output is not None:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        console.print(f"\n[green]Result saved to:[/green] {output}")


def _consume_stream(events) -> FinalResult | None:
    """Print progress events and return the final result, if any."""
    for event in events:
        if event.event_type == EventType.COMPLETE:
            console.print("[green]Research complete[/green]\n")
            return FinalResult.model_validate_json(event.data)
        if event.event_type == EventType.ERROR:
            payload = json.loads(event.data or "{}")
            console.print(f"[red]Research failed in {payload.get('stage')}:[/red] {payload.get('message')}")
            return None

        preview = (event.data or "")[:80].replace("\n", " ")
        console.print(f"[dim]{event.event_type.value}[/dim] {preview}")
    return None


@app.command()
def extract(
    url: str = typer.Argument(..., help="Page URL to fetch and structure"),
    as_json: bool = typer.Option(False, "--json", help="Print the document as JSON"),
) -> None:
    """Fetch one page and show its structured sections."""
    from research_digest.extraction.formatter import format_document
    from research_digest.extraction.structurer import ExtractionConfig, structure_document
    from research_digest.fetching.http_fetcher import PageFetcher

    settings = get_settings()
    fetcher = PageFetcher(settings)
    try:
        html = fetcher.fetch(url)
    finally:
        fetcher.close()

    if not html:
        console.print(f"[red]Could not fetch:[/red] {url}")
        sys.exit(1)

    document = structure_document(html, url, ExtractionConfig.from_settings(settings))
    if document is None:
        console.print(f"[yellow]No usable content extracted from:[/yellow] {url}")
        sys.exit(1)

    if as_json:
        console.print_json(document.model_dump_json())
        return

    _display_document_table([document])
    console.print(format_document(document))


@app.command()
def info() -> None:
    """Display system information and configuration."""
    from research_digest import __version__
    from research_digest.llm.client import get_llm_settings

    settings = get_settings()
    llm_settings = get_llm_settings()

    console.print(
        Panel.fit(
            "[bold blue]Research Digest[/bold blue]",
            border_style="blue",
        )
    )

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("LLM Model", llm_settings.model_name)
    table.add_row("Ollama URL", llm_settings.ollama_base_url)
    table.add_row("SearxNG URL", settings.searxng_base_url)
    table.add_row("Default Documents", str(settings.default_result_count))
    table.add_row("Fetch Workers", str(settings.fetch_workers))
    table.add_row("Fetch Timeout", f"{settings.fetch_timeout_seconds:.0f}s")
    table.add_row("Section Length", f"{settings.min_section_chars}-{settings.max_section_chars} chars")

    console.print(table)


def _display_document_table(documents: list[StructuredDocument]) -> None:
    table = Table(title="Documents")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Sections", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Engine", style="dim")

    for i, document in enumerate(documents, 1):
        table.add_row(
            str(i),
            document.title,
            str(len(document.sections)),
            str(document.total_characters),
            document.engine or "-",
        )
    console.print(table)


def _display_result(result: FinalResult) -> None:
    """Display the summaries and sources of a research run.

    Args:
        result: The final result of the run.
    """
    console.print(f"\n[dim]Query:[/dim] {result.optimized_query or result.topic}")
    console.print(f"[dim]Search results:[/dim] {len(result.search_results)}")

    if result.quick_summary:
        console.print(Panel(Markdown(result.quick_summary), title="Quick Summary", border_style="cyan"))

    if result.structured_documents:
        _display_document_table(result.structured_documents)

    if result.final_summary:
        console.print(Panel(Markdown(result.final_summary), title="Summary", border_style="green"))

    if result.stage_errors:
        console.print(f"\n[yellow]Stage errors:[/yellow] {len(result.stage_errors)}")
        for stage, message in result.stage_errors.items():
            console.print(f"  [dim]{stage}:[/dim] {message}")

    total = sum(result.stage_durations.values())
    console.print(f"\n[dim]Stages ran in {total:.1f}s[/dim]")


if __name__ == "__main__":
    app()
