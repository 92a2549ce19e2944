"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from statement_forge.clients import providers
from statement_forge.config import AppConfig, load_config
from statement_forge.errors import StatementForgeError
from statement_forge.models.edit import EditRequest, SuggestionType
from statement_forge.models.generation import ConvertRequest, GenerationRequest
from statement_forge.pipeline.dispatcher import presets_from_config
from statement_forge.pipeline.sentence_converter import SentenceConverter
from statement_forge.pipeline.statement_generator import StatementGenerator
from statement_forge.pipeline.surgical_editor import SurgicalEditor
from statement_forge.prompts.defaults import CATEGORY_HEADINGS, MPA_HEADINGS

app = typer.Typer(
    name="statement-forge",
    help="LLM-assisted EPB and award statement writing",
    no_args_is_help=True,
)
console = Console()


def _setup(config_path: Path | None, verbose: bool) -> AppConfig:
    config = load_config(config_path)
    level = logging.DEBUG if verbose else config.server.log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return config


def _fail(exc: StatementForgeError) -> None:
    console.print(f"[red]{exc.message}[/red]")
    raise typer.Exit(1)


@app.command()
def generate(
    request_file: Path = typer.Argument(help="JSON file with a generation request (camelCase fields)"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the result JSON here"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Generate award or EPB statements from a request file."""
    if not request_file.exists():
        console.print(f"[red]Request file not found: {request_file}[/red]")
        raise typer.Exit(1)
    config = _setup(config_path, verbose)
    try:
        request = GenerationRequest.model_validate_json(request_file.read_text(encoding="utf-8"))
    except ValueError as exc:
        console.print(f"[red]Invalid request: {exc}[/red]")
        raise typer.Exit(1)

    try:
        client = providers.resolve(
            request.model,
            timeout=config.llm.timeout,
            max_attempts=config.llm.max_attempts,
        )
    except StatementForgeError as exc:
        _fail(exc)

    generator = StatementGenerator(client, config.generation, config.llm.timeout)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(f"Generating with {client.model}...", total=None)
        result = asyncio.run(generator.generate(request))

    for cat in result.statements:
        heading = CATEGORY_HEADINGS.get(cat.category) or MPA_HEADINGS.get(cat.category, cat.category)
        table = Table(title=heading, show_lines=True)
        table.add_column("#", style="dim", width=3)
        table.add_column("Versions")
        for i, group in enumerate(cat.statement_groups, start=1):
            table.add_row(str(i), "\n\n".join(group.versions))
        console.print(table)

    for failure in result.failures:
        console.print(f"[yellow]{failure.category} {failure.accomplishment_ids}: {failure.error}[/yellow]")

    usage = result.usage
    console.print(
        f"[dim]{usage.get('calls', 0)} call(s), {usage.get('inputTokens', 0)} in / "
        f"{usage.get('outputTokens', 0)} out tokens, ~${usage.get('estimatedCostUsd', 0):.4f}[/dim]"
    )

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        console.print(f"[green]Saved: {output}[/green]")


@app.command()
def edit(
    text: str = typer.Option(..., "--text", help="Current document text"),
    highlight: str = typer.Option(..., "--highlight", help="Text the suggestion targets"),
    replace: str = typer.Option(None, "--replace", help="Replacement text (omit to delete)"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Apply one delete/replace suggestion to a document."""
    config = _setup(config_path, verbose)
    try:
        request = EditRequest(
            current_text=text,
            highlighted_text=highlight,
            suggestion_type=SuggestionType.REPLACE if replace is not None else SuggestionType.DELETE,
            replacement_text=replace,
        )
    except ValueError as exc:
        console.print(f"[red]Invalid edit: {exc}[/red]")
        raise typer.Exit(1)

    editor = SurgicalEditor(
        lambda: providers.resolve(
            config.llm.feedback_model,
            timeout=config.llm.timeout,
            max_attempts=config.llm.max_attempts,
        ),
        config.edit,
        presets_from_config(config.generation, config.llm.timeout)["surgical"],
    )
    outcome = asyncio.run(editor.apply(request))

    if outcome.aborted:
        console.print(Panel(outcome.reason or "", title="Aborted", border_style="red"))
        raise typer.Exit(1)
    title = f"Applied ({outcome.tier.value})" if outcome.tier else "Applied"
    if outcome.needs_review:
        console.print(f"[yellow]Review needed: {outcome.review_reason}[/yellow]")
    console.print(Panel(outcome.new_text or "", title=title, border_style="green"))


@app.command()
def convert(
    statement: str = typer.Argument(help="Statement to convert"),
    sentences: int = typer.Option(..., "--sentences", "-n", min=1, max=5, help="Target sentence count"),
    model: str = typer.Option("gemini-2.0-flash", "--model", "-m", help="Model id"),
    rank: str = typer.Option("", "--rank", help="Nominee rank"),
    name: str = typer.Option("", "--name", help="Nominee name"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Rewrite a statement to a different number of sentences."""
    config = _setup(config_path, verbose)
    request = ConvertRequest(
        statement=statement,
        target_sentences=sentences,
        model=model,
        nominee_rank=rank,
        nominee_name=name,
    )
    try:
        client = providers.resolve(
            model, timeout=config.llm.timeout, max_attempts=config.llm.max_attempts
        )
        converter = SentenceConverter(client, config.generation, config.llm.timeout)
        result = asyncio.run(converter.convert(request))
    except StatementForgeError as exc:
        _fail(exc)

    if result.fallback:
        console.print("[yellow]Could not parse new versions; original returned.[/yellow]")
    for i, version in enumerate(result.versions, start=1):
        console.print(Panel(version, title=f"Version {i}"))


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int = typer.Option(None, "--port", help="Port (default from config)"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from statement_forge.api import create_app

    config = _setup(config_path, verbose=False)
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    app()
