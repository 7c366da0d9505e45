"""Command-line interface for ytfeedback.

Runs the API server, deploys the schema, normalizes saved model responses
and lists stored evaluations.
"""

from __future__ import annotations

import asyncio
import importlib.metadata as _metadata
import json
import logging
import sys
from typing import Any

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from ytfeedback.config import get_settings
from ytfeedback.core.errors import FeedbackError
from ytfeedback.core.models.evaluation import (
    EvaluationKind,
    NormalizedAbility,
    NormalizedAccuracy,
    NormalizedProject,
    NormalizerKind,
    StructuredFeedback,
)
from ytfeedback.core.utils.constants import DEFAULT_HISTORY_LIMIT
from ytfeedback.core.utils.json_utils import json_serializer
from ytfeedback.ingestion.extractor import ResponseExtractor
from ytfeedback.ingestion.normalizer import EvaluationNormalizer

__all__: list[str] = ["main"]

FEEDBACK_THEME = Theme(
    {
        "primary": "bright_blue",
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
        "muted": "dim",
    }
)

console = Console(theme=FEEDBACK_THEME)


def _get_version() -> str:
    """Return the installed version of ytfeedback."""
    try:
        return _metadata.version("ytfeedback")
    except _metadata.PackageNotFoundError:
        return "0.1.0-dev"


def _fail(message: str, json_output: bool = False) -> None:
    if json_output:
        click.echo(json.dumps({"error": message}, indent=2))
    else:
        console.print(f"[error]✗ {escape(message)}[/error]")
    raise click.exceptions.Exit(1)


@click.group(
    context_settings={"help_option_names": ["-h", "--help"], "max_content_width": 120},
    invoke_without_command=True,
)
@click.version_option(_get_version(), message="ytfeedback v%(version)s")
@click.pass_context
def main(ctx: click.Context) -> None:
    """ytfeedback: AI feedback for explanation videos.

    \b
    Examples:
      ytfeedback serve --port 3001
      ytfeedback init-db
      ytfeedback normalize response.txt --kind accuracy
      ytfeedback history student@example.com --kind project
    """
    # Load environment variables from .env file, but don't override existing ones
    load_dotenv(override=False)
    logging.basicConfig(level=get_settings().log_level)

    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                "[primary]ytfeedback[/primary]\n\n"
                "Evaluate concept and project explanation videos.\n\n"
                "Run [primary]ytfeedback --help[/primary] for available commands.",
                border_style="bright_blue",
            )
        )


@main.command()
@click.option("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Port (default: PORT or 3001)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[muted]Serving on http://{host}:{port}[/muted]")
    uvicorn.run("ytfeedback.api:app", host=host, port=port, reload=reload)


@main.command("init-db")
def init_db() -> None:
    """Create the evaluation tables and indexes."""
    from ytfeedback.database.client import FeedbackDBClient

    settings = get_settings()
    if not settings.database_url:
        _fail("DATABASE_URL is not set")

    async def _deploy() -> dict[str, Any]:
        client = FeedbackDBClient(settings.database_url, ssl=settings.database_ssl)
        try:
            return await client.deploy_schema()
        finally:
            await client.close()

    try:
        result = asyncio.run(_deploy())
    except FeedbackError as e:
        _fail(str(e))
    console.print(f"[success]✓ Schema deployed ({result['statements']} statements)[/success]")


@main.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option(
    "--kind",
    "-k",
    type=click.Choice([kind.value for kind in NormalizerKind]),
    default=NormalizerKind.ACCURACY.value,
    show_default=True,
    help="Result to extract from the response",
)
@click.option("--json", "json_output", is_flag=True, help="Output JSON instead of rich text")
def normalize(source, kind: str, json_output: bool) -> None:
    """Normalize a saved model response.

    SOURCE is a file holding the raw model output, or - for stdin.
    """
    extracted = ResponseExtractor().extract(source.read())
    result = EvaluationNormalizer().normalize(kind, extracted)

    if json_output:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    if extracted.parsed is None:
        console.print("[warning]⚠ No JSON found in the response[/warning]")
    _render_result(result)


def _feedback_text(feedback: StructuredFeedback | str) -> str:
    if isinstance(feedback, StructuredFeedback):
        return "\n".join(f"{key}: {value}" for key, value in feedback.to_external().items())
    return feedback or "-"


def _render_result(result: NormalizedAccuracy | NormalizedAbility | NormalizedProject) -> None:
    table = Table(show_header=False, border_style="muted")
    table.add_column("Field", style="primary")
    table.add_column("Value")
    table.add_row("Shape", result.shape.value)

    if isinstance(result, NormalizedAccuracy):
        table.add_row("Score", "-" if result.score is None else f"{result.score:g}")
        table.add_row("Feedback", Text(_feedback_text(result.feedback)))
    elif isinstance(result, NormalizedAbility):
        table.add_row("Level", Text(result.level or "-"))
        table.add_row("Feedback", Text(_feedback_text(result.feedback)))
    else:
        table.add_row("Summary", Text(result.summary_text or "-"))
        table.add_row("Feedback", Text(result.feedback_text or "-"))

    console.print(table)


@main.command()
@click.argument("email")
@click.option(
    "--kind",
    "-k",
    type=click.Choice([kind.value for kind in EvaluationKind]),
    default=EvaluationKind.CONCEPT.value,
    show_default=True,
)
@click.option("--limit", "-l", default=DEFAULT_HISTORY_LIMIT, show_default=True, help="Rows to show")
@click.option("--json", "json_output", is_flag=True, help="Output JSON instead of rich text")
def history(email: str, kind: str, limit: int, json_output: bool) -> None:
    """List stored evaluations for EMAIL, newest first."""
    from ytfeedback.database.client import FeedbackDBClient
    from ytfeedback.database.repository import EvaluationRepository
    from ytfeedback.evaluation.service import EvaluationService

    settings = get_settings()
    if not settings.database_url:
        _fail("DATABASE_URL is not set", json_output)

    async def _fetch() -> list[dict[str, Any]]:
        client = FeedbackDBClient(settings.database_url, ssl=settings.database_ssl)
        try:
            service = EvaluationService(EvaluationRepository(client), settings)
            return await service.history(kind, email, limit)
        finally:
            await client.close()

    try:
        rows = asyncio.run(_fetch())
    except FeedbackError as e:
        _fail(str(e), json_output)

    if json_output:
        click.echo(json.dumps(rows, indent=2, default=json_serializer, ensure_ascii=False))
        return

    if not rows:
        console.print(f"[muted]No {kind} evaluations for {email}[/muted]")
        return

    table = Table(title=f"{kind.capitalize()} evaluations for {email}", border_style="muted")
    table.add_column("ID", justify="right")
    table.add_column("Created")
    table.add_column("Project")
    if kind == EvaluationKind.CONCEPT.value:
        table.add_column("Page")
        table.add_column("Accuracy", justify="right")
        table.add_column("Ability")
        for row in rows:
            score = row.get("accuracy_score")
            table.add_row(
                str(row["id"]),
                str(row.get("created_at") or ""),
                row.get("project_name") or "",
                row.get("page_name") or "",
                "-" if score is None else f"{score:g}",
                row.get("ability_level") or "",
            )
    else:
        table.add_column("Summary")
        for row in rows:
            table.add_row(
                str(row["id"]),
                str(row.get("created_at") or ""),
                row.get("project_name") or "",
                row.get("evaluation_summary_text") or "",
            )
    console.print(table)


if __name__ == "__main__":
    sys.exit(main())
