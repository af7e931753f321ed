"""
Root Typer application for the crypto-pulse CLI.
"""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer import Typer

from cryptopulse.core.errors import CryptoPulseError
from cryptopulse.core.logging import configure_logging
from cryptopulse.core.settings import get_settings
from cryptopulse.orchestration import WorkflowRunner
from cryptopulse.orchestration.shapes import required_fields, type_name
from cryptopulse.workflows import crypto

app = Typer(
    name="cryptopulse",
    help="crypto-pulse — crypto prices with tweet sentiment, delivered to Telegram.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from cryptopulse import __version__

        try:
            v = pkg_version("crypto-pulse")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"crypto-pulse {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """crypto-pulse CLI — run and inspect the crypto workflow."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("run")
def run_workflow(
    ids: str = typer.Option(..., "--ids", help="Comma-separated asset ids, e.g. bitcoin,ethereum"),
    vs_currencies: str = typer.Option("usd", "--vs-currencies", help="Comma-separated quote currencies"),
    json_out: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    """Fetch prices and sentiment, then send the summary to Telegram."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_format == "json",
    )

    try:
        workflow = crypto.build_from_settings(settings)
        result = WorkflowRunner().run(workflow, {"ids": ids, "vs_currencies": vs_currencies})
    except CryptoPulseError as exc:
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {escape(exc.message)}")
        raise typer.Exit(code=1) from exc

    if json_out:
        payload = {"run_id": result.run_id, **result.output}
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    console.print(result.output["summary"], markup=False, highlight=False, emoji=False)
    status = "[green]sent[/green]" if result.output["sent"] else "[yellow]not sent[/yellow]"
    console.print(f"\nTelegram: {status}")


@app.command("describe")
def describe_workflow() -> None:
    """Show the crypto workflow's steps and the fields they exchange."""
    # Building only wires collaborators; nothing is sent until the workflow runs.
    workflow = crypto.build_from_settings(get_settings())

    table = Table(title=f"Workflow: {workflow.name}")
    table.add_column("#", justify="right")
    table.add_column("Step", style="bold", no_wrap=True)
    table.add_column("Reads", overflow="fold")
    table.add_column("Writes", overflow="fold")
    table.add_column("Description")

    for index, step in enumerate(workflow.steps, start=1):
        required = set(step.reads())
        reads = ", ".join(
            name if name in required else f"{name}?" for name in step.input_shape.model_fields
        )
        writes = ", ".join(
            f"{name}: {type_name(info.annotation)}"
            for name, info in step.output_shape.model_fields.items()
        )
        table.add_row(str(index), step.id, reads, escape(writes), step.description)

    console.print(table)
    console.print(
        f"Input: {', '.join(required_fields(workflow.input_shape))}  "
        f"Output: {', '.join(required_fields(workflow.output_shape))}"
    )
