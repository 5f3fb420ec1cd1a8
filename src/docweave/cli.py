"""Docweave CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from docweave import __version__

if TYPE_CHECKING:
    from docweave.pipeline import TransformResult


@click.group()
@click.version_option(version=__version__, prog_name="docweave")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output (debug logging).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool) -> None:
    """Docweave - XML documentation comments to link-resolved Markdown."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file (top-level keys or a 'docweave:' section).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the transformed graph here (default: stdout when --json is not set).",
)
@click.option(
    "--no-external-types",
    is_flag=True,
    default=False,
    help="Do not create placeholder types for extended types outside the graph.",
)
@click.option("--json", "output_json", is_flag=True, help="Print the run summary as JSON.")
def transform(
    *,
    graph_file: Path,
    config_path: Path | None,
    output: Path | None,
    no_external_types: bool,
    output_json: bool,
) -> None:
    """Relocate extension members, resolve references, and rewrite markup."""
    import dataclasses

    import yaml

    from docweave.config import load_config
    from docweave.errors import DocweaveError
    from docweave.graph.loader import dump_graph, load_graph
    from docweave.pipeline import transform_graph

    try:
        config = load_config(config_path)
        if no_external_types:
            config = dataclasses.replace(config, create_external_type_references=False)
        graph = load_graph(graph_file)
    except DocweaveError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    result = transform_graph(graph, config)
    rendered = yaml.safe_dump(dump_graph(graph), sort_keys=False, allow_unicode=True)

    if output is not None:
        output.write_text(rendered, encoding="utf-8")
    elif not output_json:
        click.echo(rendered)

    if output_json:
        summary = {
            "entities_processed": result.entities_processed,
            "fields_rewritten": result.fields_rewritten,
            "members_relocated": result.relocation.relocated,
            "placeholders_created": result.relocation.placeholders_created,
            "containers_removed": result.relocation.containers_removed,
            "references_resolved": result.references_resolved,
            "references_unresolved": result.references_unresolved,
            "unresolved": [
                {"entity_id": u.entity_id, "raw": u.raw} for u in result.unresolved
            ],
            "failures": [
                {"entity_id": f.entity_id, "error": f.error, "timed_out": f.timed_out}
                for f in result.failures
            ],
        }
        click.echo(json.dumps(summary, ensure_ascii=False, indent=2))
    else:
        _print_summary(result, written_to=output)

    if result.failures:
        sys.exit(2)


def _print_summary(result: TransformResult, *, written_to: Path | None) -> None:
    """Rich summary table, printed to stderr so stdout can carry the graph."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    console = Console(stderr=True)

    table = Table(title="docweave transform", show_header=False, box=None, padding=(0, 1))
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Entities", str(result.entities_processed))
    table.add_row("Fields rewritten", str(result.fields_rewritten))
    table.add_row("Members relocated", str(result.relocation.relocated))
    table.add_row("Placeholders", str(result.relocation.placeholders_created))
    table.add_row("Containers removed", str(len(result.relocation.containers_removed)))
    table.add_row("References resolved", f"[green]{result.references_resolved}[/green]")
    unresolved_style = "yellow" if result.references_unresolved else "green"
    table.add_row(
        "References unresolved",
        f"[{unresolved_style}]{result.references_unresolved}[/{unresolved_style}]",
    )
    table.add_row("Failures", f"[red]{len(result.failures)}[/red]" if result.failures else "0")
    console.print(table)

    for unresolved in result.unresolved:
        console.print(f"  [yellow]unresolved[/yellow] {escape(unresolved.entity_id)}: {escape(unresolved.raw)}")
    for failure in result.failures:
        console.print(f"  [red]failed[/red] {escape(failure.entity_id)}: {escape(failure.error)}")
    if written_to is not None:
        console.print(f"Wrote {written_to}")


@main.command()
@click.argument("text", required=False)
@click.option(
    "--language",
    default=None,
    help="Default language for <code> blocks without one (default: csharp).",
)
def rewrite(*, text: str | None, language: str | None) -> None:
    """Rewrite one annotation string (argument or stdin) to Markdown."""
    from docweave.config import DocsConfig
    from docweave.markup.rewriter import rewrite_markup

    if text is None:
        text = sys.stdin.read()

    config = DocsConfig(default_code_language=language) if language else DocsConfig()
    click.echo(rewrite_markup(text, config=config) or "")
