"""Command-line interface for tessera (formula parsing and column aggregates)."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from tessera import __core_api_version__, __version__


@click.group()
@click.version_option(
    version=f"{__version__} (core_api={__core_api_version__})",
    prog_name="tessera",
)
def main() -> None:
    """tessera -- column formula engine: =SUM/AVG/MIN/MAX/COUNT(Column)."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _read_values(values: tuple[str, ...]) -> list[str | None]:
    """Expand ``-`` into stdin lines; other arguments are taken as cells."""
    cells: list[str | None] = []
    for item in values:
        if item == "-":
            cells.extend(line.rstrip("\n") for line in sys.stdin)
        else:
            cells.append(item)
    return cells


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------


@main.command()
@click.argument("formula")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def parse(formula: str, as_json: bool) -> None:
    """Split FORMULA into its function name and argument."""
    from tessera.formulas import ENGINE_ERRORS, parse_formula

    try:
        parsed = parse_formula(formula)
    except ENGINE_ERRORS as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps({"function_name": parsed.function_name, "argument": parsed.argument}))
    else:
        click.echo(parsed.to_wire())


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


@main.command("aggregate", context_settings={"ignore_unknown_options": True})
@click.argument("kind")
@click.argument("values", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def aggregate_cmd(kind: str, values: tuple[str, ...], as_json: bool) -> None:
    """Apply KIND (SUM, AVG, MIN, MAX, COUNT) to VALUES.

    Pass ``-`` to read one value per line from stdin.
    """
    from tessera.agent import format_result
    from tessera.formulas import ENGINE_ERRORS, AggregateKind, aggregate

    try:
        agg = AggregateKind.from_name(kind)
        result = aggregate(agg, _read_values(values))
    except ENGINE_ERRORS as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps({"function_name": agg.value, "value": result}))
    else:
        click.echo(format_result(result, agg))


# ---------------------------------------------------------------------------
# Eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("formula")
@click.option("--project", "directory", default=None, type=click.Path(exists=True, file_okay=False), help="Project directory (config and logs).")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(csv_path: str, formula: str, directory: str | None, as_json: bool) -> None:
    """Evaluate FORMULA against the columns of CSV_PATH."""
    from tessera.agent import FormulaAgent
    from tessera.logging import set_project_dir
    from tessera.project import load_project_config
    from tessera.table import load_csv

    config = load_project_config(Path(directory or "."))
    if directory:
        set_project_dir(Path(directory))

    table = load_csv(csv_path, delimiter=config.get("csv_delimiter"))
    agent = FormulaAgent(integer_results=bool(config.get("integer_results", True)))
    outcome = agent.calculate_formula(formula, table)

    if as_json:
        click.echo(json.dumps({"result": outcome.result, "error": outcome.error}))
        if not outcome.ok:
            sys.exit(1)
        return
    if not outcome.ok:
        raise click.ClickException(outcome.error)
    click.echo(outcome.result)


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


@main.command()
@click.option("--project", "directory", default=".", type=click.Path(exists=True, file_okay=False), help="Project directory.")
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--limit", default=50, show_default=True, help="Maximum events to show.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def logs(directory: str, level: str | None, event_type: str | None, limit: int, as_json: bool) -> None:
    """Show recent events, most recent first."""
    from tessera.logging import EventSink

    if not (Path(directory) / "logs" / "events.ndjson").exists():
        click.echo("No events logged.")
        return

    events = EventSink(Path(directory)).read_global(level=level, event_type=event_type, limit=limit)
    if as_json:
        click.echo(json.dumps(events, indent=2))
        return
    for e in events:
        code = f" [{e['error_code']}]" if e.get("error_code") else ""
        click.echo(f"{e.get('ts', '')}  {e.get('level', ''):7s} {e.get('event_type', '')}{code}  {e.get('message', '')}")


if __name__ == "__main__":
    main()
