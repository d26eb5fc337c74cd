"""Typer CLI: preview or load the insert operations described by a JSON config."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from typing import Annotated

import typer

from .config import load_json
from .errors import AppError, friendly_message
from .operations import OperationSequence


logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Turn spreadsheet sheets into ordered database insert operations.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log per-sheet progress")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(e: AppError) -> None:
    logger.debug("import failed: %s", e)
    typer.echo(friendly_message(e), err=True)
    raise typer.Exit(1)


def _describe(ops: OperationSequence) -> None:
    if not len(ops):
        typer.echo("No sheets selected.")
        return
    for n, op in enumerate(ops, start=1):
        typer.echo(f"{n}. {op.table}: {len(op.rows)} rows")
        typer.echo(f"   columns: {', '.join(op.columns)}")
        for column, value in op.default_values.items():
            typer.echo(f"   default {column} = {value!r}")
        for column, gen in op.value_generators.items():
            typer.echo(f"   generated {column} <- {gen!r}")


@app.command("plan")
def plan_cmd(
    config: Annotated[str, typer.Argument(help="JSON import config")],
) -> None:
    """Print the operations the workbook would produce, without touching a database."""
    try:
        ops = load_json(config).operations()
    except AppError as e:
        _fail(e)
        return
    _describe(ops)


@app.command("load")
def load_cmd(
    config: Annotated[str, typer.Argument(help="JSON import config")],
    database: Annotated[str, typer.Argument(help="SQLite database file")],
) -> None:
    """Insert the workbook's rows into an existing SQLite database."""
    try:
        ops = load_json(config).operations()
    except AppError as e:
        _fail(e)
        return
    with closing(sqlite3.connect(database)) as conn:
        try:
            total = ops.execute(conn)
        except sqlite3.Error as e:
            conn.rollback()
            typer.echo(f"Database error: {e}", err=True)
            raise typer.Exit(1)
    typer.echo(f"Inserted {total} rows into {len(ops)} tables.")
