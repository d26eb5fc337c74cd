"""
sheetseed/planner.py — Table resolution and operation assembly.

Binds one sheet's header and rows to its destination table:

  table name       — resolver(sheet_name); None raises UNRESOLVED_TABLE_NAME
  columns / rows   — exactly the sheet's header and row tuples
  default values   — the table's configured literals, as column directives
  value generators — the table's configured generators, as column directives

Directives are never appended to the row tuples; the insert runtime folds
them in per row.
"""
from __future__ import annotations

from typing import Any, Mapping, Sequence, Tuple

from .errors import AppError, UNRESOLVED_TABLE_NAME
from .generators import GeneratorLike
from .models import Resolver
from .operations import Insert


def resolve_table(sheet_name: str, resolver: Resolver) -> str:
    table = resolver(sheet_name)
    if table is None:
        raise AppError(
            UNRESOLVED_TABLE_NAME,
            f"could not resolve table name: {sheet_name}",
            {"sheet": sheet_name},
        )
    return table


def build_insert(
    table: str,
    header: Sequence[str],
    rows: Sequence[Tuple[Any, ...]],
    default_values: Mapping[str, Mapping[str, Any]],
    value_generators: Mapping[str, Mapping[str, GeneratorLike]],
) -> Insert:
    """
    Build the Insert for an already resolved table. Tables with no configured
    defaults or generators get an operation carrying only the sheet's columns and rows.
    """
    return Insert(
        table=table,
        columns=tuple(header),
        rows=tuple(rows),
        default_values=default_values.get(table, {}),
        value_generators=value_generators.get(table, {}),
    )


def assemble(
    sheet_name: str,
    header: Sequence[str],
    rows: Sequence[Tuple[Any, ...]],
    resolver: Resolver,
    default_values: Mapping[str, Mapping[str, Any]],
    value_generators: Mapping[str, Mapping[str, GeneratorLike]],
) -> Insert:
    table = resolve_table(sheet_name, resolver)
    return build_insert(table, header, rows, default_values, value_generators)
