"""
sheetseed/config.py — Import settings from JSON files.

    {
      "location": "seed/users.xlsx",
      "left": 1, "top": 2, "skip_after_header": 0,
      "include": ["users_.*"], "exclude": [".+_draft$"],
      "tables": {"users_2024": "users"},
      "default_values": {"users": {"active": true, "note": null}},
      "sequences": {"users": {"id": {"start": 100, "increment": 100}}}
    }

Only "location" is required. "tables" replaces the default sheet-name
resolver with a static mapping; sheets missing from it are unresolved.
A relative location is resolved against the config file's directory first.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .builder import ImportBuilder, ImportPlan, excel
from .errors import invalid
from .generators import sequence


KNOWN_KEYS = (
    "location", "left", "top", "skip_after_header",
    "include", "exclude", "tables", "default_values", "sequences",
)


def _mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise invalid(key, f"{key} must be an object (got {type(value).__name__})")
    return value


def _patterns(data: Dict[str, Any], key: str) -> list:
    value = data.get(key) or []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise invalid(key, f"{key} must be a list of patterns")
    return value


def from_dict(data: Dict[str, Any], base_dir: Optional[str] = None) -> ImportBuilder:
    """Build a configured (not yet built) ImportBuilder from a config dict."""
    unknown = [k for k in data if k not in KNOWN_KEYS]
    if unknown:
        raise invalid(unknown[0], f"Unknown config key: {unknown[0]!r}")

    location = data.get("location")
    if not location:
        raise invalid("location", "location must not be null")
    if base_dir and not Path(location).is_absolute() and (Path(base_dir) / location).is_file():
        location = str(Path(base_dir) / location)

    builder = excel(location)
    builder.left(data.get("left", 0))
    builder.top(data.get("top", 0))
    builder.skip_after_header(data.get("skip_after_header", 0))
    builder.include(*_patterns(data, "include"))
    builder.exclude(*_patterns(data, "exclude"))

    tables = _mapping(data, "tables")
    if tables:
        builder.resolver(tables)

    for table, columns in _mapping(data, "default_values").items():
        if not isinstance(columns, dict):
            raise invalid("default_values", f"default_values.{table} must be an object")
        for column, value in columns.items():
            builder.with_default_value(table, column, value)

    for table, columns in _mapping(data, "sequences").items():
        if not isinstance(columns, dict):
            raise invalid("sequences", f"sequences.{table} must be an object")
        for column, seq in columns.items():
            seq = seq or {}
            try:
                gen = sequence(int(seq.get("start", 1)), int(seq.get("increment", 1)))
            except (TypeError, ValueError, AttributeError):
                raise invalid("sequences", f"Bad sequence for {table}.{column}: {seq!r}")
            builder.with_generated_value(table, column, gen)

    return builder


def load_json(path: str) -> ImportPlan:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise invalid("config", f"Config file not found: {path}")
    except json.JSONDecodeError as e:
        raise invalid("config", f"Config file is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise invalid("config", "Config file must contain a JSON object")
    return from_dict(data, base_dir=str(p.parent)).build()
