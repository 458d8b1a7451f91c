#!/usr/bin/env python3
"""Emit idempotent SQL that adds a city and its neighborhoods."""

from __future__ import annotations

import argparse
import json
from pathlib import Path


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, city: str, state: str, neighborhoods: list[tuple[str, str | None]]) -> str:
    city_value = _quote_sql(city)
    state_value = _quote_sql(state)

    statements = [
        f"-- Neighborhood seed for {city}, {state}",
        "-- Safe to re-run: existing rows are left untouched.",
        "",
        "insert into cities (city, state)",
        f"values ({city_value}, {state_value})",
        "on conflict (city, state) do nothing;",
    ]

    for name, macro in neighborhoods:
        macro_value = _quote_sql(macro) if macro else "null"
        statements.extend(
            [
                "",
                "insert into neighborhoods (neighborhood, city_id, macro_neighborhood)",
                f"select {_quote_sql(name)}, id, {macro_value}",
                "from cities",
                f"where city = {city_value} and state = {state_value}",
                "on conflict (neighborhood, city_id) do nothing;",
            ]
        )
    return "\n".join(statements) + "\n"


def load_neighborhoods(path: Path) -> list[tuple[str, str | None]]:
    """Read ``[{"neighborhood": ..., "macro_neighborhood": ...}]`` or a list of names."""
    entries = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(entries, list):
        raise ValueError("neighborhood file must contain a JSON list")

    loaded: list[tuple[str, str | None]] = []
    for entry in entries:
        if isinstance(entry, str):
            loaded.append((entry, None))
        elif isinstance(entry, dict) and entry.get("neighborhood"):
            loaded.append((entry["neighborhood"], entry.get("macro_neighborhood")))
        else:
            raise ValueError(f"invalid neighborhood entry: {entry!r}")
    return loaded


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to seed a city and its neighborhoods.")
    parser.add_argument("--city", required=True, help="City name, e.g. Austin")
    parser.add_argument("--state", required=True, help="State code, e.g. TX")
    parser.add_argument(
        "--macro",
        default=None,
        help="Macro neighborhood applied to names given on the command line",
    )
    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("--file", type=Path, help="JSON file listing neighborhoods")
    source_group.add_argument("--name", action="append", dest="names", help="Neighborhood name (repeatable)")
    args = parser.parse_args()

    if args.file is not None:
        try:
            neighborhoods = load_neighborhoods(args.file)
        except (OSError, ValueError) as exc:
            parser.error(str(exc))
    else:
        neighborhoods = [(name, args.macro) for name in args.names]

    print(render_sql(city=args.city, state=args.state, neighborhoods=neighborhoods), end="")


if __name__ == "__main__":
    main()
