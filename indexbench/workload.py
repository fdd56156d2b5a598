"""
The fixed benchmark workload: an equality filter on `name` and `state_id`.

The query template is a psycopg `sql` format string. `{table}` is bound as an
identifier, every other placeholder as a literal from the parameter mapping.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Mapping, Optional

import pydantic
from psycopg import sql

from indexbench.domain.models import IndexConfiguration, IndexDefinition
from indexbench.errors import ValidationError

DEFAULT_QUERY_TEMPLATE = (
    "SELECT name, state_id FROM {table} WHERE name = {name} AND state_id = {state_id}"
)
DEFAULT_PARAMS: Mapping[str, Any] = {"name": "User_1000", "state_id": 0}


def default_configurations() -> List[IndexConfiguration]:
    """The four configurations compared by default, in measurement order."""
    return [
        IndexConfiguration(name="no_index", description="No secondary index"),
        IndexConfiguration(
            name="state_id_index",
            indexes=[IndexDefinition(columns=["state_id"])],
            description="Low-selectivity single-column index",
        ),
        IndexConfiguration(
            name="name_index",
            indexes=[IndexDefinition(columns=["name"])],
            description="High-selectivity single-column index",
        ),
        IndexConfiguration(
            name="composite_name_state_id",
            indexes=[IndexDefinition(columns=["name", "state_id"])],
            description="Composite index covering both predicates",
        ),
    ]


def render_query(
    template: str, table: str, params: Optional[Mapping[str, Any]] = None
) -> sql.Composed:
    """
    Bind `table` and the literal parameters into the query template.

    Raises
    ------
    ValidationError
        If the template references a placeholder missing from `params`.
    """
    values = dict(DEFAULT_PARAMS if params is None else params)
    if "table" in values:
        raise ValidationError("'table' is reserved for the target table identifier")
    try:
        return sql.SQL(template).format(
            table=sql.Identifier(table),
            **{key: sql.Literal(value) for key, value in values.items()},
        )
    except (KeyError, IndexError) as exc:
        raise ValidationError(f"query template placeholder not bound: {exc}") from exc
    except ValueError as exc:
        raise ValidationError(f"malformed query template: {exc}") from exc


_configurations_adapter = pydantic.TypeAdapter(List[IndexConfiguration])


def parse_configurations(document: Any) -> List[IndexConfiguration]:
    """Validate a JSON-compatible list of configurations."""
    try:
        configurations = _configurations_adapter.validate_python(document)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"invalid index configurations: {exc}") from exc
    names = [c.name for c in configurations]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValidationError(f"duplicate configuration names: {', '.join(duplicates)}")
    return configurations


def load_configurations(path: Path | str) -> List[IndexConfiguration]:
    """
    Read configurations from a JSON file.

    Example file:
        [
          {"name": "no_index"},
          {"name": "composite", "indexes": [{"columns": ["name", "state_id"]}]}
        ]
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path}: not valid JSON: {exc}") from exc
    except OSError as exc:
        raise ValidationError(f"{path}: cannot read configurations: {exc.strerror or exc}") from exc
    return parse_configurations(document)


__all__ = [
    "DEFAULT_PARAMS",
    "DEFAULT_QUERY_TEMPLATE",
    "default_configurations",
    "load_configurations",
    "parse_configurations",
    "render_query",
]
