"""
Parse PostgreSQL `EXPLAIN (ANALYZE, FORMAT JSON)` output into a `PlanMetric`.

The root plan node supplies the estimated cost and row counts; the scan node on
the target relation supplies the access path and the number of rows the engine
had to examine (returned rows plus rows discarded by filters or rechecks).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Mapping, Optional

from indexbench.domain.models import AccessPath, PlanMetric
from indexbench.errors import PlanParseError

# Parallel scans keep their plain node type and set "Parallel Aware".
ACCESS_PATHS: Dict[str, AccessPath] = {
    "Seq Scan": AccessPath.FULL_SCAN,
    "Index Scan": AccessPath.NON_COVERING_INDEX,
    "Bitmap Heap Scan": AccessPath.NON_COVERING_INDEX,
    "Index Only Scan": AccessPath.COVERING_INDEX,
}


def classify(node_type: str) -> AccessPath:
    return ACCESS_PATHS.get(node_type, AccessPath.OTHER)


def _walk(node: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    yield node
    for child in node.get("Plans", []) or []:
        if isinstance(child, Mapping):
            yield from _walk(child)


def _number(node: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    value = node.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PlanParseError(f"plan node {node.get('Node Type', '?')!r} has no numeric {key!r}")
    return float(value)


def _find_scan(root: Mapping[str, Any], relation: Optional[str]) -> Mapping[str, Any]:
    """
    Depth-first search for the scan on `relation`.

    Bitmap plans report the relation on the heap node; the child index node
    only carries the index name, so the heap node wins.
    """
    for node in _walk(root):
        node_type = node.get("Node Type")
        if node_type not in ACCESS_PATHS:
            continue
        if relation is None or node.get("Relation Name") == relation:
            return node
    raise PlanParseError(
        f"no scan node on relation {relation!r} in plan"
        if relation
        else "no scan node in plan"
    )


def _bitmap_index_name(node: Mapping[str, Any]) -> Optional[str]:
    for child in _walk(node):
        if child.get("Node Type") == "Bitmap Index Scan":
            return child.get("Index Name")
    return None


def _load(document: Any) -> Mapping[str, Any]:
    if isinstance(document, (bytes, bytearray)):
        document = document.decode("utf-8")
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            raise PlanParseError(f"plan is not valid JSON: {exc}") from exc
    if isinstance(document, list):
        if len(document) != 1:
            raise PlanParseError(f"expected exactly one plan, got {len(document)}")
        document = document[0]
    if not isinstance(document, Mapping) or not isinstance(document.get("Plan"), Mapping):
        raise PlanParseError("plan document has no 'Plan' object")
    return document


def parse_plan(document: Any, relation: Optional[str] = None) -> PlanMetric:
    """
    Convert one EXPLAIN ANALYZE JSON document into a `PlanMetric`.

    Parameters
    ----------
    document : list | dict | str | bytes
        The value returned by `EXPLAIN (ANALYZE, FORMAT JSON)`: the one-element
        list, its single object, or the raw JSON text.
    relation : str | None
        Table whose scan determines the access path. None accepts the first
        scan node found.

    Raises
    ------
    PlanParseError
        If the document is malformed, lacks ANALYZE timings, or contains no
        scan node on the relation.
    """
    top = _load(document)
    root = top["Plan"]
    scan = _find_scan(root, relation)

    node_type = str(scan["Node Type"])
    loops = _number(scan, "Actual Loops")
    examined = (
        _number(scan, "Actual Rows")
        + _number(scan, "Rows Removed by Filter", 0)
        + _number(scan, "Rows Removed by Index Recheck", 0)
    ) * loops

    index_name = scan.get("Index Name")
    if index_name is None and node_type == "Bitmap Heap Scan":
        index_name = _bitmap_index_name(scan)

    planning = top.get("Planning Time")
    return PlanMetric(
        access_path=classify(node_type),
        node_type=node_type,
        index_name=index_name,
        estimated_cost=_number(root, "Total Cost"),
        estimated_rows=_number(root, "Plan Rows"),
        actual_rows=_number(root, "Actual Rows") * _number(root, "Actual Loops"),
        rows_examined=examined,
        execution_time_ms=_number(top, "Execution Time"),
        planning_time_ms=float(planning) if isinstance(planning, (int, float)) else None,
    )


__all__ = ["ACCESS_PATHS", "classify", "parse_plan"]
