# app/datatables/reshaper.py
"""
Flattening of hydrated rows into display rows.

A column reached through a to-many association hydrates as a list of child
records. A grid cell needs a single value per row, so every list met while
walking such a column's path is merged into one mapping: keys are unioned and
values of a key present in several children are collected into a list.

This is a lossy denormalisation. Once children are merged, the client can no
longer tell which merged values came from the same child record.
"""

import copy
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from app.datatables.definitions import ColumnBinding


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else [value]


def deep_merge(left: Mapping[str, Any], right: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two mappings into a new dict.

    Keys only on one side are kept as they are. When both sides define a key,
    two mappings are merged recursively; any other pair of values is
    concatenated into a list, e.g. ``{"x": 1}`` and ``{"x": 2}`` give
    ``{"x": [1, 2]}``.
    """
    merged: Dict[str, Any] = dict(left)
    for key, value in right.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = _as_list(merged[key]) + _as_list(value)
    return merged


def merge_sequence(items: Iterable[Any]) -> Dict[str, Any]:
    """Merge every mapping of `items` into one dict, left to right."""
    merged: Dict[str, Any] = {}
    for item in items:
        if isinstance(item, Mapping):
            merged = deep_merge(merged, item)
    return merged


class ResultReshaper:
    """Reshapes hydrated rows for the columns bound in one request."""

    def __init__(self, bindings: Iterable[ColumnBinding]):
        self.paths = [
            binding.path.split(".")
            for binding in bindings
            if binding.is_collection_reachable
        ]

    def reshape(self, raw_row: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a new display row; `raw_row` is left untouched."""
        row: Dict[str, Any] = copy.deepcopy(dict(raw_row))
        for segments in self.paths:
            row = self._flatten(row, segments)
        return row

    def reshape_all(self, raw_rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return [self.reshape(raw_row) for raw_row in raw_rows]

    def _flatten(self, node: Any, segments: Sequence[str]) -> Any:
        if not segments or not isinstance(node, Mapping):
            return node

        head, rest = segments[0], segments[1:]
        if head not in node:
            return node

        value = node[head]
        # A list with path left to walk is the to-many collection itself
        if rest and isinstance(value, list):
            value = merge_sequence(value)

        flattened = dict(node)
        flattened[head] = self._flatten(value, rest)
        return flattened
