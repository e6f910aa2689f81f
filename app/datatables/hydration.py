# app/datatables/hydration.py
"""Array hydration of flat joined rows into nested records."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.datatables.definitions import PlannedJoin, QueryPlan


def column_label(entity_alias: str, field_name: str) -> str:
    """Result label of a selected field."""
    return f"{entity_alias}__{field_name}"


class _Node:
    __slots__ = ("record", "children")

    def __init__(self, record: Dict[str, Any]):
        self.record = record
        self.children: Dict[str, Dict[Tuple[Any, ...], "_Node"]] = {}


class ArrayHydrator:
    """
    Folds the rows of a joined page query into one nested dict per root entity.

    Records are identified by their identifier values, so a root (or child)
    repeated by one-to-many fan-out is hydrated once, in first-seen order.
    To-one associations become a dict (or None when the join found nothing)
    and to-many associations become a list of dicts.
    """

    def __init__(self, plan: QueryPlan):
        self.plan = plan
        self._children: Dict[str, List[PlannedJoin]] = {}
        self._identifiers: Dict[str, Tuple[str, ...]] = {plan.root_alias: plan.root_identifiers}
        for join in plan.joins:
            self._children.setdefault(join.parent_alias, []).append(join)
            self._identifiers[join.alias] = join.identifier_fields

    def hydrate(self, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        root_alias = self.plan.root_alias
        roots: Dict[Tuple[Any, ...], _Node] = {}

        for row in rows:
            identity = self._identity(row, root_alias)
            if identity is None:
                continue
            node = roots.get(identity)
            if node is None:
                node = roots[identity] = _Node(self._record(row, root_alias))
            self._hydrate_children(row, root_alias, node)

        return [self._materialize(root_alias, node) for node in roots.values()]

    def root_identity(self, record: Mapping[str, Any]) -> Tuple[Any, ...]:
        """Identifier values of a hydrated root record."""
        return tuple(record.get(name) for name in self.plan.root_identifiers)

    def _hydrate_children(self, row: Mapping[str, Any], alias: str, node: _Node) -> None:
        for join in self._children.get(alias, ()):
            bucket = node.children.setdefault(join.relation_name, {})
            identity = self._identity(row, join.alias)
            if identity is None:
                continue
            child = bucket.get(identity)
            if child is None:
                child = bucket[identity] = _Node(self._record(row, join.alias))
            self._hydrate_children(row, join.alias, child)

    def _materialize(self, alias: str, node: _Node) -> Dict[str, Any]:
        record = dict(node.record)
        for join in self._children.get(alias, ()):
            children = [
                self._materialize(join.alias, child)
                for child in node.children.get(join.relation_name, {}).values()
            ]
            if join.is_collection:
                record[join.relation_name] = children
            else:
                record[join.relation_name] = children[0] if children else None
        return record

    def _record(self, row: Mapping[str, Any], alias: str) -> Dict[str, Any]:
        return {
            field_name: row[column_label(alias, field_name)]
            for field_name in self.plan.selected_fields.get(alias, ())
        }

    def _identity(self, row: Mapping[str, Any], alias: str) -> Optional[Tuple[Any, ...]]:
        identity = tuple(row[column_label(alias, name)] for name in self._identifiers[alias])
        if all(value is None for value in identity):
            return None
        return identity
