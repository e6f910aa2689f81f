"""
Plan-level types for the datatables query engine.

These are the values passed between the resolver, the plan builder, the
executor and the reshaper. Everything here is built fresh for a single
request and is immutable once created.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from sqlalchemy.sql.elements import ColumnElement


class JoinType(str, Enum):
    """Join kinds available for association joins."""

    INNER = "inner"
    LEFT = "left"

    @classmethod
    def from_value(cls, value: Any) -> "JoinType":
        """Accept a JoinType or a case-insensitive name such as 'Left'."""
        if isinstance(value, JoinType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported join type: {value!r}") from None


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# A where callback receives the aliased entities of the plan (alias -> entity)
# and returns a boolean clause to AND into the statement.
WhereBuilder = Callable[[Mapping[str, Any]], ColumnElement]


@dataclass(frozen=True)
class WhereCallback:
    """A caller-supplied predicate appended after the search clauses."""

    callback: WhereBuilder
    apply_to_total: bool = True


@dataclass(frozen=True)
class ColumnBinding:
    """Resolution of one dotted column path to a field on a join alias."""

    path: str
    entity_alias: str
    field_name: str
    relation_name: str
    is_collection_reachable: bool = False

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.entity_alias}.{self.field_name}"


@dataclass(frozen=True)
class JoinDefinition:
    """A join registered while resolving column paths."""

    alias: str
    parent_alias: str
    relation_name: str
    source_path: str
    target_entity: Any
    identifier_fields: Tuple[str, ...]
    is_collection: bool = False

    @property
    def join_on(self) -> str:
        return f"{self.parent_alias}.{self.relation_name}"


@dataclass(frozen=True)
class PlannedJoin:
    """A registered join with its join kind decided."""

    alias: str
    parent_alias: str
    relation_name: str
    join_type: JoinType
    identifier_fields: Tuple[str, ...] = ()
    is_collection: bool = False


@dataclass(frozen=True)
class OrderClause:
    entity_alias: str
    field_name: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class DatatableConfig:
    """Per-request options of a datatable."""

    default_join_type: JoinType = JoinType.INNER
    join_types: Mapping[str, JoinType] = field(default_factory=dict)
    use_dt_row_id: bool = False
    use_dt_row_class: bool = True
    dt_row_class: Optional[str] = None
    use_paginator: bool = True


@dataclass(frozen=True)
class QueryPlan:
    """Everything needed to render the page query and both count queries."""

    root_alias: str
    root_entity: Any
    root_identifiers: Tuple[str, ...]
    entities: Mapping[str, Any]
    selected_fields: Mapping[str, Tuple[str, ...]]
    joins: Tuple[PlannedJoin, ...] = ()
    where_clauses: Tuple[ColumnElement, ...] = ()
    total_where_clauses: Tuple[ColumnElement, ...] = ()
    order_by: Tuple[OrderClause, ...] = ()
    offset: Optional[int] = None
    limit: Optional[int] = None
    contains_collections: bool = False

    @property
    def root(self) -> Any:
        return self.entities[self.root_alias]

    def root_identifier_columns(self) -> Tuple[Any, ...]:
        return tuple(getattr(self.root, name) for name in self.root_identifiers)

    def column(self, entity_alias: str, field_name: str) -> Any:
        return getattr(self.entities[entity_alias], field_name)

    def summary(self) -> Dict[str, Any]:
        """Describe the plan for logging."""
        return {
            "root": self.root_alias,
            "selected": {alias: list(fields) for alias, fields in self.selected_fields.items()},
            "joins": [f"{j.join_type.value} {j.parent_alias}.{j.relation_name} {j.alias}" for j in self.joins],
            "where_clauses": len(self.where_clauses),
            "order_by": [f"{o.entity_alias}.{o.field_name} {o.direction.value}" for o in self.order_by],
            "offset": self.offset,
            "limit": self.limit,
            "contains_collections": self.contains_collections,
        }
