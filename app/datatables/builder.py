"""
QueryPlanBuilder: assembles the query plan for one datatable request.

The plan is built in a fixed order (select, joins, where, order, limit)
because the later steps read the bindings and aliases set up by the earlier
ones. The result is an immutable QueryPlan; rendering it into SQLAlchemy
statements is left to the executor and the counting service.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import String, and_, cast, or_
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from app.datatables.definitions import (
    ColumnBinding,
    DatatableConfig,
    OrderClause,
    PlannedJoin,
    QueryPlan,
    SortDirection,
    WhereCallback,
)
from app.datatables.exceptions import CallbackAliasUnavailable, EmptyProjection
from app.datatables.metadata import MetadataProvider
from app.datatables.resolver import JoinRegistry
from app.datatables.schemas import DatatableRequest

logger = logging.getLogger(__name__)


class QueryPlanBuilder:
    """Builds a QueryPlan from resolved column bindings and registered joins."""

    def __init__(
        self,
        request: DatatableRequest,
        root_entity: Any,
        metadata: MetadataProvider,
        registry: JoinRegistry,
        bindings: Mapping[int, ColumnBinding],
        extra_bindings: Sequence[ColumnBinding] = (),
        config: Optional[DatatableConfig] = None,
        callbacks: Sequence[WhereCallback] = (),
    ):
        self.request = request
        self.root_entity = root_entity
        self.metadata = metadata
        self.registry = registry
        self.bindings = dict(bindings)
        self.extra_bindings = list(extra_bindings)
        self.config = config or DatatableConfig()
        self.callbacks = list(callbacks)

    @property
    def root_alias(self) -> str:
        return self.registry.root_alias

    def build(self) -> QueryPlan:
        """Build the complete plan for the request."""
        if not self.bindings and not self.extra_bindings:
            raise EmptyProjection(self.root_alias)

        entities = self._build_entities()
        selected_fields = self._build_select()
        joins = self._build_joins()
        where_clauses = self._build_where(entities)
        total_where_clauses = self._build_callback_clauses(
            {self.root_alias: entities[self.root_alias]}, totals_only=True
        )
        order_by = self._build_order()
        offset, limit = self._build_limit()

        plan = QueryPlan(
            root_alias=self.root_alias,
            root_entity=self.root_entity,
            root_identifiers=tuple(self.metadata.identifier_fields(self.root_entity)),
            entities=entities,
            selected_fields=selected_fields,
            joins=joins,
            where_clauses=tuple(where_clauses),
            total_where_clauses=tuple(total_where_clauses),
            order_by=tuple(order_by),
            offset=offset,
            limit=limit,
            contains_collections=self.registry.contains_collections(),
        )
        logger.debug("Built datatable plan: %s", plan.summary())
        return plan

    # ===== SELECT =====

    def _all_bindings(self) -> List[ColumnBinding]:
        return [self.bindings[index] for index in sorted(self.bindings)] + self.extra_bindings

    def _build_entities(self) -> Dict[str, Any]:
        entities = {self.root_alias: aliased(self.root_entity, name=self.root_alias)}
        for join in self.registry.joins():
            entities[join.alias] = aliased(join.target_entity, name=join.alias)
        return entities

    def _build_select(self) -> Dict[str, Tuple[str, ...]]:
        # Every join alias is selected, intermediate hops of deeper paths included
        columns: Dict[str, List[str]] = {alias: [] for alias in self.registry.aliases()}
        for binding in self._all_bindings():
            fields = columns[binding.entity_alias]
            if binding.field_name not in fields:
                fields.append(binding.field_name)

        identifiers = {self.root_alias: tuple(self.metadata.identifier_fields(self.root_entity))}
        for join in self.registry.joins():
            identifiers[join.alias] = join.identifier_fields

        # Partial selections always carry the identifiers, first
        for alias, identifier_fields in identifiers.items():
            fields = columns[alias]
            missing = [name for name in identifier_fields if name not in fields]
            columns[alias] = missing + fields

        return {alias: tuple(fields) for alias, fields in columns.items()}

    # ===== JOINS =====

    def _build_joins(self) -> Tuple[PlannedJoin, ...]:
        overrides = dict(self.config.join_types)
        return tuple(
            PlannedJoin(
                alias=join.alias,
                parent_alias=join.parent_alias,
                relation_name=join.relation_name,
                join_type=self.registry.join_type_for(join, overrides, self.config.default_join_type),
                identifier_fields=join.identifier_fields,
                is_collection=join.is_collection,
            )
            for join in self.registry.joins()
        )

    # ===== WHERE =====

    def _build_where(self, entities: Mapping[str, Any]) -> List[ColumnElement]:
        clauses: List[ColumnElement] = []

        global_clause = self._global_search_clause(entities)
        if global_clause is not None:
            clauses.append(global_clause)

        column_clause = self._column_search_clause(entities)
        if column_clause is not None:
            clauses.append(column_clause)

        clauses.extend(self._build_callback_clauses(entities))
        return clauses

    def _searchable_bindings(self) -> List[Tuple[int, ColumnBinding]]:
        searchable = []
        for index in sorted(self.bindings):
            column = self.request.column(index)
            if column is not None and column.searchable:
                searchable.append((index, self.bindings[index]))
        return searchable

    def _global_search_clause(self, entities: Mapping[str, Any]) -> Optional[ColumnElement]:
        terms = self.request.search_terms
        searchable = self._searchable_bindings()
        if not terms or not searchable:
            return None

        term_clauses = [
            or_(*(self._contains(entities, binding, term) for _, binding in searchable))
            for term in terms
        ]
        return and_(*term_clauses)

    def _column_search_clause(self, entities: Mapping[str, Any]) -> Optional[ColumnElement]:
        column_clauses = []
        for index, binding in self._searchable_bindings():
            value = self.request.columns[index].search_value
            if value:
                column_clauses.append(self._contains(entities, binding, value))

        if not column_clauses:
            return None
        return and_(*column_clauses)

    def _build_callback_clauses(
        self, entities: Mapping[str, Any], totals_only: bool = False
    ) -> List[ColumnElement]:
        clauses = []
        for where in self.callbacks:
            if totals_only and not where.apply_to_total:
                continue
            try:
                clauses.append(where.callback(entities))
            except KeyError as exc:
                # the total is counted on the root alias alone
                if not totals_only:
                    raise
                raise CallbackAliasUnavailable(str(exc.args[0]) if exc.args else "") from exc
        return clauses

    @staticmethod
    def _contains(entities: Mapping[str, Any], binding: ColumnBinding, term: str) -> ColumnElement:
        """Case-insensitive substring match of `term` against the bound column."""
        column = getattr(entities[binding.entity_alias], binding.field_name)
        if not isinstance(column.expression.type, String):
            column = cast(column, String)
        return column.icontains(term, autoescape=True)

    # ===== ORDER / LIMIT =====

    def _build_order(self) -> List[OrderClause]:
        clauses: List[OrderClause] = []
        column_count = len(self.request.columns)

        for entry in self.request.order:
            column = self.request.column(entry.column)
            if column is None or not column.orderable:
                continue

            # Client-only columns carry no binding; fall forward to the next bound one
            binding = self._first_binding_from(entry.column, column_count)
            if binding is None:
                logger.debug("No bound column at or after index %s; ordering skipped", entry.column)
                continue

            direction = SortDirection.DESC if entry.dir == SortDirection.DESC.value else SortDirection.ASC
            clauses.append(OrderClause(binding.entity_alias, binding.field_name, direction))
        return clauses

    def _first_binding_from(self, start: int, stop: int) -> Optional[ColumnBinding]:
        for index in range(start, stop):
            binding = self.bindings.get(index)
            if binding is not None:
                return binding
        return None

    def _build_limit(self) -> Tuple[Optional[int], Optional[int]]:
        if self.request.is_all_records:
            return None, None
        return max(self.request.start, 0), self.request.length

