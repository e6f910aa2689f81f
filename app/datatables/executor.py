# app/datatables/executor.py
"""Renders a QueryPlan into SQLAlchemy statements and runs the page query."""

import logging
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import func, select, tuple_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.datatables.definitions import JoinType, QueryPlan, SortDirection
from app.datatables.exceptions import ExecutionFailed
from app.datatables.hydration import ArrayHydrator, column_label

logger = logging.getLogger(__name__)


def apply_joins(stmt: Select, plan: QueryPlan) -> Select:
    """Add the plan's association joins to `stmt`."""
    for join in plan.joins:
        parent = plan.entities[join.parent_alias]
        target = plan.entities[join.alias]
        relation = getattr(parent, join.relation_name).of_type(target)
        stmt = stmt.join(relation, isouter=join.join_type is JoinType.LEFT)
    return stmt


def apply_where(stmt: Select, plan: QueryPlan) -> Select:
    if plan.where_clauses:
        stmt = stmt.where(*plan.where_clauses)
    return stmt


def order_columns(plan: QueryPlan) -> List[Any]:
    columns = []
    for clause in plan.order_by:
        column = plan.column(clause.entity_alias, clause.field_name)
        columns.append(column.desc() if clause.direction is SortDirection.DESC else column.asc())
    return columns


class QueryExecutor:
    """Executes the page query of a plan and hydrates the rows."""

    def __init__(self, session: Session, use_paginator: bool = True):
        self.session = session
        self.use_paginator = use_paginator

    def build_statement(self, plan: QueryPlan) -> Select:
        """The page query without any root-level pagination."""
        columns = [
            plan.column(alias, field_name).label(column_label(alias, field_name))
            for alias, fields in plan.selected_fields.items()
            for field_name in fields
        ]
        stmt = select(*columns).select_from(plan.root)
        stmt = apply_joins(stmt, plan)
        stmt = apply_where(stmt, plan)
        return stmt.order_by(*order_columns(plan))

    def build_page_identifier_statement(self, plan: QueryPlan) -> Select:
        """
        Distinct root identifiers of the requested page.

        Used when one-to-many joins fan out root rows: the page is bounded on
        root entities instead of joined rows. Sort columns are aggregated with
        MIN (ascending) or MAX (descending) so every root appears once.
        """
        identifiers = plan.root_identifier_columns()
        stmt = select(*identifiers).select_from(plan.root)
        stmt = apply_joins(stmt, plan)
        stmt = apply_where(stmt, plan)
        stmt = stmt.group_by(*identifiers)

        for clause in plan.order_by:
            column = plan.column(clause.entity_alias, clause.field_name)
            if clause.direction is SortDirection.DESC:
                stmt = stmt.order_by(func.max(column).desc())
            else:
                stmt = stmt.order_by(func.min(column).asc())
        stmt = stmt.order_by(*identifiers)

        if plan.offset:
            stmt = stmt.offset(plan.offset)
        if plan.limit is not None:
            stmt = stmt.limit(plan.limit)
        return stmt

    def fetch(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        """Run the page query and return one nested record per root entity."""
        hydrator = ArrayHydrator(plan)
        paginate_roots = (
            self.use_paginator
            and plan.contains_collections
            and (plan.limit is not None or plan.offset)
        )

        if not paginate_roots:
            stmt = self.build_statement(plan)
            if plan.offset:
                stmt = stmt.offset(plan.offset)
            if plan.limit is not None:
                stmt = stmt.limit(plan.limit)
            return hydrator.hydrate(self._execute(stmt))

        page_ids = self._execute_tuples(self.build_page_identifier_statement(plan))
        if not page_ids:
            return []

        stmt = self.build_statement(plan).where(self._identifier_filter(plan, page_ids))
        records = hydrator.hydrate(self._execute(stmt))

        # Keep the order decided by the identifier query
        position = {identity: index for index, identity in enumerate(page_ids)}
        records.sort(key=lambda record: position.get(hydrator.root_identity(record), len(position)))
        return records

    @staticmethod
    def _identifier_filter(plan: QueryPlan, page_ids: Sequence[Tuple[Any, ...]]) -> Any:
        identifiers = plan.root_identifier_columns()
        if len(identifiers) == 1:
            return identifiers[0].in_([identity[0] for identity in page_ids])
        return tuple_(*identifiers).in_(page_ids)

    def _execute(self, stmt: Select) -> List[Dict[str, Any]]:
        try:
            return [dict(row) for row in self.session.execute(stmt).mappings()]
        except SQLAlchemyError as exc:
            logger.error("Datatable page query failed: %s", exc)
            raise ExecutionFailed(f"Datatable query failed: {exc}") from exc

    def _execute_tuples(self, stmt: Select) -> List[Tuple[Any, ...]]:
        try:
            return [tuple(row) for row in self.session.execute(stmt).all()]
        except SQLAlchemyError as exc:
            logger.error("Datatable page identifier query failed: %s", exc)
            raise ExecutionFailed(f"Datatable query failed: {exc}") from exc
