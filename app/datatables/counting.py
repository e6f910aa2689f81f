# app/datatables/counting.py
"""Total and filtered record counts for a datatable plan."""

import logging

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.datatables.definitions import QueryPlan
from app.datatables.exceptions import CountQueryFailed
from app.datatables.executor import apply_joins, apply_where

logger = logging.getLogger(__name__)


class CountingService:
    """Issues the two count queries that accompany every page."""

    def __init__(self, session: Session):
        self.session = session

    def build_total_statement(self, plan: QueryPlan) -> Select:
        identifiers = plan.root_identifier_columns()
        stmt = select(func.count(identifiers[0])).select_from(plan.root)
        if plan.total_where_clauses:
            stmt = stmt.where(*plan.total_where_clauses)
        return stmt

    def build_filtered_statement(self, plan: QueryPlan) -> Select:
        identifiers = plan.root_identifier_columns()
        if len(identifiers) == 1:
            # Joined collections fan out root rows, hence DISTINCT
            stmt = select(func.count(distinct(identifiers[0]))).select_from(plan.root)
            return apply_where(apply_joins(stmt, plan), plan)

        roots = select(*identifiers).select_from(plan.root)
        roots = apply_where(apply_joins(roots, plan), plan).distinct().subquery()
        return select(func.count()).select_from(roots)

    def count_all(self, plan: QueryPlan) -> int:
        """Root entities before any search; only callbacks flagged for totals apply."""
        return self._scalar(self.build_total_statement(plan), "total")

    def count_filtered(self, plan: QueryPlan) -> int:
        """Distinct root entities matching every join and where clause."""
        return self._scalar(self.build_filtered_statement(plan), "filtered")

    def _scalar(self, stmt: Select, kind: str) -> int:
        try:
            value = self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as exc:
            logger.error("Datatable %s count query failed: %s", kind, exc)
            raise CountQueryFailed(f"Datatable {kind} count failed: {exc}") from exc
        return int(value or 0)
