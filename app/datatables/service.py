# app/datatables/service.py
"""
Service layer for a single datatable request.

Recognises ``data`` values sent by DataTables where dotted notation
represents a related entity. Defining the following columns::

    columns: [
        {data: "id"},
        {data: "description"},
        {data: "customer.first_name"},
        {data: "customer.last_name"}
    ]

retrieves the related customer and returns its first and last name with each
row. There is no depth limit: ``customer.location.address`` works the same
way through any chain of to-one and to-many relationships.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.datatables.builder import QueryPlanBuilder
from app.datatables.counting import CountingService
from app.datatables.definitions import (
    ColumnBinding,
    DatatableConfig,
    JoinType,
    QueryPlan,
    WhereBuilder,
    WhereCallback,
)
from app.datatables.executor import QueryExecutor
from app.datatables.metadata import MetadataProvider, SQLAlchemyMetadataProvider
from app.datatables.reshaper import ResultReshaper
from app.datatables.resolver import JoinRegistry, PathResolver, is_bindable
from app.datatables.schemas import DatatableRequest, DatatableResult

logger = logging.getLogger(__name__)

ROW_ID_KEY = "DT_RowId"
ROW_CLASS_KEY = "DT_RowClass"


class DatatableService:
    """Plans, executes and formats one DataTables server-side request."""

    def __init__(
        self,
        request: DatatableRequest,
        entity: Any,
        session: Session,
        metadata: Optional[MetadataProvider] = None,
        config: Optional[DatatableConfig] = None,
    ):
        self.request = request
        self.entity = entity
        self.session = session
        self.metadata = metadata or SQLAlchemyMetadataProvider()
        self.config = config or DatatableConfig()

        self.root_alias = self.metadata.table_name(entity)
        self.registry = JoinRegistry(self.root_alias)
        self.resolver = PathResolver(entity, self.metadata, self.registry)

        self.bindings: Dict[int, ColumnBinding] = {}
        self.manual_bindings: List[ColumnBinding] = []
        self._join_types: Dict[str, JoinType] = dict(self.config.join_types)
        self._callbacks: List[WhereCallback] = []

        self._resolve_columns()

    def _resolve_columns(self) -> None:
        for index, column in enumerate(self.request.columns):
            if is_bindable(column.data):
                self.bindings[index] = self.resolver.resolve(column.data)
        logger.debug(
            "Resolved %s of %s columns for '%s'",
            len(self.bindings), len(self.request.columns), self.root_alias,
        )

    # ===== CONFIGURATION =====

    @property
    def parameters(self) -> Dict[int, str]:
        """Bound column paths by column index."""
        return {index: binding.path for index, binding in self.bindings.items()}

    def add_manual_association(self, path: str) -> "DatatableService":
        """Select an extra dotted path that is not one of the client's columns."""
        self.manual_bindings.append(self.resolver.resolve(path))
        return self

    def add_where_callback(self, callback: WhereBuilder, apply_to_total: bool = True) -> "DatatableService":
        """
        Append a predicate to the where clause.

        `callback` receives the plan's aliased entities keyed by alias and
        returns a boolean clause. With `apply_to_total` the predicate also
        restricts the unfiltered total; the total is computed without joins,
        so such callbacks may only reference the root alias.
        """
        if not callable(callback):
            raise TypeError("The callback argument must be callable.")
        self._callbacks.append(WhereCallback(callback=callback, apply_to_total=apply_to_total))
        return self

    def set_default_join_type(self, join_type: Any) -> "DatatableService":
        self.config = replace(self.config, default_join_type=JoinType.from_value(join_type))
        return self

    def set_join_type(self, path: str, join_type: Any) -> "DatatableService":
        """Override the join kind for the association reached by `path`."""
        self._join_types[path] = JoinType.from_value(join_type)
        return self

    def set_dt_row_class(self, dt_row_class: Optional[str]) -> "DatatableService":
        self.config = replace(self.config, dt_row_class=dt_row_class)
        return self

    def use_dt_row_id(self, enabled: bool) -> "DatatableService":
        self.config = replace(self.config, use_dt_row_id=bool(enabled))
        return self

    def use_dt_row_class(self, enabled: bool) -> "DatatableService":
        self.config = replace(self.config, use_dt_row_class=bool(enabled))
        return self

    def use_paginator(self, enabled: bool) -> "DatatableService":
        self.config = replace(self.config, use_paginator=bool(enabled))
        return self

    def contains_collections(self) -> bool:
        return any(binding.is_collection_reachable for binding in self._all_bindings())

    def _all_bindings(self) -> List[ColumnBinding]:
        return [self.bindings[index] for index in sorted(self.bindings)] + self.manual_bindings

    # ===== EXECUTION =====

    def effective_config(self) -> DatatableConfig:
        return replace(self.config, join_types=dict(self._join_types))

    def build_plan(self) -> QueryPlan:
        return QueryPlanBuilder(
            request=self.request,
            root_entity=self.entity,
            metadata=self.metadata,
            registry=self.registry,
            bindings=self.bindings,
            extra_bindings=self.manual_bindings,
            config=self.effective_config(),
            callbacks=self._callbacks,
        ).build()

    def get_search_results(self) -> DatatableResult:
        """Build the plan, run the page and count queries, and reshape the rows."""
        plan = self.build_plan()

        executor = QueryExecutor(self.session, use_paginator=self.config.use_paginator)
        raw_rows = executor.fetch(plan)

        rows = [
            self._stamp_row(row, plan)
            for row in ResultReshaper(self._all_bindings()).reshape_all(raw_rows)
        ]

        counter = CountingService(self.session)
        total_records = counter.count_all(plan)
        display_records = counter.count_filtered(plan)

        logger.info(
            "Datatable '%s' draw %s: %s rows, %s filtered of %s",
            self.root_alias, self.request.draw, len(rows), display_records, total_records,
        )
        return DatatableResult(
            data=rows,
            draw=self.request.draw,
            total_records=total_records,
            display_records=display_records,
        )

    def get_output(self) -> Dict[str, Any]:
        """Search results in the envelope of the request's protocol version."""
        return self.get_search_results().to_output(self.request.version)

    def _stamp_row(self, row: Dict[str, Any], plan: QueryPlan) -> Dict[str, Any]:
        if self.config.use_dt_row_class and self.config.dt_row_class is not None:
            row[ROW_CLASS_KEY] = self.config.dt_row_class
        if self.config.use_dt_row_id:
            row[ROW_ID_KEY] = row.get(plan.root_identifiers[0])
        return row
