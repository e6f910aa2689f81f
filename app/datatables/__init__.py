"""
Server-side processing for DataTables grids.

Translates DataTables requests into one SQLAlchemy query per page, following
dotted column paths such as ``customer.location.city`` through the mapped
relationships of a root entity.

Main Components:
- PathResolver / JoinRegistry: dotted paths to field bindings and joins
- QueryPlanBuilder: select, joins, where, order and limit for one request
- QueryExecutor / CountingService: page query and the two record counts
- ResultReshaper: flattens to-many collections into one value per cell
- DatatableService / DatatableManager: per-request orchestration and registry
"""

from .builder import QueryPlanBuilder
from .counting import CountingService
from .definitions import ColumnBinding, DatatableConfig, JoinType, QueryPlan, SortDirection
from .exceptions import (
    DatatableError,
    EmptyProjection,
    ExecutionFailed,
    CallbackAliasUnavailable,
    CountQueryFailed,
    InvalidRequest,
    UnknownAssociation,
    UnknownEntity,
    UnknownField,
    UnsupportedProtocolVersion,
)
from .executor import QueryExecutor
from .manager import DatatableManager
from .metadata import MetadataProvider, SQLAlchemyMetadataProvider
from .request_parser import parse_request
from .reshaper import ResultReshaper
from .resolver import JoinRegistry, PathResolver
from .schemas import DatatableRequest, DatatableResult, ProtocolVersion
from .service import DatatableService

__all__ = [
    # Main classes
    "DatatableManager",
    "DatatableService",
    "PathResolver",
    "JoinRegistry",
    "QueryPlanBuilder",
    "QueryExecutor",
    "CountingService",
    "ResultReshaper",
    "MetadataProvider",
    "SQLAlchemyMetadataProvider",
    "parse_request",
    # Plan and request types
    "ColumnBinding",
    "DatatableConfig",
    "QueryPlan",
    "DatatableRequest",
    "DatatableResult",
    # Enums
    "JoinType",
    "SortDirection",
    "ProtocolVersion",
    # Errors
    "DatatableError",
    "UnknownAssociation",
    "UnknownField",
    "UnknownEntity",
    "UnsupportedProtocolVersion",
    "InvalidRequest",
    "EmptyProjection",
    "ExecutionFailed",
    "CallbackAliasUnavailable",
    "CountQueryFailed",
]
