# app/datatables/resolver.py
"""Resolution of dotted column paths into field bindings and joins.

A client column such as ``customer.location.address`` is walked one segment
at a time against the entity metadata. Every association segment registers a
join (shared with any other column that walks the same prefix) and the last
segment must name a field on the entity reached at the end of the walk.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from app.datatables.definitions import ColumnBinding, JoinDefinition, JoinType
from app.datatables.exceptions import UnknownAssociation, UnknownField
from app.datatables.metadata import MetadataProvider

logger = logging.getLogger(__name__)

# Column data values rendered client-side: indexes, functions and blanks
_UNBOUND_DATA = re.compile(r"^(\d+|function|\s*)$")


def is_bindable(data: Optional[str]) -> bool:
    """Whether a column's `data` value names something to select."""
    if data is None:
        return False
    return _UNBOUND_DATA.match(data) is None


class JoinRegistry:
    """Deduplicates the joins of one request and assigns their aliases."""

    def __init__(self, root_alias: str):
        self.root_alias = root_alias
        self._joins: Dict[Tuple[str, str], JoinDefinition] = {}
        self._aliases: Set[str] = {root_alias}
        self._column_paths: Dict[str, List[str]] = {}

    def register(
        self,
        parent_alias: str,
        relation_name: str,
        candidate_alias: str,
        source_path: str,
        target_entity: Any,
        identifier_fields: Tuple[str, ...],
        is_collection: bool = False,
        column_path: Optional[str] = None,
    ) -> JoinDefinition:
        """Register a join, or return the one already registered for this relation."""
        key = (parent_alias, relation_name)
        existing = self._joins.get(key)
        if existing is not None:
            self._add_column_path(existing.alias, column_path)
            return existing

        alias = candidate_alias
        while alias in self._aliases:
            alias = f"{alias}_{relation_name}"

        join = JoinDefinition(
            alias=alias,
            parent_alias=parent_alias,
            relation_name=relation_name,
            source_path=source_path,
            target_entity=target_entity,
            identifier_fields=tuple(identifier_fields),
            is_collection=is_collection,
        )
        self._joins[key] = join
        self._aliases.add(alias)
        self._add_column_path(alias, column_path)
        logger.debug("Registered join %s AS %s (from '%s')", join.join_on, alias, source_path)
        return join

    def joins(self) -> List[JoinDefinition]:
        """Registered joins, parents before children."""
        return list(self._joins.values())

    def aliases(self) -> List[str]:
        return [self.root_alias] + [join.alias for join in self._joins.values()]

    def contains_collections(self) -> bool:
        return any(join.is_collection for join in self._joins.values())

    def _add_column_path(self, alias: str, column_path: Optional[str]) -> None:
        paths = self._column_paths.setdefault(alias, [])
        if column_path and column_path not in paths:
            paths.append(column_path)

    def column_paths(self, alias: str) -> List[str]:
        """Column paths that walked through the join registered as `alias`."""
        return list(self._column_paths.get(alias, []))

    def join_type_for(
        self,
        join: JoinDefinition,
        overrides: Dict[str, JoinType],
        default: JoinType,
    ) -> JoinType:
        """
        Join kind for `join`.

        An override keyed by the association prefix wins, then one keyed by
        a full column path that walked through the join, else `default`.
        """
        for key in [join.source_path] + self.column_paths(join.alias):
            override = overrides.get(key)
            if override is not None:
                return JoinType.from_value(override)
        return JoinType.from_value(default)


class PathResolver:
    """Turns dotted column paths into ColumnBindings, registering joins on the way."""

    def __init__(self, root_entity: Any, metadata: MetadataProvider, registry: JoinRegistry):
        self.root_entity = root_entity
        self.metadata = metadata
        self.registry = registry

    @property
    def root_alias(self) -> str:
        return self.registry.root_alias

    def resolve(self, path: str) -> ColumnBinding:
        segments = path.split(".")
        field_name = segments.pop()

        entity = self.root_entity
        alias = self.root_alias
        relation_name = self.root_alias
        collection_reachable = False
        walked: List[str] = []

        for segment in segments:
            walked.append(segment)
            if not self.metadata.has_association(entity, segment):
                raise UnknownAssociation(path, segment)

            is_collection = self.metadata.is_collection_association(entity, segment)
            collection_reachable = collection_reachable or is_collection
            target = self.metadata.association_target(entity, segment)

            join = self.registry.register(
                parent_alias=alias,
                relation_name=segment,
                candidate_alias=self._candidate_alias(alias, target, segment),
                source_path=".".join(walked),
                target_entity=target,
                identifier_fields=tuple(self.metadata.identifier_fields(target)),
                is_collection=is_collection,
                column_path=path,
            )
            entity, alias, relation_name = target, join.alias, segment

        if not self.metadata.has_field(entity, field_name):
            raise UnknownField(path, relation_name, field_name)

        return ColumnBinding(
            path=path,
            entity_alias=alias,
            field_name=field_name,
            relation_name=relation_name,
            is_collection_reachable=collection_reachable,
        )

    def _candidate_alias(self, parent_alias: str, target: Any, segment: str) -> str:
        alias = f"{parent_alias}_{self.metadata.table_name(target)}"
        # self-referencing relations would otherwise collide with the root alias
        if self.metadata.is_same_entity(target, self.root_entity):
            alias = f"{alias}_{segment}"
        return alias
