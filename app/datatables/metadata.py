# app/datatables/metadata.py
"""Entity metadata lookups used to resolve dotted column paths."""

from abc import ABC, abstractmethod
from typing import Any, List

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Mapper

from app.datatables.exceptions import UnknownEntity


class MetadataProvider(ABC):
    """Answers schema questions about entity types."""

    @abstractmethod
    def has_field(self, entity: Any, name: str) -> bool:
        ...

    @abstractmethod
    def has_association(self, entity: Any, name: str) -> bool:
        ...

    @abstractmethod
    def is_collection_association(self, entity: Any, name: str) -> bool:
        ...

    @abstractmethod
    def association_target(self, entity: Any, name: str) -> Any:
        ...

    @abstractmethod
    def identifier_fields(self, entity: Any) -> List[str]:
        ...

    @abstractmethod
    def table_name(self, entity: Any) -> str:
        ...

    def is_same_entity(self, left: Any, right: Any) -> bool:
        return left is right


class SQLAlchemyMetadataProvider(MetadataProvider):
    """MetadataProvider backed by SQLAlchemy declarative mappings."""

    def _mapper(self, entity: Any) -> Mapper:
        try:
            mapper = inspect(entity)
        except NoInspectionAvailable:
            raise UnknownEntity(getattr(entity, "__name__", repr(entity))) from None
        # aliased classes inspect to AliasedInsp, which carries the mapper
        return getattr(mapper, "mapper", mapper)

    def has_field(self, entity: Any, name: str) -> bool:
        return name in self._mapper(entity).column_attrs

    def has_association(self, entity: Any, name: str) -> bool:
        return name in self._mapper(entity).relationships

    def is_collection_association(self, entity: Any, name: str) -> bool:
        return bool(self._mapper(entity).relationships[name].uselist)

    def association_target(self, entity: Any, name: str) -> Any:
        return self._mapper(entity).relationships[name].mapper.class_

    def identifier_fields(self, entity: Any) -> List[str]:
        mapper = self._mapper(entity)
        return [mapper.get_property_by_column(column).key for column in mapper.primary_key]

    def table_name(self, entity: Any) -> str:
        return self._mapper(entity).local_table.name

    def is_same_entity(self, left: Any, right: Any) -> bool:
        return self._mapper(left) is self._mapper(right)
