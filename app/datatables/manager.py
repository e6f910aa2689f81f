# app/datatables/manager.py
"""Registry of entities exposed as datatables."""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from app.datatables.definitions import DatatableConfig, JoinType
from app.datatables.exceptions import UnknownEntity
from app.datatables.metadata import MetadataProvider, SQLAlchemyMetadataProvider
from app.datatables.request_parser import parse_request
from app.datatables.service import DatatableService

load_dotenv()

USE_PAGINATOR = os.getenv("DATATABLES_USE_PAGINATOR", "true").lower() == "true"
DEFAULT_JOIN_TYPE = os.getenv("DATATABLES_DEFAULT_JOIN_TYPE", "inner")

logger = logging.getLogger(__name__)


class DatatableManager:
    """Maps entity names to mapped classes and creates a service per request."""

    def __init__(
        self,
        use_paginator: bool = USE_PAGINATOR,
        default_join_type: Any = DEFAULT_JOIN_TYPE,
        metadata: Optional[MetadataProvider] = None,
    ):
        self.use_paginator = use_paginator
        self.default_join_type = JoinType.from_value(default_join_type)
        self.metadata = metadata or SQLAlchemyMetadataProvider()
        self._entities: Dict[str, Any] = {}

    def register(self, name: str, entity: Any) -> None:
        """Expose `entity` under `name`."""
        # resolves the table name, so unmapped classes fail here
        self.metadata.table_name(entity)
        self._entities[name] = entity
        logger.debug("Registered datatable entity '%s' -> %s", name, entity.__name__)

    def get_entity(self, name: str) -> Any:
        entity = self._entities.get(name)
        if entity is None:
            raise UnknownEntity(name)
        return entity

    def entity_names(self) -> List[str]:
        return sorted(self._entities)

    def default_config(self) -> DatatableConfig:
        return DatatableConfig(
            default_join_type=self.default_join_type,
            use_paginator=self.use_paginator,
        )

    def get_datatable(
        self,
        entity: Union[str, Any],
        params: Mapping[str, Any],
        session: Session,
    ) -> DatatableService:
        """
        Parse the raw DataTables `params` and return a service for `entity`.

        `entity` is a registered name or a mapped class.
        """
        entity_cls = self.get_entity(entity) if isinstance(entity, str) else entity
        request = parse_request(params)
        return DatatableService(
            request,
            entity_cls,
            session,
            metadata=self.metadata,
            config=self.default_config(),
        )
