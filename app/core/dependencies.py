# app/core/dependencies.py
"""Shared FastAPI dependencies"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.datatables.manager import DatatableManager

# Core database dependency
SessionDep = Annotated[Session, Depends(get_db)]


@lru_cache(maxsize=1)
def get_datatable_manager() -> DatatableManager:
    """Application-wide manager with every sample entity registered"""
    from app.sales.registry import register_sales_datatables

    manager = DatatableManager()
    register_sales_datatables(manager)
    return manager


DatatableManagerDep = Annotated[DatatableManager, Depends(get_datatable_manager)]
