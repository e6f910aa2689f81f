"""
Test configuration and shared fixtures for the datatables test suite.
Provides database setup, sample sales data, request builders and the API client.
"""

import pytest
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.app import create_app
from app.core.database import Base, get_db
from app.datatables.request_parser import parse_request
from app.datatables.schemas import DatatableRequest
from app.sales.sample_data import create_sample_data


# ===== DATABASE SETUP =====

@pytest.fixture(scope="session")
def engine():
    """Create in-memory SQLite engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Import all models to register them
    from app.sales.models import Customer, Employee, Location, Order, OrderLine  # noqa: F401
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine):
    """Create a database session"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()  # Rollback any uncommitted changes
        session.close()
        # Clean up all data after each test
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)


@pytest.fixture
def sales_data(db_session):
    """Locations, customers, employees, orders and order lines"""
    create_sample_data(db_session)
    return db_session


@pytest.fixture
def client(db_session):
    """Create FastAPI test client with database overrides"""
    app = create_app(initialize_database=False)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    # Clean up overrides
    app.dependency_overrides.clear()


# ===== REQUEST BUILDERS =====

def datatable_params(
    columns: Sequence[Any],
    draw: int = 1,
    start: int = 0,
    length: int = 10,
    search: str = "",
    order: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, str]:
    """
    Flat query-string parameters as DataTables >= 1.10 sends them.

    `columns` holds data values, or dicts with `data` and any of
    `searchable`, `orderable` and `search`.
    """
    params = {
        "draw": str(draw),
        "start": str(start),
        "length": str(length),
        "search[value]": search,
        "search[regex]": "false",
    }
    for i, column in enumerate(columns):
        column = column if isinstance(column, dict) else {"data": column}
        params[f"columns[{i}][data]"] = column["data"]
        params[f"columns[{i}][name]"] = ""
        params[f"columns[{i}][searchable]"] = str(column.get("searchable", True)).lower()
        params[f"columns[{i}][orderable]"] = str(column.get("orderable", True)).lower()
        params[f"columns[{i}][search][value]"] = column.get("search", "")
        params[f"columns[{i}][search][regex]"] = "false"
    for i, entry in enumerate(order or []):
        params[f"order[{i}][column]"] = str(entry["column"])
        params[f"order[{i}][dir]"] = entry.get("dir", "asc")
    return params


def make_request(columns: Sequence[Any], **kwargs: Any) -> DatatableRequest:
    return parse_request(datatable_params(columns, **kwargs))


@pytest.fixture
def build_request():
    """Factory for parsed DataTables requests"""
    return make_request


@pytest.fixture
def build_params():
    """Factory for raw DataTables >= 1.10 query-string parameters"""
    return datatable_params
