"""Server-side DataTables service built on FastAPI and SQLAlchemy."""
