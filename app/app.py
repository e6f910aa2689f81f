"""FastAPI application entry point for the datatables service."""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.core.database import init_db
from app.core.router import register_routes
from app.datatables.exceptions import DatatableError
from app.logging.exception_handlers import (
    datatable_exception_handler,
    general_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)


def create_app(initialize_database: bool = True) -> FastAPI:

    app = FastAPI(docs_url="/api/docs", redoc_url="/api/redoc", openapi_url="/api/openapi.json")
    if initialize_database:
        init_db()

    app.add_exception_handler(DatatableError, datatable_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    return app
