# app/core/database.py
"""Database configuration."""

import logging
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./datatables.db")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ===== SESSION GENERATORS =====


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ===== TABLE CREATION =====


def create_all_tables(bind=None):
    """Create every mapped table."""
    # Import models to ensure they're registered with Base
    from app.sales.models import Customer, Employee, Location, Order, OrderLine  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")


def drop_all_tables(bind=None):
    """Drop every mapped table (use with caution!)."""
    from app.sales.models import Customer, Employee, Location, Order, OrderLine  # noqa: F401

    Base.metadata.drop_all(bind=bind or engine)
    logger.info("Database tables dropped")


def init_db(force_recreate: bool = False):
    """Initialize the database, seeding sample data when it is empty."""
    from app.sales.sample_data import create_sample_data

    if force_recreate:
        drop_all_tables()
    create_all_tables()

    with SessionLocal() as session:
        create_sample_data(session)


if __name__ == "__main__":
    # Allow running this file directly to initialize the database
    init_db()
