"""Database configuration and helpers for the FlightRadar relay."""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

DATABASE_URL = os.getenv("FLIGHTRADAR_DB_URL", "sqlite:///./flightradar.db")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

logger = logging.getLogger("flightradar.db")


def init_db() -> None:
    """Create database tables if they do not exist."""

    import flightradar.db_models  # noqa: F401 - models are imported for side effects

    Base.metadata.create_all(bind=engine)
    logger.debug("Database tables ensured on %s", engine.url)
