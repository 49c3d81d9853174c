"""
Database configuration and session management using SQLAlchemy and MySQL.
Includes lightweight startup schema compatibility upgrades.
"""

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
from typing import Generator
import os
from dotenv import load_dotenv

load_dotenv()

# Database URL configuration
DATABASE_USER = os.getenv("DB_USER", "root")
DATABASE_PASSWORD = os.getenv("DB_PASSWORD", "password")
DATABASE_HOST = os.getenv("DB_HOST", "localhost")
DATABASE_PORT = os.getenv("DB_PORT", "3306")
DATABASE_NAME = os.getenv("DB_NAME", "class_scheduler")

SQLALCHEMY_DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"mysql+pymysql://{DATABASE_USER}:{DATABASE_PASSWORD}@{DATABASE_HOST}:{DATABASE_PORT}/{DATABASE_NAME}",
)


def _engine_options(url: str) -> dict:
    # SQLite (local runs) does not take the MySQL pool settings.
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "echo": False}
    return {
        "poolclass": QueuePool,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "echo": False,
    }


# Create engine with connection pooling
engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_options(SQLALCHEMY_DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting a database session in FastAPI.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Initialize database - create all tables.
    """
    from classplanner.models.models import Base
    Base.metadata.create_all(bind=engine)
    _ensure_legacy_schema_compatibility()


def _ensure_legacy_schema_compatibility() -> None:
    """
    Best-effort compatibility patching for databases created by older code versions.
    Older schedule tables predate generation runs and block indexes.
    """
    inspector = inspect(engine)
    table_names = set(inspector.get_table_names())

    with engine.begin() as conn:
        if "schedules" in table_names:
            columns = {col["name"] for col in inspector.get_columns("schedules")}
            if "run_id" not in columns:
                conn.execute(text("ALTER TABLE schedules ADD COLUMN run_id INTEGER NULL"))
            if "duration_index" not in columns:
                conn.execute(text("ALTER TABLE schedules ADD COLUMN duration_index INTEGER NULL"))

            index_names = {idx["name"] for idx in inspector.get_indexes("schedules")}
            if "ix_schedules_run" not in index_names:
                conn.execute(text("CREATE INDEX ix_schedules_run ON schedules (run_id)"))


def drop_db():
    """
    Drop all tables. Use with caution in production!
    """
    from classplanner.models.models import Base
    Base.metadata.drop_all(bind=engine)


def close_db():
    """Close database connection pool."""
    engine.dispose()
