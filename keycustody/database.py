# =======================================================================================
# keycustody/database.py - Database Management
# =======================================================================================
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import (
    Column, DateTime, Index, MetaData, String, Table, create_engine, text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from .config import config

metadata = MetaData()

key_records = Table(
    "key_records",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("company", String(16), nullable=False),
    Column("location", String(8), nullable=False),
    Column("key_no", String(3), nullable=False),
    Column("barcode_code", String(40), nullable=False, unique=True),
    Column("no_of_keys", String(16), nullable=False, default="1"),
    Column("created_at", DateTime, nullable=False),
    Column("last_update", DateTime),
    Column("last_return", DateTime),
    Column("last_draw", DateTime),
)

activity_logs = Table(
    "activity_logs",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("masked_identity", String(16), nullable=False),
    Column("barcode_code", String(40), nullable=False),
    Column("company", String(16), nullable=False),
    Column("location", String(8), nullable=False),
    Column("key_no", String(3), nullable=False),
    Column("action", String(8), nullable=False),
    Column("rank", String(16)),
    Column("name", String(100)),
    Column("number", String(32)),
    Column("timestamp", DateTime, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Index("ix_activity_logs_timestamp", "timestamp"),
)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or config.DB_URL
        if self.url.startswith("sqlite"):
            # One shared connection for in-memory databases, threads allowed
            kwargs = {"connect_args": {"check_same_thread": False}}
            if _is_memory_sqlite(self.url):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs = {
                "poolclass": QueuePool,
                "pool_size": config.DB_POOL_SIZE,
                "max_overflow": config.DB_MAX_OVERFLOW,
                "isolation_level": "READ COMMITTED",
            }
        self.engine: Engine = create_engine(self.url, pool_pre_ping=True, future=True, **kwargs)

    def create_schema(self):
        """Create the key record and activity log tables if missing."""
        metadata.create_all(self.engine)

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def ping(self):
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self):
        self.engine.dispose()

# Global database instance
db_manager = DatabaseManager()
