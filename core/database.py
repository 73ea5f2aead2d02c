"""
core/database.py -- Shared SQLAlchemy Core schema and engine factory.

Users and notes live in one database so the notes.created_by foreign key can
cascade account deletion to the user's notes. Stores (auth/store.py,
notes/store.py) receive the Engine built here; they never create their own.

SQLAlchemy provides a database-agnostic abstraction: swapping SQLite for
PostgreSQL is a DATABASE_URL change, not a rewrite.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(30), nullable=False),
    Column("email", String(100), nullable=False, unique=True),
    Column("password", String(80), nullable=False),  # bcrypt hash, never plaintext
    Column("role", String(10), nullable=False, server_default="user"),
    Column("otp_enabled", Boolean, nullable=False, server_default="0"),
    Column("otp_verified", Boolean, nullable=False, server_default="0"),
    Column("otp_base32", String(100)),
    Column("otp_auth_url", String(255)),
)

notes = Table(
    "notes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("image_url", String(255)),
    Column("active", Boolean, nullable=False, server_default="1"),
    Column("created_by", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_on", String(32), nullable=False),
    Column("updated_on", String(32), nullable=False),
)


def _sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign-key enforcement on every new SQLite connection.

    SQLite PRAGMAs are per-connection and not inherited from the pool, and
    foreign keys are off by default -- without this the notes cascade never fires.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build an Engine for db_url and create any missing tables."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # Worker-pool threads share pooled connections.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _sqlite_pragmas)
    metadata.create_all(engine)
    return engine
