"""Database helper functions shared by the repositories"""
from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def utc_now() -> datetime:
    """Current time in UTC (default clock for every repository)"""
    return datetime.now(timezone.utc)


def dialect_insert(db: Session, model):
    """Build an INSERT for the session's dialect that supports ON CONFLICT.

    Postgres in production, SQLite in tests. Both expose
    on_conflict_do_nothing() / on_conflict_do_update() with the same signature.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not supported on dialect '{dialect}'")
