# backend/tutorhub/database/session_utils.py
"""Dialect checks for code paths that differ between PostgreSQL and SQLite."""

from sqlalchemy.orm import Session


def dialect_name(session: Session) -> str:
    """Name of the dialect the session's bind speaks ("postgresql", "sqlite")."""
    return session.get_bind().dialect.name


def is_postgres(session: Session) -> bool:
    """True when per-transaction settings such as ``statement_timeout`` apply."""
    return dialect_name(session) == "postgresql"
