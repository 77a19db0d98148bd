"""Utility script to create the database schema."""
from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from fotofocus.core.config import get_settings

from .session import Database


def create_all() -> None:
    database = Database(get_settings().database_url)
    database.connect()
    try:
        database.create_all()
    finally:
        database.disconnect()


if __name__ == "__main__":
    try:
        create_all()
        print("Database tables created successfully.")
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
