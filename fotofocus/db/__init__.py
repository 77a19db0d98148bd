"""Database helpers (store client and declarative base)."""

from .session import Base, Database

__all__ = ["Base", "Database"]
