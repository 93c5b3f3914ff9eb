"""Database engine, session and declarative base."""

from .base import Base
from .session import Database

__all__ = ["Base", "Database"]
