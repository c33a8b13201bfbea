"""
Database Module
"""
from .connection import Database, get_database, get_session
from .models import Base

__all__ = [
    "Database",
    "get_database",
    "get_session",
    "Base",
]
