"""
Database Module
"""
from .connection import init_database, close_database, get_db
from .loader import load_snapshot
from .models import Base, MODELS

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "load_snapshot",
    "Base",
    "MODELS",
]
