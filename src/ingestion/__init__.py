"""
Data Ingestion Module
"""
from .seed_db import create_tables, seed_database

__all__ = [
    "create_tables",
    "seed_database",
]
