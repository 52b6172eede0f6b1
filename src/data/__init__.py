"""
Sample Data Module
"""
from .seed import SEED_RECORDS, seed_snapshot, seed_source

__all__ = [
    "SEED_RECORDS",
    "seed_snapshot",
    "seed_source",
]
