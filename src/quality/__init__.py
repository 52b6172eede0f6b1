"""
Data Quality Module
"""
from .validators import (
    DataValidator,
    SnapshotValidation,
    ValidationResult,
    ValidationStatus,
    validate_snapshot,
)

__all__ = [
    "DataValidator",
    "SnapshotValidation",
    "ValidationResult",
    "ValidationStatus",
    "validate_snapshot",
]
