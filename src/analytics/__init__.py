"""
Analytics Query Engine Module
"""
from .catalog import REPORT_NAMES, ReportSpec, build_catalog
from .engine import ReportEngine, run_reports
from .errors import (
    DivisionByZero,
    InvalidConfiguration,
    MissingReference,
    ReportError,
    ReportTimeout,
    UnknownReport,
)
from .results import BatchResult, ReportKind, ReportResult, ReportStatus
from .snapshot import InMemorySource, Snapshot, SnapshotSource

__all__ = [
    "REPORT_NAMES",
    "ReportSpec",
    "build_catalog",
    "ReportEngine",
    "run_reports",
    "DivisionByZero",
    "InvalidConfiguration",
    "MissingReference",
    "ReportError",
    "ReportTimeout",
    "UnknownReport",
    "BatchResult",
    "ReportKind",
    "ReportResult",
    "ReportStatus",
    "InMemorySource",
    "Snapshot",
    "SnapshotSource",
]
