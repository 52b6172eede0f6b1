"""
Report Results

Typed output of the report engine: one ReportResult per report, collected
into a BatchResult for a batch run. Formatting for display is left to callers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from src.analytics.errors import DivisionByZero, ReportError, ReportTimeout


class ReportKind(str, Enum):
    """Shape of a report's output"""
    TABLE = "table"  # Ordered rows of (group key, metric, ...)
    SCALAR = "scalar"  # Named metric values


class ReportStatus(str, Enum):
    """Outcome of a single report"""
    OK = "ok"
    UNDEFINED = "undefined"  # At least one metric had a zero denominator
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class ReportResult:
    """Result of one report over one snapshot"""
    name: str
    title: str
    kind: ReportKind
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    metrics: Dict[str, Optional[float]] = field(default_factory=dict)
    warnings: List[ReportError] = field(default_factory=list)
    error: Optional[ReportError] = None
    duration_ms: float = field(default=0.0, compare=False)

    @property
    def status(self) -> ReportStatus:
        if isinstance(self.error, ReportTimeout):
            return ReportStatus.TIMEOUT
        if self.error is not None:
            return ReportStatus.FAILED
        if any(isinstance(w, DivisionByZero) for w in self.warnings):
            return ReportStatus.UNDEFINED
        return ReportStatus.OK

    @property
    def ok(self) -> bool:
        return self.status == ReportStatus.OK

    @property
    def undefined_metrics(self) -> List[str]:
        """Metrics whose value is undefined because of a zero denominator"""
        return [w.metric for w in self.warnings if isinstance(w, DivisionByZero)]

    def value(self, metric: Optional[str] = None) -> Optional[float]:
        """
        Get a scalar metric.

        With no name, returns the only metric of a single-metric report.
        """
        if metric is None:
            if len(self.metrics) != 1:
                raise ValueError(f"{self.name} has {len(self.metrics)} metrics; name one")
            return next(iter(self.metrics.values()))
        return self.metrics[metric]

    def records(self) -> List[Dict[str, Any]]:
        """Rows as dicts keyed by column name"""
        return [dict(zip(self.columns, row)) for row in self.rows]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "title": self.title,
            "kind": self.kind.value,
            "status": self.status.value,
            "warnings": [w.to_dict() for w in self.warnings],
            "error": self.error.to_dict() if self.error else None,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.kind == ReportKind.SCALAR:
            data["metrics"] = dict(self.metrics)
        else:
            data["columns"] = list(self.columns)
            data["rows"] = self.records()
        return data


@dataclass
class BatchResult:
    """Results of every report in one batch, in catalog order"""
    results: Dict[str, ReportResult]
    started_at: datetime
    completed_at: Optional[datetime] = None

    def __getitem__(self, name: str) -> ReportResult:
        return self.results[name]

    def __iter__(self) -> Iterator[ReportResult]:
        return iter(self.results.values())

    def __len__(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> List[str]:
        """Names of reports that failed or timed out"""
        return [
            r.name for r in self
            if r.status in (ReportStatus.FAILED, ReportStatus.TIMEOUT)
        ]

    def status_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for result in self:
            counts[result.status.value] = counts.get(result.status.value, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "summary": self.status_counts(),
            "reports": {name: r.to_dict() for name, r in self.results.items()},
        }
