"""
Report API Endpoints

REST API over the report engine: the catalog, single reports with per-run
setting overrides, batch runs and snapshot validation.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.analytics import ReportEngine, Snapshot
from src.analytics.catalog import build_catalog
from src.config import get_settings
from src.quality import validate_snapshot
from src.serving.api.dependencies import get_snapshot

router = APIRouter()


class CatalogEntry(BaseModel):
    """One report in the catalog"""
    number: int
    name: str
    title: str
    kind: str


class ReportOverrides(BaseModel):
    """Per-run report setting overrides; unset fields keep configured values"""
    sla_days: Optional[int] = None
    high_value_ltv_threshold: Optional[float] = None
    top_n: Optional[int] = None
    slow_moving_units_threshold: Optional[int] = None
    strict_references: Optional[bool] = None


class BatchRequest(ReportOverrides):
    """Batch run request"""
    reports: Optional[List[str]] = Field(default=None, description="Defaults to the whole catalog")
    timeout_seconds: Optional[float] = None


def _engine(snapshot: Snapshot, overrides: ReportOverrides) -> ReportEngine:
    return ReportEngine(snapshot, get_settings().reports, **overrides.model_dump())


@router.get("", response_model=List[CatalogEntry])
def list_reports() -> List[CatalogEntry]:
    """List every report in catalog order."""
    catalog = build_catalog(get_settings().reports)
    return [
        CatalogEntry(number=spec.number, name=spec.name, title=spec.title, kind=spec.kind.value)
        for spec in catalog.values()
    ]


@router.post("/run")
def run_batch(
    request: BatchRequest,
    snapshot: Snapshot = Depends(get_snapshot),
) -> Dict[str, Any]:
    """Run several reports against one snapshot."""
    overrides = ReportOverrides(**request.model_dump(include=set(ReportOverrides.model_fields)))
    engine = _engine(snapshot, overrides)
    batch = engine.run_batch(request.reports, timeout=request.timeout_seconds)
    return batch.to_dict()


@router.get("/{name}")
def run_report(
    name: str,
    sla_days: Optional[int] = Query(None),
    high_value_ltv_threshold: Optional[float] = Query(None),
    top_n: Optional[int] = Query(None),
    slow_moving_units_threshold: Optional[int] = Query(None),
    strict_references: Optional[bool] = Query(None),
    snapshot: Snapshot = Depends(get_snapshot),
) -> Dict[str, Any]:
    """
    Run a single report.

    Errors inside the report come back on the result with status
    "failed"; unknown names and invalid overrides are rejected.
    """
    overrides = ReportOverrides(
        sla_days=sla_days,
        high_value_ltv_threshold=high_value_ltv_threshold,
        top_n=top_n,
        slow_moving_units_threshold=slow_moving_units_threshold,
        strict_references=strict_references,
    )
    return _engine(snapshot, overrides).run_report(name).to_dict()


snapshot_router = APIRouter()


@snapshot_router.get("/validation")
def snapshot_validation(snapshot: Snapshot = Depends(get_snapshot)) -> Dict[str, Any]:
    """Data quality checks over the current snapshot."""
    result = validate_snapshot(snapshot).to_dict()
    result["row_counts"] = snapshot.row_counts()
    return result
