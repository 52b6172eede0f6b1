"""
Prefect Workflow Orchestration - Report Batch

Scheduled report run over one snapshot:
- Snapshot materialization from the database or the sample dataset
- Data quality checks on the snapshot
- Concurrent report execution with a batch deadline
- Alerting on failed or timed out reports
"""

from typing import Any, Dict, List, Optional

from prefect import flow, task, get_run_logger

from src.analytics import ReportEngine, Snapshot
from src.config import get_settings
from src.data.seed import seed_snapshot
from src.database.connection import close_database, get_db, init_database
from src.database.loader import load_snapshot
from src.quality.validators import validate_snapshot


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="load_snapshot",
    description="Materialize a consistent snapshot of every relation",
    retries=3,
    retry_delay_seconds=60,
)
async def load_snapshot_task(source: str) -> Snapshot:
    """Load a snapshot from the configured source"""
    logger = get_run_logger()

    if source == "seed":
        snapshot = seed_snapshot()
    else:
        await init_database()
        try:
            async with get_db() as db:
                snapshot = await load_snapshot(db)
        finally:
            await close_database()

    logger.info(f"Snapshot loaded from {source}: {snapshot.row_counts()}")
    return snapshot


@task(
    name="validate_snapshot",
    description="Run data quality validations on the snapshot",
)
def validate_snapshot_task(snapshot: Snapshot) -> Dict[str, Any]:
    """Validate snapshot quality"""
    logger = get_run_logger()

    validation = validate_snapshot(snapshot)
    logger.info(f"Snapshot validation {validation.status.value}")
    return validation.to_dict()


@task(
    name="run_reports",
    description="Run catalog reports against the snapshot",
)
def run_reports_task(
    snapshot: Snapshot,
    reports: Optional[List[str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Run reports; per-report failures are reported, not raised"""
    logger = get_run_logger()

    engine = ReportEngine(snapshot, get_settings().reports, **(overrides or {}))
    batch = engine.run_batch(reports)

    logger.info(f"Report batch complete: {batch.status_counts()}")
    return batch.to_dict()


@task(
    name="send_alert",
    description="Send alert notification",
)
def send_alert(alert_type: str, message: str, severity: str = "info") -> None:
    """Send alert notification"""
    logger = get_run_logger()
    logger.warning(f"[{severity.upper()}] {alert_type}: {message}")


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="report_batch",
    description="Scheduled business report batch",
)
async def report_batch(
    source: Optional[str] = None,
    reports: Optional[List[str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Report batch pipeline.

    Steps:
    1. Load snapshot
    2. Validate snapshot quality
    3. Run reports
    4. Alert on failures
    """
    logger = get_run_logger()
    source = source or get_settings().reports.snapshot_source

    snapshot = await load_snapshot_task(source)
    validation = validate_snapshot_task(snapshot)
    if validation["status"] == "failed":
        send_alert(
            alert_type="Snapshot Quality",
            message="Snapshot failed validation; reports may drop orphaned rows",
            severity="warning",
        )

    batch = run_reports_task(snapshot, reports, overrides)

    failed = [
        name for name, report in batch["reports"].items()
        if report["status"] in ("failed", "timeout")
    ]
    if failed:
        send_alert(
            alert_type="Report Failures",
            message=f"{len(failed)} reports did not complete: {', '.join(failed)}",
            severity="critical",
        )

    logger.info(f"Report batch flow complete: {batch['summary']}")
    return {
        "source": source,
        "validation": validation,
        "batch": batch,
    }


if __name__ == "__main__":
    import asyncio

    asyncio.run(report_batch())
