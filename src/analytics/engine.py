"""
Report Engine

Runs catalog reports over a single immutable snapshot. Reports are
independent, so a batch fans them out to a thread pool; polars releases the
GIL while it works on frames. A batch deadline abandons unfinished reports
without touching the results of the ones that completed.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import structlog

from src.analytics.catalog import ReportSpec, build_catalog
from src.analytics.errors import ReportError, ReportTimeout, UnknownReport
from src.analytics.evaluator import evaluate
from src.analytics.results import BatchResult, ReportResult
from src.analytics.snapshot import Snapshot
from src.config.settings import ReportSettings, resolve_report_settings

logger = structlog.get_logger(__name__)


class ReportEngine:
    """
    Analytics query engine over one snapshot.

    Settings are resolved and validated on construction, so invalid
    thresholds are rejected before any report runs.

    Example:
        engine = ReportEngine(snapshot, sla_days=3)
        batch = engine.run_batch()
        batch["average_order_value"].value()
    """

    def __init__(
        self,
        snapshot: Snapshot,
        settings: Optional[ReportSettings] = None,
        **overrides: Any,
    ):
        self.snapshot = snapshot
        self.settings = resolve_report_settings(settings, **overrides)
        self.catalog: Dict[str, ReportSpec] = build_catalog(self.settings)

    @property
    def report_names(self) -> List[str]:
        return list(self.catalog)

    def spec(self, name: str) -> ReportSpec:
        try:
            return self.catalog[name]
        except KeyError:
            raise UnknownReport(name) from None

    def run_report(self, name: str) -> ReportResult:
        """
        Run one report.

        Errors inside the report are returned on the result, never raised.

        Raises:
            UnknownReport: If the name is not in the catalog
        """
        spec = self.spec(name)
        log = logger.bind(report=name)

        try:
            result = evaluate(spec, self.snapshot, self.settings)
        except ReportError as e:
            log.warning("Report failed", error=str(e), error_type=type(e).__name__)
            return ReportResult(name=spec.name, title=spec.title, kind=spec.kind, error=e)
        except Exception as e:
            log.exception("Report crashed", error_type=type(e).__name__)
            error = ReportError(f"{name} failed: {e}")
            error.__cause__ = e
            return ReportResult(name=spec.name, title=spec.title, kind=spec.kind, error=error)

        log.info(
            "Report completed",
            status=result.status.value,
            rows=len(result.rows),
            warnings=len(result.warnings),
            duration_ms=round(result.duration_ms, 2),
        )
        return result

    def run_batch(
        self,
        names: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
    ) -> BatchResult:
        """
        Run several reports concurrently against the same snapshot.

        Args:
            names: Reports to run; defaults to the whole catalog
            timeout: Batch deadline in seconds; defaults to the configured one

        Returns:
            BatchResult in the requested order. Reports unfinished at the
            deadline carry a ReportTimeout error.

        Raises:
            UnknownReport: If any requested name is not in the catalog
        """
        names = list(names) if names is not None else self.report_names
        for name in names:
            self.spec(name)

        timeout = timeout if timeout is not None else self.settings.batch_timeout_seconds
        started_at = datetime.now(timezone.utc)

        logger.info(
            "Report batch started",
            reports=len(names),
            workers=self.settings.max_workers,
            timeout=timeout,
        )

        executor = ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="report")
        try:
            futures = {name: executor.submit(self.run_report, name) for name in names}
            wait(futures.values(), timeout=timeout)

            results: Dict[str, ReportResult] = {}
            for name, future in futures.items():
                if future.done():
                    results[name] = future.result()
                    continue

                future.cancel()
                spec = self.catalog[name]
                logger.warning("Report timed out", report=name, timeout=timeout)
                results[name] = ReportResult(
                    name=spec.name,
                    title=spec.title,
                    kind=spec.kind,
                    error=ReportTimeout(name, timeout),
                )
        finally:
            # Threads still running past the deadline are abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)

        batch = BatchResult(results=results, started_at=started_at, completed_at=datetime.now(timezone.utc))
        logger.info("Report batch completed", **batch.status_counts())
        return batch


def run_reports(
    snapshot: Snapshot,
    names: Optional[Iterable[str]] = None,
    **overrides: Any,
) -> BatchResult:
    """Convenience function: run reports with per-run setting overrides"""
    return ReportEngine(snapshot, **overrides).run_batch(names)
