"""
Generic Report Evaluator

Runs one ReportSpec against one Snapshot. The evaluator is a pure function of
its inputs: it never mutates the snapshot and holds no state between calls.
"""

import time
from typing import Dict, List, Optional, Tuple

import polars as pl
import structlog

from src.analytics.catalog import JoinStep, Metric, ReportSpec
from src.analytics.errors import DivisionByZero, MissingReference, ReportError
from src.analytics.results import ReportKind, ReportResult
from src.analytics.snapshot import Snapshot
from src.config.settings import ReportSettings

logger = structlog.get_logger(__name__)

MISSING_SAMPLE_SIZE = 5


def find_missing_reference(snapshot: Snapshot, step: JoinStep) -> Optional[MissingReference]:
    """
    Check that every `owner` row resolves through the join key.

    Returns:
        MissingReference describing the unresolved rows, or None
    """
    owner = snapshot.relation(step.owner)
    keys = snapshot.relation(step.relation).select(pl.col(step.right_key)).unique()
    missing = owner.join(keys, left_on=step.on, right_on=step.right_key, how="anti")
    if missing.is_empty():
        return None

    sample = (
        missing.get_column(step.on)
        .unique()
        .sort(nulls_last=True)
        .head(MISSING_SAMPLE_SIZE)
        .to_list()
    )
    return MissingReference(
        relation=step.owner,
        column=step.on,
        referenced=step.relation,
        missing_count=missing.height,
        sample=sample,
    )


def _join(frame: pl.DataFrame, snapshot: Snapshot, step: JoinStep) -> pl.DataFrame:
    right = snapshot.relation(step.relation)
    if step.columns:
        right = right.select([step.right_key, *step.columns])
    if step.rename:
        right = right.rename(dict(step.rename))
    return frame.join(right, left_on=step.on, right_on=step.right_key, how="inner")


def _sort(frame: pl.DataFrame, spec: ReportSpec) -> pl.DataFrame:
    # Group keys break ties so repeated runs return identical row order
    order = list(spec.order_by)
    ordered = {column for column, _ in order}
    for column in spec.group_by or spec.select:
        if column not in ordered:
            order.append((column, False))
    if not order:
        return frame
    return frame.sort(
        [column for column, _ in order],
        descending=[descending for _, descending in order],
        nulls_last=True,
        maintain_order=True,
    )


def _metric(
    metric: Metric,
    frame: pl.DataFrame,
    snapshot: Snapshot,
) -> Tuple[Optional[float], Optional[DivisionByZero]]:
    value = frame.select(metric.value).item()
    if metric.denominator is None:
        return value, None

    source = snapshot.relation(metric.denominator_relation) if metric.denominator_relation else frame
    denominator = source.select(metric.denominator).item()
    if not denominator:
        return None, DivisionByZero(metric.name, metric.denominator_label)

    return (value or 0) / denominator * metric.scale, None


def evaluate(spec: ReportSpec, snapshot: Snapshot, settings: ReportSettings) -> ReportResult:
    """
    Evaluate a report spec over a snapshot.

    Args:
        spec: Report definition
        snapshot: Input data
        settings: Resolved report settings (strictness)

    Returns:
        Complete ReportResult; zero denominators and non-strict missing
        references are attached as warnings

    Raises:
        MissingReference: In strict mode, when a join key does not resolve
    """
    started = time.perf_counter()
    warnings: List[ReportError] = []

    frame = snapshot.relation(spec.base)

    for step in spec.joins:
        if step.enforce_reference:
            missing = find_missing_reference(snapshot, step)
            if missing is not None:
                if settings.strict_references:
                    raise missing
                logger.warning(
                    "Unresolved foreign key",
                    report=spec.name,
                    relation=missing.relation,
                    column=missing.column,
                    missing_count=missing.missing_count,
                )
                warnings.append(missing)
        frame = _join(frame, snapshot, step)

    if spec.derive:
        frame = frame.with_columns(list(spec.derive))
    if spec.where is not None:
        frame = frame.filter(spec.where)
    if spec.group_by:
        frame = frame.group_by(list(spec.group_by), maintain_order=True).agg(list(spec.aggregations))
    # HAVING runs strictly after grouping
    if spec.having is not None:
        frame = frame.filter(spec.having)

    result = ReportResult(name=spec.name, title=spec.title, kind=spec.kind, warnings=warnings)

    if spec.kind == ReportKind.SCALAR:
        metrics: Dict[str, Optional[float]] = {}
        for metric in spec.metrics:
            value, undefined = _metric(metric, frame, snapshot)
            metrics[metric.name] = value
            if undefined is not None:
                logger.info("Metric undefined", report=spec.name, metric=metric.name, reason=str(undefined))
                warnings.append(undefined)
        result.metrics = metrics
    else:
        if spec.select:
            frame = frame.select(list(spec.select))
        frame = _sort(frame, spec)
        if spec.limit is not None:
            frame = frame.head(spec.limit)
        result.columns = frame.columns
        result.rows = frame.rows()

    result.duration_ms = (time.perf_counter() - started) * 1000
    return result
