"""
Snapshot Validation Module

Rule-based data quality checks over the marketplace relations, in the spirit
of Great Expectations suites. Reports never depend on these checks; they give
operators an integrity view of a snapshot before trusting its numbers.

Checks:
- Primary key presence and uniqueness
- Non-negative quantities and prices
- Referential integrity of every foreign key
- Known order statuses (warning only)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from src.analytics.snapshot import FOREIGN_KEYS, PRIMARY_KEYS, RELATIONS, Snapshot
from src.database.models import OrderStatus

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Data cannot be trusted
    WARNING = "warning"  # Logged, numbers still usable
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Result of one validator run over one relation"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "total_checks": self.total_checks,
            "passed_checks": self.passed_checks,
            "failed_checks": self.failed_checks,
            "warning_count": self.warning_count,
            "checks": [
                {
                    "name": c.name,
                    "passed": c.passed,
                    "severity": c.severity.value,
                    "message": c.message,
                    "failed_rows": c.failed_rows,
                    "total_rows": c.total_rows,
                }
                for c in self.checks
            ],
        }


# A rule counts the offending rows of a frame
RowCounter = Callable[[pl.DataFrame], int]


@dataclass
class _Rule:
    name: str
    column: str
    severity: ValidationSeverity
    count_failures: RowCounter
    describe: str
    details: Dict[str, Any] = field(default_factory=dict)


class DataValidator:
    """
    Chainable rule-based validator for a single DataFrame.

    Each rule counts offending rows; a rule passes when that count is zero.
    A rule on a column the frame lacks fails without counting.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("order_id").add_range_check("quantity", min_value=0)
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._rules: List[_Rule] = []

    def _add(self, rule: _Rule) -> "DataValidator":
        self._rules.append(rule)
        return self

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        return self._add(_Rule(
            name=f"not_null_{column}",
            column=column,
            severity=severity,
            count_failures=lambda df: df[column].null_count(),
            describe="null values",
        ))

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        return self._add(_Rule(
            name=f"unique_{column}",
            column=column,
            severity=severity,
            count_failures=lambda df: df.height - df[column].n_unique(),
            describe="duplicate values",
        ))

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Values outside [min_value, max_value]; nulls are not counted"""
        outside = pl.lit(False)
        if min_value is not None:
            outside = outside | (pl.col(column) < min_value)
        if max_value is not None:
            outside = outside | (pl.col(column) > max_value)

        return self._add(_Rule(
            name=f"range_{column}",
            column=column,
            severity=severity,
            count_failures=lambda df: df.filter(outside).height,
            describe=f"values outside [{min_value}, {max_value}]",
            details={"min": min_value, "max": max_value},
        ))

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        return self._add(_Rule(
            name=f"enum_{column}",
            column=column,
            severity=severity,
            count_failures=lambda df: df.filter(
                pl.col(column).is_not_null() & ~pl.col(column).is_in(allowed_values)
            ).height,
            describe="unrecognized values",
            details={"allowed_values": list(allowed_values)},
        ))

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        reference_name: str = "reference",
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Non-null values with no match in the reference column"""
        keys = reference_df.select(pl.col(reference_column).alias(column)).unique()

        return self._add(_Rule(
            name=f"ref_integrity_{column}_{reference_name}",
            column=column,
            severity=severity,
            count_failures=lambda df: (
                df.filter(pl.col(column).is_not_null()).join(keys, on=column, how="anti").height
            ),
            describe=f"orphan values (no match in {reference_name})",
            details={"reference": reference_name},
        ))

    def _check(self, rule: _Rule, df: pl.DataFrame) -> ValidationCheck:
        if rule.column not in df.columns:
            return ValidationCheck(
                name=rule.name,
                passed=False,
                severity=rule.severity,
                message=f"Column '{rule.column}' not found",
                total_rows=df.height,
            )

        failed = rule.count_failures(df)
        return ValidationCheck(
            name=rule.name,
            passed=failed == 0,
            severity=rule.severity,
            message=f"Column '{rule.column}' has {failed} {rule.describe}",
            details={**rule.details, "failed_count": failed},
            failed_rows=failed,
            total_rows=df.height,
        )

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        checks = [self._check(rule, df) for rule in self._rules]

        errors = warnings = 0
        for check in checks:
            if check.passed:
                continue
            logger.warning(f"Validation failed: {check.name}", message=check.message, severity=check.severity.value)
            if check.severity == ValidationSeverity.ERROR:
                errors += 1
            elif check.severity == ValidationSeverity.WARNING:
                warnings += 1

        if errors or (warnings and self.strict_mode):
            status = ValidationStatus.FAILED
        elif warnings:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        return ValidationResult(
            status=status,
            total_checks=len(checks),
            passed_checks=sum(1 for c in checks if c.passed),
            failed_checks=errors,
            warning_count=warnings,
            checks=checks,
        )


@dataclass
class SnapshotValidation:
    """Validation results for every relation of a snapshot"""
    relations: Dict[str, ValidationResult]
    validated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> ValidationStatus:
        statuses = {r.status for r in self.relations.values()}
        if ValidationStatus.FAILED in statuses:
            return ValidationStatus.FAILED
        if ValidationStatus.PARTIAL in statuses:
            return ValidationStatus.PARTIAL
        return ValidationStatus.PASSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "validated_at": self.validated_at.isoformat(),
            "relations": {name: r.to_dict() for name, r in self.relations.items()},
        }


def create_relation_validator(snapshot: Snapshot, relation: str, strict_mode: bool = False) -> DataValidator:
    """Pre-configured validator for one snapshot relation"""
    key = PRIMARY_KEYS[relation]
    validator = DataValidator(strict_mode=strict_mode).add_not_null_check(key).add_unique_check(key)

    for owner, column, referenced, referenced_column in FOREIGN_KEYS:
        if owner == relation:
            validator.add_referential_integrity_check(
                column,
                snapshot.relation(referenced),
                referenced_column,
                reference_name=referenced,
            )

    if relation in ("inventory", "order_items"):
        validator.add_range_check("quantity", min_value=0)
    if relation == "order_items":
        validator.add_range_check("unit_price", min_value=0)
    if relation == "products":
        validator.add_range_check("cost_price", min_value=0)
        validator.add_range_check("selling_price", min_value=0)
    if relation == "orders":
        validator.add_enum_check(
            "order_status",
            [status.value for status in OrderStatus],
            severity=ValidationSeverity.WARNING,
        )

    return validator


def validate_snapshot(snapshot: Snapshot, strict_mode: bool = False) -> SnapshotValidation:
    """
    Validate every relation of a snapshot.

    Args:
        snapshot: Snapshot to validate
        strict_mode: Treat warnings as failures

    Returns:
        SnapshotValidation with per-relation results
    """
    results = {
        relation: create_relation_validator(snapshot, relation, strict_mode).validate(snapshot.relation(relation))
        for relation in RELATIONS
    }
    validation = SnapshotValidation(relations=results)
    logger.info(
        f"Snapshot validation complete: {validation.status.value}",
        failed=[name for name, r in results.items() if r.status == ValidationStatus.FAILED],
    )
    return validation
