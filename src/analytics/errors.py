"""
Report Error Taxonomy

Typed conditions raised or attached by the report engine. Every error is
scoped to a single report; a batch never aborts because one report failed.
"""

from typing import Any, List, Optional


class ReportError(Exception):
    """Base class for all report engine errors"""

    code = "report_error"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


class InvalidConfiguration(ReportError):
    """Report settings rejected before any computation started"""

    code = "invalid_configuration"


class UnknownReport(ReportError):
    """Requested report is not part of the catalog"""

    code = "unknown_report"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown report: {name}")


class MissingReference(ReportError):
    """
    A foreign key resolves to no row in the referenced relation.

    Attached to the result as a warning unless strict references are enabled,
    in which case the report fails with it.
    """

    code = "missing_reference"

    def __init__(
        self,
        relation: str,
        column: str,
        referenced: str,
        missing_count: int,
        sample: Optional[List[Any]] = None,
    ):
        self.relation = relation
        self.column = column
        self.referenced = referenced
        self.missing_count = missing_count
        self.sample = sample or []
        super().__init__(
            f"{missing_count} {relation} rows reference a {column} "
            f"with no matching row in {referenced}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            relation=self.relation,
            column=self.column,
            referenced=self.referenced,
            missing_count=self.missing_count,
            sample=self.sample,
        )
        return data


class DivisionByZero(ReportError):
    """A ratio metric had a zero denominator; its value is undefined"""

    code = "division_by_zero"

    def __init__(self, metric: str, denominator: str):
        self.metric = metric
        self.denominator = denominator
        super().__init__(f"{metric} is undefined: {denominator} is zero")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(metric=self.metric, denominator=self.denominator)
        return data


class ReportTimeout(ReportError):
    """Batch deadline passed before the report finished"""

    code = "timeout"

    def __init__(self, report: str, timeout: float):
        self.report = report
        self.timeout = timeout
        super().__init__(f"{report} did not finish within the {timeout}s batch deadline")
