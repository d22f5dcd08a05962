"""
Data Validation Module

Row-level checks over the unified transaction set. Each check is a polars
expression that is true on the rows it fails; the validator counts them in
one pass and hands the same expressions to the quality rules, which use
them to drop or flag rows.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


# Fields without which a row cannot contribute to any aggregate
REQUIRED_FIELDS = ["date", "time_of_day", "unit_price", "quantity"]

# Checks whose failures make a row anomalous rather than unusable
ANOMALY_CHECKS = ["non_negative_unit_price", "positive_quantity"]


@dataclass
class ValidationCheck:
    """Outcome of one check"""
    name: str
    column: str
    failed_rows: int
    total_rows: int

    @property
    def passed(self) -> bool:
        return self.failed_rows == 0


@dataclass
class ValidationResult:
    """Outcome of every check of a validator"""
    checks: List[ValidationCheck] = field(default_factory=list)

    @property
    def failed(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]

    def get_check(self, name: str) -> Optional[ValidationCheck]:
        """Look up a check result by name"""
        for check in self.checks:
            if check.name == name:
                return check
        return None


class DataValidator:
    """
    Chainable set of row checks.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("unit_price").add_range_check("quantity", min_value=1)
        result = validator.validate(df)
        bad_rows = df.filter(validator.failure_mask(["range_quantity"]))
    """

    def __init__(self):
        self._failures: Dict[str, pl.Expr] = {}
        self._columns: Dict[str, str] = {}

    def _add(self, name: str, column: str, failure: pl.Expr) -> "DataValidator":
        if name in self._failures:
            raise ValueError(f"Duplicate check name: {name}")
        self._failures[name] = failure
        self._columns[name] = column
        return self

    def add_not_null_check(self, column: str) -> "DataValidator":
        """Fail rows where ``column`` is null"""
        return self._add(f"not_null_{column}", column, pl.col(column).is_null())

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        name: Optional[str] = None,
    ) -> "DataValidator":
        """
        Fail rows where ``column`` lies outside [min_value, max_value].

        Null values are left to the not-null checks and never fail a range.
        """
        if min_value is None and max_value is None:
            raise ValueError(f"Range check on '{column}' needs a bound")

        conditions = []
        if min_value is not None:
            conditions.append(pl.col(column) < min_value)
        if max_value is not None:
            conditions.append(pl.col(column) > max_value)

        return self._add(
            name or f"range_{column}",
            column,
            pl.any_horizontal(conditions).fill_null(False),
        )

    def add_positive_check(self, column: str, allow_zero: bool = True) -> "DataValidator":
        """Fail negative rows, and zero rows too unless ``allow_zero``"""
        # Integer columns: the smallest strictly positive value is 1
        return self.add_range_check(
            column,
            min_value=0 if allow_zero else 1,
            name=f"{'non_negative' if allow_zero else 'positive'}_{column}",
        )

    def failure_mask(self, names: Sequence[str]) -> pl.Expr:
        """Expression true on rows failing any of the named checks"""
        missing = [n for n in names if n not in self._failures]
        if missing:
            raise KeyError(f"Unknown checks: {missing}")
        return pl.any_horizontal([self._failures[n] for n in names]).fill_null(False)

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Count the failing rows of every check.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with one entry per check, in insertion order
        """
        if not self._failures:
            return ValidationResult()

        counts = df.select([
            failure.sum().alias(name) for name, failure in self._failures.items()
        ]).row(0, named=True)

        result = ValidationResult(checks=[
            ValidationCheck(
                name=name,
                column=self._columns[name],
                failed_rows=int(counts[name] or 0),
                total_rows=df.height,
            )
            for name in self._failures
        ])

        for check in result.failed:
            logger.warning(
                "Validation check failed",
                check=check.name,
                column=check.column,
                failed_rows=check.failed_rows,
                total_rows=check.total_rows,
            )
        logger.info(
            "Validation complete",
            checks=len(result.checks),
            failed=len(result.failed),
            rows=df.height,
        )
        return result


def create_transactions_validator() -> DataValidator:
    """Validator for the unified transaction set: required fields, then anomalies"""
    validator = DataValidator()
    for column in REQUIRED_FIELDS:
        validator.add_not_null_check(column)

    return (
        validator
        .add_positive_check("unit_price", allow_zero=True)
        .add_positive_check("quantity", allow_zero=False)
    )
