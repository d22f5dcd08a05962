"""
Row-level quality rules applied between ingestion and enrichment.

Rows missing a required field are excluded and counted, never zero-filled.
Rows with a negative price or a non-positive quantity are anomalies; the
configured policy decides whether they are kept (and flagged) or dropped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

import polars as pl
import structlog

from grocery_analytics.config import get_settings
from .validators import (
    ANOMALY_CHECKS,
    REQUIRED_FIELDS,
    ValidationResult,
    create_transactions_validator,
)

logger = structlog.get_logger(__name__)


class AnomalyPolicy(str, Enum):
    """Handling of negative prices and non-positive quantities"""
    FLAG = "flag"  # keep the row, compute total_sale, warn
    EXCLUDE = "exclude"  # drop the row from the enriched set


@dataclass
class QualityReport:
    """Counts produced by the quality rules"""
    input_rows: int
    output_rows: int
    excluded_null_rows: int
    anomalous_rows: int
    excluded_anomalous_rows: int
    policy: AnomalyPolicy
    null_counts: Dict[str, int] = field(default_factory=dict)
    validation: Optional[ValidationResult] = None

    @property
    def excluded_rows(self) -> int:
        """All rows removed before enrichment"""
        return self.excluded_null_rows + self.excluded_anomalous_rows

    def to_dict(self) -> Dict[str, object]:
        return {
            "input_rows": self.input_rows,
            "output_rows": self.output_rows,
            "excluded_null_rows": self.excluded_null_rows,
            "null_counts": dict(self.null_counts),
            "anomalous_rows": self.anomalous_rows,
            "excluded_anomalous_rows": self.excluded_anomalous_rows,
            "policy": self.policy.value,
        }


def apply_quality_rules(
    df: pl.DataFrame,
    policy: Optional[Union[AnomalyPolicy, str]] = None,
) -> Tuple[pl.DataFrame, QualityReport]:
    """
    Exclude unusable rows and apply the anomaly policy.

    Args:
        df: Unified transaction DataFrame from ingestion
        policy: Anomaly policy; defaults to the configured one

    Returns:
        Tuple of (filtered DataFrame with ``is_anomalous``, QualityReport)
    """
    policy = AnomalyPolicy(policy or get_settings().quality.anomaly_policy)
    input_rows = df.height

    validator = create_transactions_validator()
    validation = validator.validate(df)
    null_checks = [f"not_null_{column}" for column in REQUIRED_FIELDS]
    null_counts = {
        column: validation.get_check(name).failed_rows
        for column, name in zip(REQUIRED_FIELDS, null_checks)
    }

    kept = df.filter(~validator.failure_mask(null_checks))
    excluded_null_rows = input_rows - kept.height

    if excluded_null_rows:
        logger.warning(
            "Rows excluded for missing required fields",
            excluded=excluded_null_rows,
            null_counts=null_counts,
        )

    kept = kept.with_columns(validator.failure_mask(ANOMALY_CHECKS).alias("is_anomalous"))
    anomalous_rows = int(kept["is_anomalous"].sum() or 0)
    excluded_anomalous_rows = 0

    if anomalous_rows:
        logger.warning(
            "Anomalous rows found (negative price or non-positive quantity)",
            anomalous=anomalous_rows,
            policy=policy.value,
        )
        if policy == AnomalyPolicy.EXCLUDE:
            kept = kept.filter(~pl.col("is_anomalous"))
            excluded_anomalous_rows = anomalous_rows

    report = QualityReport(
        input_rows=input_rows,
        output_rows=kept.height,
        excluded_null_rows=excluded_null_rows,
        anomalous_rows=anomalous_rows,
        excluded_anomalous_rows=excluded_anomalous_rows,
        policy=policy,
        null_counts=null_counts,
        validation=validation,
    )

    logger.info("Quality rules applied", **report.to_dict())
    return kept, report
