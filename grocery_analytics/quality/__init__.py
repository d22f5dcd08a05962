"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, create_transactions_validator
from .rules import AnomalyPolicy, QualityReport, apply_quality_rules

__all__ = [
    "DataValidator",
    "ValidationResult",
    "create_transactions_validator",
    "AnomalyPolicy",
    "QualityReport",
    "apply_quality_rules",
]
