"""
Data Ingestion Module
"""
from .csv_loader import (
    CANONICAL_COLUMNS,
    DateFormat,
    SourceConfig,
    TransactionLoader,
    load_transactions,
    read_source,
    sources_from_settings,
)

__all__ = [
    "CANONICAL_COLUMNS",
    "DateFormat",
    "SourceConfig",
    "TransactionLoader",
    "load_transactions",
    "read_source",
    "sources_from_settings",
]
