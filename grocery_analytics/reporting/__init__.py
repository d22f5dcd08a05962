"""
Reporting Module
"""
from .charts import ChartRenderer
from .narrative import build_narrative, format_currency
from .report import ReportArtifacts, ReportBuilder

__all__ = [
    "ChartRenderer",
    "build_narrative",
    "format_currency",
    "ReportArtifacts",
    "ReportBuilder",
]
