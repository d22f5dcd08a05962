"""
Analysis Pipeline

Orchestrates one batch run: ingest, apply quality rules, enrich, aggregate
and present. Stages run once, in order; any failure ends the run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Union

import polars as pl
import structlog

from grocery_analytics.config import get_settings
from grocery_analytics.exceptions import GroceryAnalyticsError, PipelineError
from grocery_analytics.ingestion import SourceConfig, TransactionLoader, sources_from_settings
from grocery_analytics.quality import AnomalyPolicy, QualityReport, apply_quality_rules
from grocery_analytics.transformation import AggregateViews, build_views, enrich_transactions

logger = structlog.get_logger(__name__)


@dataclass
class AnalysisResult:
    """Result of one analysis run"""
    transactions: pl.DataFrame
    views: AggregateViews
    quality: QualityReport
    started_at: datetime
    completed_at: datetime
    stage_durations: Dict[str, float] = field(default_factory=dict)
    report_path: Optional[Path] = None
    charts: Dict[str, Path] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


class AnalysisPipeline:
    """
    Batch pipeline over the store exports.

    Example:
        pipeline = AnalysisPipeline(output_dir="reports")
        result = pipeline.run()
        print(result.report_path)
    """

    def __init__(
        self,
        sources: Optional[Sequence[SourceConfig]] = None,
        output_dir: Optional[Union[str, Path]] = None,
        top_n: Optional[int] = None,
        anomaly_policy: Optional[Union[AnomalyPolicy, str]] = None,
        render_charts: Optional[bool] = None,
        build_report: bool = True,
    ):
        settings = get_settings()
        self.sources = list(sources) if sources is not None else sources_from_settings(settings)
        self.output_dir = Path(output_dir or settings.report.output_dir)
        self.top_n = settings.report.top_n if top_n is None else top_n
        if self.top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {self.top_n}")
        self.anomaly_policy = AnomalyPolicy(anomaly_policy or settings.quality.anomaly_policy)
        self.render_charts = settings.report.render_charts if render_charts is None else render_charts
        self.build_report = build_report
        self._durations: Dict[str, float] = {}

    def _run_stage(self, stage: str, func: Callable, *args: Any) -> Any:
        """Run one stage, timing it and tagging failures with the stage name"""
        started_at = datetime.now()
        logger.info("Stage started", stage=stage)

        try:
            result = func(*args)
        except GroceryAnalyticsError as e:
            logger.error("Stage failed", stage=stage, error=str(e))
            raise
        except Exception as e:
            logger.error("Stage failed", stage=stage, error=str(e), exc_info=True)
            raise PipelineError(stage, str(e)) from e

        duration = (datetime.now() - started_at).total_seconds()
        self._durations[stage] = duration
        logger.info("Stage complete", stage=stage, duration_seconds=round(duration, 3))
        return result

    def _write_report(self, df: pl.DataFrame, views: AggregateViews, quality: QualityReport):
        # Imported here so the core stages never load matplotlib
        from grocery_analytics.reporting import ReportBuilder

        builder = ReportBuilder(
            output_dir=self.output_dir,
            top_n=self.top_n,
            render_charts=self.render_charts,
        )
        return builder.build(df, views, quality)

    def run(self) -> AnalysisResult:
        """
        Run every stage once.

        Returns:
            AnalysisResult with the enriched transactions, the aggregate
            views, the quality report and the report location

        Raises:
            IngestionError: If a source cannot be read or parsed
            PipelineError: If any other stage fails
        """
        started_at = datetime.now()
        self._durations = {}
        logger.info(
            "Starting analysis run",
            sources=[c.source for c in self.sources],
            anomaly_policy=self.anomaly_policy.value,
        )

        raw = self._run_stage("ingestion", TransactionLoader().load, self.sources)
        clean, quality = self._run_stage("quality", apply_quality_rules, raw, self.anomaly_policy)
        enriched = self._run_stage("enrichment", enrich_transactions, clean)
        views = self._run_stage("aggregation", build_views, enriched)

        report_path = None
        charts: Dict[str, Path] = {}
        if self.build_report:
            artifacts = self._run_stage("presentation", self._write_report, enriched, views, quality)
            report_path = artifacts.report_path
            charts = artifacts.charts

        completed_at = datetime.now()
        result = AnalysisResult(
            transactions=enriched,
            views=views,
            quality=quality,
            started_at=started_at,
            completed_at=completed_at,
            stage_durations=dict(self._durations),
            report_path=report_path,
            charts=charts,
        )

        logger.info(
            "Analysis run complete",
            rows=enriched.height,
            excluded=quality.excluded_rows,
            duration_seconds=round(result.duration_seconds, 3),
            report=str(report_path) if report_path else None,
        )
        return result


def run_analysis(**kwargs) -> AnalysisResult:
    """Convenience function to run the pipeline with keyword overrides"""
    return AnalysisPipeline(**kwargs).run()
