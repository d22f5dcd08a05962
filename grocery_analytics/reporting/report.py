"""
Report Builder

Combines narrative commentary, ranking tables and charts into a Markdown
report written to the output directory.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog

from grocery_analytics.config import get_settings
from grocery_analytics.quality import QualityReport
from grocery_analytics.transformation import AggregateViews, most_typical_weeks, rank_products
from .charts import ChartRenderer
from .narrative import build_narrative, format_currency

logger = structlog.get_logger(__name__)

REPORT_FILE = "report.md"


@dataclass
class ReportArtifacts:
    """Files produced by one report build"""
    report_path: Path
    charts: Dict[str, Path] = field(default_factory=dict)
    paragraphs: List[str] = field(default_factory=list)


def _product_table(products: pl.DataFrame, symbol: str) -> List[str]:
    lines = ["| Rank | Product | Units | Sales |", "|---:|---|---:|---:|"]
    for rank, row in enumerate(products.iter_rows(named=True), start=1):
        lines.append(
            f"| {rank} | {row['product_name']} | {row['units_sold']} | "
            f"{format_currency(row['product_revenue'], symbol)} |"
        )
    return lines


def _weeks_table(weekly: pl.DataFrame, symbol: str, n: int = 5) -> List[str]:
    lines = ["| Week | Sales | Deviation |", "|---|---:|---:|"]
    for row in most_typical_weeks(weekly, n).iter_rows(named=True):
        lines.append(
            f"| {row['year']}-W{row['iso_week']:02d} | "
            f"{format_currency(row['weekly_total'], symbol)} | "
            f"{format_currency(row['deviation'], symbol)} |"
        )
    return lines


class ReportBuilder:
    """
    Renders the aggregate views into ``report.md`` plus PNG charts.

    Example:
        builder = ReportBuilder("reports")
        artifacts = builder.build(df, views, quality)
    """

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        top_n: Optional[int] = None,
        render_charts: Optional[bool] = None,
        currency_symbol: Optional[str] = None,
        dpi: Optional[int] = None,
    ):
        settings = get_settings()
        self.output_dir = Path(output_dir or settings.report.output_dir)
        self.top_n = settings.report.top_n if top_n is None else top_n
        if self.top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {self.top_n}")
        self.render_charts = settings.report.render_charts if render_charts is None else render_charts
        self.currency_symbol = settings.report.currency_symbol if currency_symbol is None else currency_symbol
        self.dpi = settings.report.figure_dpi if dpi is None else dpi

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def build(
        self,
        df: pl.DataFrame,
        views: AggregateViews,
        quality: Optional[QualityReport] = None,
    ) -> ReportArtifacts:
        """
        Write the report for one analysis run.

        Args:
            df: Enriched transactions
            views: Aggregate views built from ``df``
            quality: Quality report from the same run

        Returns:
            ReportArtifacts with the report path and chart paths
        """
        symbol = self.currency_symbol
        top, bottom = rank_products(views.products, self.top_n)
        paragraphs = build_narrative(df, views, top, bottom, quality, symbol)

        charts: Dict[str, Path] = {}
        if self.render_charts:
            renderer = ChartRenderer(self.output_dir / "charts", dpi=self.dpi)
            charts = renderer.render_all(views.weekly, views.hourly, top, bottom)

        overview, weekly_text, hourly_text, product_text, quality_text = paragraphs
        lines = ["# Grocery Sales Report", "", overview, ""]

        lines += ["## Weekly Sales", "", weekly_text, ""]
        lines += self._chart_lines(charts, "weekly_trend", "Weekly sales")
        lines += self._chart_lines(charts, "weekly_deviation", "Deviation from mean week")
        if views.weekly.height:
            lines += ["Most typical weeks:", ""] + _weeks_table(views.weekly, symbol) + [""]

        lines += ["## Sales by Hour", "", hourly_text, ""]
        lines += self._chart_lines(charts, "hourly_trend", "Sales by hour")

        lines += ["## Products", "", product_text, ""]
        lines += [f"### Top {top.height} Products", ""] + _product_table(top, symbol) + [""]
        lines += self._chart_lines(charts, "top_products", "Top products")
        lines += [f"### Bottom {bottom.height} Products", ""] + _product_table(bottom, symbol) + [""]
        lines += self._chart_lines(charts, "bottom_products", "Bottom products")

        lines += ["## Data Quality", "", quality_text, ""]

        report_path = self.output_dir / REPORT_FILE
        report_path.write_text("\n".join(lines), encoding="utf-8")

        logger.info("Report written", file=str(report_path), charts=len(charts))
        return ReportArtifacts(report_path=report_path, charts=charts, paragraphs=paragraphs)

    def _chart_lines(self, charts: Dict[str, Path], key: str, alt: str) -> List[str]:
        if key not in charts:
            return []
        relative = charts[key].relative_to(self.output_dir).as_posix()
        return [f"![{alt}]({relative})", ""]
