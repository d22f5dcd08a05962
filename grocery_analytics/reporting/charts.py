"""
Chart rendering for the sales report.

Each renderer writes one PNG into the output directory and returns its path.
"""

from pathlib import Path
from typing import Dict, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import structlog

logger = structlog.get_logger(__name__)


def week_labels(weekly: pl.DataFrame) -> list:
    """'2023-W24' style labels for the weekly view"""
    return [f"{year}-W{week:02d}" for year, week in zip(weekly["year"], weekly["iso_week"])]


class ChartRenderer:
    """
    Renders the aggregate views as matplotlib figures.

    Example:
        renderer = ChartRenderer("reports/charts")
        path = renderer.hourly_trend(views.hourly)
    """

    def __init__(self, output_dir: Union[str, Path], dpi: int = 100):
        self.output_dir = Path(output_dir)
        self.dpi = dpi
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _save(self, fig, name: str) -> Path:
        path = self.output_dir / f"{name}.png"
        fig.tight_layout()
        fig.savefig(path, dpi=self.dpi)
        plt.close(fig)
        logger.debug("Chart written", chart=name, file=str(path))
        return path

    def weekly_trend(self, weekly: pl.DataFrame) -> Path:
        """Line chart of revenue per week with the mean week marked"""
        fig, ax = plt.subplots(figsize=(12, 5))
        labels = week_labels(weekly)

        ax.plot(labels, weekly["weekly_total"].to_list(), marker="o")
        if weekly.height:
            ax.axhline(weekly["mean_weekly_total"][0], color="grey", linestyle="--", label="Mean week")
            ax.legend()

        ax.set_title("Weekly Sales")
        ax.set_xlabel("Week")
        ax.set_ylabel("Sales")
        ax.tick_params(axis="x", rotation=45)
        return self._save(fig, "weekly_trend")

    def weekly_deviation(self, weekly: pl.DataFrame) -> Path:
        """Bar chart of each week's deviation from the mean week"""
        fig, ax = plt.subplots(figsize=(12, 5))

        ax.bar(week_labels(weekly), weekly["deviation"].to_list())
        ax.set_title("Deviation from Mean Weekly Sales")
        ax.set_xlabel("Week")
        ax.set_ylabel("Absolute deviation")
        ax.tick_params(axis="x", rotation=45)
        return self._save(fig, "weekly_deviation")

    def hourly_trend(self, hourly: pl.DataFrame) -> Path:
        """Line chart of revenue by hour of day"""
        fig, ax = plt.subplots(figsize=(10, 4))

        ax.plot(hourly["hour_of_day"].to_list(), hourly["hourly_total"].to_list(), marker="o")
        ax.set_xticks(np.arange(0, 24))
        ax.set_title("Sales by Hour of Day")
        ax.set_xlabel("Hour")
        ax.set_ylabel("Sales")
        return self._save(fig, "hourly_trend")

    def product_bar(self, products: pl.DataFrame, title: str, name: str) -> Path:
        """Bar chart of product revenue"""
        fig, ax = plt.subplots(figsize=(10, 5))

        series = (
            products.select(["product_name", "product_revenue"])
            .to_pandas()
            .set_index("product_name")["product_revenue"]
        )
        if len(series):
            series.plot(kind="bar", ax=ax)

        ax.set_title(title)
        ax.set_xlabel("Product")
        ax.set_ylabel("Sales")
        ax.tick_params(axis="x", rotation=60)
        return self._save(fig, name)

    def render_all(
        self,
        weekly: pl.DataFrame,
        hourly: pl.DataFrame,
        top: pl.DataFrame,
        bottom: pl.DataFrame,
    ) -> Dict[str, Path]:
        """Render every report chart"""
        charts = {
            "weekly_trend": self.weekly_trend(weekly),
            "weekly_deviation": self.weekly_deviation(weekly),
            "hourly_trend": self.hourly_trend(hourly),
            "top_products": self.product_bar(top, f"Top {top.height} Products by Sales", "top_products"),
            "bottom_products": self.product_bar(bottom, f"Bottom {bottom.height} Products by Sales", "bottom_products"),
        }
        logger.info("Charts rendered", charts=len(charts), directory=str(self.output_dir))
        return charts
