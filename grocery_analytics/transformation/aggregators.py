"""
Aggregation Module

Read-only aggregate views over the enriched transaction set:
- Weekly revenue with deviation from the mean week
- Hourly revenue, zero-filled across all 24 hours
- Revenue per product, with top/bottom rankings

Sums are taken over ``total_sale_cents`` so they are exact; currency columns
are derived from the cent totals.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import polars as pl
import structlog

from grocery_analytics.config import get_settings

logger = structlog.get_logger(__name__)

HOURS_IN_DAY = 24


def _head(ranked: pl.DataFrame, n: Optional[int]) -> pl.DataFrame:
    """First ``n`` rows of a ranking, or all of them when ``n`` is None"""
    if n is None:
        return ranked
    if n < 1:
        raise ValueError(f"Ranking size must be at least 1, got {n}")
    return ranked.head(n)


@dataclass
class AggregateViews:
    """The three aggregate views of one analysis run"""
    weekly: pl.DataFrame
    hourly: pl.DataFrame
    products: pl.DataFrame


def weekly_sales(df: pl.DataFrame) -> pl.DataFrame:
    """
    Revenue per (ISO year, ISO week), in chronological order.

    Columns: year, iso_week, transactions, weekly_total_cents, weekly_total,
    mean_weekly_total, deviation. ``deviation`` is the absolute distance of
    the week's total from the mean over every week present.
    """
    weekly = (
        df.group_by(["year", "iso_week"])
        .agg([
            pl.len().alias("transactions"),
            pl.col("total_sale_cents").sum().alias("weekly_total_cents"),
        ])
        .sort(["year", "iso_week"])
    )

    mean_cents = weekly["weekly_total_cents"].mean() if weekly.height else None
    mean_lit = pl.lit(mean_cents, dtype=pl.Float64)

    weekly = weekly.with_columns([
        (pl.col("weekly_total_cents") / 100).alias("weekly_total"),
        (mean_lit / 100).alias("mean_weekly_total"),
        ((pl.col("weekly_total_cents") - mean_lit).abs() / 100).alias("deviation"),
    ])

    logger.debug("Weekly view built", weeks=weekly.height)
    return weekly


def most_typical_weeks(weekly: pl.DataFrame, n: Optional[int] = None) -> pl.DataFrame:
    """Weeks ordered by ascending deviation; ties in chronological order"""
    ranked = weekly.sort(["deviation", "year", "iso_week"])
    return _head(ranked, n)


def hourly_sales(df: pl.DataFrame) -> pl.DataFrame:
    """
    Revenue per hour of day, one row for each of the 24 hours.

    Hours without transactions are present with a zero total.
    """
    hours = pl.DataFrame({
        "hour_of_day": pl.Series("hour_of_day", list(range(HOURS_IN_DAY)), dtype=pl.Int32),
    })

    totals = df.group_by("hour_of_day").agg([
        pl.len().cast(pl.Int64).alias("transactions"),
        pl.col("total_sale_cents").sum().alias("hourly_total_cents"),
    ])

    hourly = (
        hours.join(totals, on="hour_of_day", how="left")
        .with_columns([
            pl.col("transactions").fill_null(0),
            pl.col("hourly_total_cents").fill_null(0),
        ])
        .sort("hour_of_day")
        .with_columns((pl.col("hourly_total_cents") / 100).alias("hourly_total"))
    )

    logger.debug("Hourly view built", active_hours=int((hourly["transactions"] > 0).sum()))
    return hourly


def peak_hours(hourly: pl.DataFrame, n: Optional[int] = None) -> pl.DataFrame:
    """Hours ordered by descending revenue; ties by hour"""
    ranked = hourly.sort(["hourly_total_cents", "hour_of_day"], descending=[True, False])
    return _head(ranked, n)


def product_revenue(df: pl.DataFrame) -> pl.DataFrame:
    """
    Revenue per product name, highest first.

    Ties are broken by product name so the ranking is deterministic.
    """
    products = (
        df.group_by("product_name")
        .agg([
            pl.len().alias("transactions"),
            pl.col("quantity").sum().alias("units_sold"),
            pl.col("total_sale_cents").sum().alias("product_revenue_cents"),
        ])
        .sort(["product_revenue_cents", "product_name"], descending=[True, False])
        .with_columns((pl.col("product_revenue_cents") / 100).alias("product_revenue"))
    )

    logger.debug("Product view built", products=products.height)
    return products


def _top_n(n: Optional[int]) -> int:
    n = n if n is not None else get_settings().report.top_n
    if n < 1:
        raise ValueError(f"Ranking size must be at least 1, got {n}")
    return n


def rank_products(
    products: pl.DataFrame,
    n: Optional[int] = None,
) -> Tuple[pl.DataFrame, pl.DataFrame]:
    """
    Top-n and bottom-n products without overlap.

    The bottom ranking is drawn only from products outside the top ranking,
    so with fewer than ``2n`` products it is shorter than ``n`` and the two
    together never list more rows than there are products.

    Raises:
        ValueError: If ``n`` is less than 1
    """
    n = _top_n(n)
    top = products.head(n)
    rest = products.slice(top.height)
    bottom = rest.tail(n).reverse()
    return top, bottom


def top_products(products: pl.DataFrame, n: Optional[int] = None) -> pl.DataFrame:
    """The ``n`` highest-revenue products, highest first"""
    return rank_products(products, n)[0]


def bottom_products(products: pl.DataFrame, n: Optional[int] = None) -> pl.DataFrame:
    """
    The ``n`` lowest-revenue products, lowest first.

    Products already in the top ``n`` are left out, so with fewer than ``2n``
    products fewer than ``n`` rows come back.
    """
    return rank_products(products, n)[1]


def build_views(df: pl.DataFrame) -> AggregateViews:
    """Build every aggregate view from the enriched transactions"""
    views = AggregateViews(
        weekly=weekly_sales(df),
        hourly=hourly_sales(df),
        products=product_revenue(df),
    )
    logger.info(
        "Aggregate views built",
        weeks=views.weekly.height,
        products=views.products.height,
        total_cents=int(df["total_sale_cents"].sum() or 0) if df.height else 0,
    )
    return views
