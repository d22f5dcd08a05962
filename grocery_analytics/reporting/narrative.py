"""
Narrative commentary derived from the aggregate views.

Every figure quoted here is read off the views; nothing is fixed in text.
"""

from typing import List, Optional

import polars as pl

from grocery_analytics.quality import QualityReport
from grocery_analytics.transformation import AggregateViews, most_typical_weeks, peak_hours
from grocery_analytics.transformation.aggregators import HOURS_IN_DAY


def format_currency(value: float, symbol: str = "$") -> str:
    """Format a currency amount at two decimals with thousands separators"""
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def overview_section(df: pl.DataFrame, symbol: str = "$") -> str:
    if df.height == 0:
        return "No usable transactions were found in the input files."

    total = df["total_sale_cents"].sum() / 100
    return (
        f"The combined stores recorded {df.height:,} transactions from "
        f"{df['customer_id'].n_unique():,} customers across "
        f"{df['product_name'].n_unique():,} products between {df['date'].min()} and "
        f"{df['date'].max()}, for total sales of {format_currency(total, symbol)}."
    )


def weekly_section(weekly: pl.DataFrame, symbol: str = "$") -> str:
    if weekly.height == 0:
        return "No weekly sales to report."

    ranked = most_typical_weeks(weekly)
    typical = ranked.row(0, named=True)
    atypical = ranked.row(ranked.height - 1, named=True)
    return (
        f"Sales span {weekly.height} weeks with a mean weekly total of "
        f"{format_currency(typical['mean_weekly_total'], symbol)}. "
        f"Week {typical['iso_week']} of {typical['year']} was the most typical week, "
        f"with sales of {format_currency(typical['weekly_total'], symbol)}, "
        f"{format_currency(typical['deviation'], symbol)} from the mean. "
        f"Week {atypical['iso_week']} of {atypical['year']} deviated the most, "
        f"at {format_currency(atypical['weekly_total'], symbol)} "
        f"({format_currency(atypical['deviation'], symbol)} from the mean)."
    )


def hourly_section(hourly: pl.DataFrame, symbol: str = "$") -> str:
    active = hourly.filter(pl.col("transactions") > 0)
    if active.height == 0:
        return "No hourly sales to report."

    ranked = peak_hours(active)
    peak = ranked.row(0, named=True)
    slowest = ranked.row(ranked.height - 1, named=True)
    return (
        f"Sales peak at {peak['hour_of_day']:02d}:00 with "
        f"{format_currency(peak['hourly_total'], symbol)}; the slowest trading hour is "
        f"{slowest['hour_of_day']:02d}:00 with {format_currency(slowest['hourly_total'], symbol)}. "
        f"{HOURS_IN_DAY - active.height} of {HOURS_IN_DAY} hours had no sales."
    )


def product_section(top: pl.DataFrame, bottom: pl.DataFrame, symbol: str = "$") -> str:
    if top.height == 0:
        return "No product sales to report."

    best = top.row(0, named=True)
    text = (
        f"{best['product_name']} is the best-selling product with "
        f"{format_currency(best['product_revenue'], symbol)} in sales."
    )
    if bottom.height:
        worst = bottom.row(0, named=True)
        text += (
            f" {worst['product_name']} sold the least, with "
            f"{format_currency(worst['product_revenue'], symbol)}."
        )
    return text


def quality_section(quality: Optional[QualityReport]) -> str:
    if quality is None:
        return "No data quality summary available."

    text = (
        f"{quality.input_rows:,} rows were read and {quality.output_rows:,} were analysed. "
        f"{quality.excluded_null_rows:,} rows were excluded for missing a required field."
    )
    if quality.anomalous_rows:
        action = "excluded" if quality.excluded_anomalous_rows else "kept and flagged"
        text += (
            f" {quality.anomalous_rows:,} rows had a negative price or a non-positive "
            f"quantity and were {action}."
        )
    return text


def build_narrative(
    df: pl.DataFrame,
    views: AggregateViews,
    top: pl.DataFrame,
    bottom: pl.DataFrame,
    quality: Optional[QualityReport] = None,
    currency_symbol: str = "$",
) -> List[str]:
    """Paragraphs of commentary, in report order"""
    return [
        overview_section(df, currency_symbol),
        weekly_section(views.weekly, currency_symbol),
        hourly_section(views.hourly, currency_symbol),
        product_section(top, bottom, currency_symbol),
        quality_section(quality),
    ]
