"""
Transaction Enrichment Module

Derives per-transaction fields from the raw ingested columns:
- Exact sale amounts (integer cents) and the currency value
- ISO calendar fields and hour of day
- Days since the same customer last bought the same product
"""

from typing import Optional

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

PURCHASE_KEY = ["customer_id", "product_name"]

# Float noise allowed when scaling a two-decimal price to cents
CENT_TOLERANCE = 1e-6


class TransactionEnricher:
    """
    Adds derived columns to the unified transaction set.

    Every step is a pure function of its input frame: running it twice
    yields the same derived values.
    """

    def add_total_sale(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Add ``unit_price_cents``, ``total_sale_cents`` and ``total_sale``.

        Prices are converted to whole cents once, so every downstream sum is
        integer arithmetic and cannot drift. A price with a fraction of a cent
        has no exact cent form and is rejected rather than rounded.

        Raises:
            ValueError: If any price is not a whole number of cents
        """
        scaled = pl.col("unit_price") * 100
        off_cent = df.filter((scaled - scaled.round(0)).abs() > CENT_TOLERANCE)
        if off_cent.height > 0:
            raise ValueError(
                f"{off_cent.height} price(s) are not whole cents, "
                f"e.g. {off_cent['unit_price'][0]}"
            )

        return df.with_columns(
            scaled.round(0).cast(pl.Int64).alias("unit_price_cents")
        ).with_columns(
            (pl.col("unit_price_cents") * pl.col("quantity")).alias("total_sale_cents")
        ).with_columns(
            (pl.col("total_sale_cents") / 100).alias("total_sale")
        )

    def add_calendar_fields(self, df: pl.DataFrame) -> pl.DataFrame:
        """Add ISO ``year``, ``iso_week`` and ``hour_of_day``"""
        return df.with_columns([
            pl.col("date").dt.iso_year().cast(pl.Int32).alias("year"),
            pl.col("date").dt.week().cast(pl.Int32).alias("iso_week"),
            pl.col("time_of_day").dt.hour().cast(pl.Int32).alias("hour_of_day"),
        ])

    def add_days_since_last_purchase(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Add ``days_since_last_purchase`` per (customer, product) pair.

        Each pair's rows are ordered by date, ties kept in ingestion order,
        and differenced against the previous row of the same pair. The first
        row of a pair gets 0. The window is partitioned by the pair, so the
        previous-row value never crosses a group boundary. Output rows come
        back in ingestion order.
        """
        ordered = df.with_row_index("_order").sort(PURCHASE_KEY + ["date", "_order"])

        ordered = ordered.with_columns(
            pl.col("date")
            .diff()
            .over(PURCHASE_KEY)
            .dt.total_days()
            .fill_null(0)
            .cast(pl.Int64)
            .alias("days_since_last_purchase")
        )

        return ordered.sort("_order").drop("_order")

    def enrich(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply every enrichment step"""
        df = self.add_total_sale(df)
        df = self.add_calendar_fields(df)
        df = self.add_days_since_last_purchase(df)

        logger.info(
            "Transactions enriched",
            rows=df.height,
            customers=df["customer_id"].n_unique() if df.height else 0,
            products=df["product_name"].n_unique() if df.height else 0,
        )
        return df


def enrich_transactions(df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function to enrich the unified transaction set.

    Args:
        df: Transactions after the quality rules

    Returns:
        Enriched transactions DataFrame
    """
    return TransactionEnricher().enrich(df)


def purchase_history(
    df: pl.DataFrame,
    customer_id: str,
    product_name: Optional[str] = None,
) -> pl.DataFrame:
    """
    All enriched records of one customer, optionally for one product,
    in chronological order.
    """
    condition = pl.col("customer_id") == customer_id
    if product_name is not None:
        condition = condition & (pl.col("product_name") == product_name)

    return df.filter(condition).sort(["date", "time_of_day"], maintain_order=True)
