"""
Data Transformation Module
"""
from .enrichers import TransactionEnricher, enrich_transactions, purchase_history
from .aggregators import (
    AggregateViews,
    build_views,
    bottom_products,
    hourly_sales,
    most_typical_weeks,
    peak_hours,
    product_revenue,
    rank_products,
    top_products,
    weekly_sales,
)

__all__ = [
    "TransactionEnricher",
    "enrich_transactions",
    "purchase_history",
    "AggregateViews",
    "build_views",
    "bottom_products",
    "hourly_sales",
    "most_typical_weeks",
    "peak_hours",
    "product_revenue",
    "rank_products",
    "top_products",
    "weekly_sales",
]
