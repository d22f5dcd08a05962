"""
Unit Tests - Aggregation
"""
from datetime import date, time

import pytest
import polars as pl

from grocery_analytics.transformation import (
    bottom_products,
    build_views,
    enrich_transactions,
    hourly_sales,
    most_typical_weeks,
    peak_hours,
    product_revenue,
    rank_products,
    top_products,
    weekly_sales,
)


@pytest.fixture
def enriched_df(sample_transactions_df) -> pl.DataFrame:
    return enrich_transactions(sample_transactions_df)


@pytest.fixture
def four_weeks_df(make_transactions) -> pl.DataFrame:
    """Four ISO weeks of 2023 with a mean weekly total of 9,668.75"""
    return enrich_transactions(make_transactions([
        {"date": date(2023, 6, 5), "unit_price": 13105.44},
        {"date": date(2023, 6, 12), "unit_price": 10000.00},
        {"date": date(2023, 6, 19), "unit_price": 2464.12},
        {"date": date(2023, 6, 26), "unit_price": 13105.44},
    ]))


@pytest.fixture
def many_products_df(make_transactions) -> pl.DataFrame:
    """25 products with distinct revenues"""
    return enrich_transactions(make_transactions([
        {"product_name": f"Product {i:02d}", "unit_price": float(i), "quantity": 1}
        for i in range(1, 26)
    ]))


class TestWeeklySales:
    """Tests for the weekly view"""

    def test_deviation_scenario(self, four_weeks_df):
        """Deviations are measured from the mean week"""
        weekly = weekly_sales(four_weeks_df)

        assert weekly["iso_week"].to_list() == [23, 24, 25, 26]
        assert weekly["mean_weekly_total"][0] == pytest.approx(9668.75)

        week_24 = weekly.filter(pl.col("iso_week") == 24).row(0, named=True)
        week_25 = weekly.filter(pl.col("iso_week") == 25).row(0, named=True)
        assert week_24["weekly_total"] == pytest.approx(10000.00)
        assert week_24["deviation"] == pytest.approx(331.25)
        assert week_25["weekly_total"] == pytest.approx(2464.12)
        assert week_25["deviation"] == pytest.approx(7204.63)

    def test_most_typical_week_first(self, four_weeks_df):
        """Ascending deviation puts the closest week first"""
        ranked = most_typical_weeks(weekly_sales(four_weeks_df))

        assert ranked["iso_week"][0] == 24
        assert ranked["iso_week"][-1] == 25
        assert most_typical_weeks(weekly_sales(four_weeks_df), 2).height == 2

    def test_conservation(self, enriched_df):
        """Weekly totals add up to the record total"""
        weekly = weekly_sales(enriched_df)

        assert weekly["weekly_total_cents"].sum() == enriched_df["total_sale_cents"].sum()
        assert weekly["transactions"].sum() == enriched_df.height

    def test_chronological(self, enriched_df):
        """Weeks come out in (year, week) order"""
        weekly = weekly_sales(enriched_df)

        assert weekly.select(["year", "iso_week"]).rows() == sorted(
            weekly.select(["year", "iso_week"]).rows()
        )

    def test_empty(self, enriched_df):
        """No records, no weeks"""
        assert weekly_sales(enriched_df.clear()).height == 0


class TestHourlySales:
    """Tests for the hourly view"""

    def test_all_hours_present(self, enriched_df):
        """24 buckets regardless of sparsity"""
        hourly = hourly_sales(enriched_df)

        assert hourly.height == 24
        assert hourly["hour_of_day"].to_list() == list(range(24))

    def test_zero_filled(self, enriched_df):
        """Hours without sales are zero, not missing"""
        hourly = hourly_sales(enriched_df)
        three_am = hourly.filter(pl.col("hour_of_day") == 3).row(0, named=True)

        assert three_am["hourly_total"] == 0
        assert three_am["transactions"] == 0
        assert hourly["hourly_total"].null_count() == 0

    def test_conservation(self, enriched_df):
        """Hourly totals add up to the record total"""
        hourly = hourly_sales(enriched_df)

        assert hourly["hourly_total_cents"].sum() == enriched_df["total_sale_cents"].sum()

    def test_peak_hours(self, enriched_df):
        """Peak hour is the highest-revenue hour"""
        ranked = peak_hours(hourly_sales(enriched_df), 1)

        # 11:00 holds the 4 x 19.02 lettuce purchase
        assert ranked["hour_of_day"].to_list() == [11]

    def test_empty(self, enriched_df):
        """Empty input still yields 24 zero buckets"""
        hourly = hourly_sales(enriched_df.clear())

        assert hourly.height == 24
        assert hourly["hourly_total_cents"].sum() == 0


class TestProductRevenue:
    """Tests for the product view and rankings"""

    def test_revenue_per_product(self, enriched_df):
        """Revenue is summed per product name"""
        products = product_revenue(enriched_df)
        revenue = dict(zip(products["product_name"], products["product_revenue"]))

        assert revenue["Lettuce"] == pytest.approx(9.81 + 32.56 + 76.08)
        assert revenue["Milk"] == pytest.approx(2.49 * 6)
        assert products["product_name"][0] == "Lettuce"

    def test_conservation(self, enriched_df):
        """Product totals add up to the record total"""
        products = product_revenue(enriched_df)

        assert products["product_revenue_cents"].sum() == enriched_df["total_sale_cents"].sum()

    def test_top_bottom_disjoint(self, many_products_df):
        """With at least 2n products the rankings do not overlap"""
        products = product_revenue(many_products_df)

        top = top_products(products, 10)
        bottom = bottom_products(products, 10)

        assert top.height == 10
        assert bottom.height == 10
        assert set(top["product_name"]).isdisjoint(set(bottom["product_name"]))
        assert top["product_name"][0] == "Product 25"
        assert bottom["product_name"][0] == "Product 01"

    def test_default_n(self, many_products_df):
        """N defaults to the configured ranking size"""
        products = product_revenue(many_products_df)

        assert top_products(products).height == 10

    def test_ties_stay_disjoint(self, make_transactions):
        """Equal revenues do not put a product in both rankings"""
        df = enrich_transactions(make_transactions([
            {"product_name": f"Product {i:02d}", "unit_price": 5.0} for i in range(20)
        ]))
        products = product_revenue(df)

        top, bottom = rank_products(products, 10)

        assert set(top["product_name"]).isdisjoint(set(bottom["product_name"]))
        assert set(top_products(products, 10)["product_name"]).isdisjoint(
            set(bottom_products(products, 10)["product_name"])
        )

    def test_fewer_than_2n_products_do_not_overlap(self, many_products_df):
        """top/bottom share one ranking, so the bottom list shrinks instead of overlapping"""
        products = product_revenue(many_products_df).head(5)

        top = top_products(products, 3)
        bottom = bottom_products(products, 3)

        assert top.height == 3
        assert bottom.height == 2
        assert set(top["product_name"]).isdisjoint(set(bottom["product_name"]))
        assert top.height + bottom.height <= products.height

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_n_rejected(self, many_products_df, n):
        """A ranking size below 1 is an error, not a silent default"""
        products = product_revenue(many_products_df)

        with pytest.raises(ValueError):
            rank_products(products, n)
        with pytest.raises(ValueError):
            top_products(products, n)
        with pytest.raises(ValueError):
            bottom_products(products, n)

    def test_non_positive_n_rejected_for_views(self, enriched_df):
        with pytest.raises(ValueError):
            most_typical_weeks(weekly_sales(enriched_df), 0)
        with pytest.raises(ValueError):
            peak_hours(hourly_sales(enriched_df), -2)

    def test_rankings_bounded_by_product_count(self, enriched_df):
        """Few products never produce more ranked rows than products"""
        products = product_revenue(enriched_df)

        top, bottom = rank_products(products, 10)

        assert top.height + bottom.height <= products.height
        assert top.height == 3
        assert bottom.height == 0


class TestBuildViews:
    """Tests for building all views together"""

    def test_deterministic(self, sample_transactions_df):
        """Same input, identical tables"""
        first = build_views(enrich_transactions(sample_transactions_df))
        second = build_views(enrich_transactions(sample_transactions_df))

        assert first.weekly.equals(second.weekly)
        assert first.hourly.equals(second.hourly)
        assert first.products.equals(second.products)
