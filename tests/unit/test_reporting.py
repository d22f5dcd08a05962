"""
Unit Tests - Reporting
"""
import pytest

from grocery_analytics.quality import AnomalyPolicy, apply_quality_rules
from grocery_analytics.reporting import ChartRenderer, ReportBuilder, build_narrative, format_currency
from grocery_analytics.reporting.narrative import hourly_section, quality_section, weekly_section
from grocery_analytics.transformation import build_views, enrich_transactions, rank_products


@pytest.fixture
def analysed(sample_transactions_df):
    df, quality = apply_quality_rules(sample_transactions_df, AnomalyPolicy.FLAG)
    df = enrich_transactions(df)
    return df, build_views(df), quality


class TestFormatCurrency:
    """Tests for currency formatting"""

    def test_two_decimals(self):
        assert format_currency(7204.625) in ("$7,204.62", "$7,204.63")
        assert format_currency(331.25) == "$331.25"

    def test_negative_and_symbol(self):
        assert format_currency(-12.5, "€") == "-€12.50"


class TestNarrative:
    """Tests for narrative commentary"""

    def test_paragraphs(self, analysed):
        """One paragraph per report section"""
        df, views, quality = analysed
        top, bottom = rank_products(views.products, 2)

        paragraphs = build_narrative(df, views, top, bottom, quality)

        assert len(paragraphs) == 5
        assert "7 transactions" in paragraphs[0]
        assert "Lettuce" in paragraphs[3]

    def test_weekly_figures_derived(self, analysed):
        """The most typical week is read from the weekly view"""
        _, views, _ = analysed

        text = weekly_section(views.weekly)
        typical = views.weekly.sort("deviation").row(0, named=True)

        assert f"Week {typical['iso_week']} of {typical['year']}" in text

    def test_hourly_peak(self, analysed):
        _, views, _ = analysed

        assert "11:00" in hourly_section(views.hourly)

    def test_quality_mentions_exclusions(self, make_transactions):
        _, quality = apply_quality_rules(
            make_transactions([{"unit_price": None}, {"quantity": 0}]),
            AnomalyPolicy.EXCLUDE,
        )

        text = quality_section(quality)

        assert "1 rows were excluded for missing a required field" in text
        assert "excluded" in text


class TestCharts:
    """Tests for chart rendering"""

    def test_render_all(self, analysed, tmp_path):
        """Every chart is written as a PNG"""
        _, views, _ = analysed
        top, bottom = rank_products(views.products, 2)

        charts = ChartRenderer(tmp_path / "charts").render_all(views.weekly, views.hourly, top, bottom)

        assert set(charts) == {
            "weekly_trend",
            "weekly_deviation",
            "hourly_trend",
            "top_products",
            "bottom_products",
        }
        for path in charts.values():
            assert path.exists()
            assert path.suffix == ".png"


class TestReportBuilder:
    """Tests for the Markdown report"""

    def test_report_without_charts(self, analysed, tmp_path):
        df, views, quality = analysed

        artifacts = ReportBuilder(tmp_path, top_n=2, render_charts=False).build(df, views, quality)

        text = artifacts.report_path.read_text(encoding="utf-8")
        assert artifacts.charts == {}
        assert text.startswith("# Grocery Sales Report")
        assert "## Sales by Hour" in text
        assert "### Top 2 Products" in text
        assert "![" not in text

    def test_report_links_charts(self, analysed, tmp_path):
        df, views, quality = analysed

        artifacts = ReportBuilder(tmp_path, top_n=2, render_charts=True).build(df, views, quality)

        text = artifacts.report_path.read_text(encoding="utf-8")
        assert "![Sales by hour](charts/hourly_trend.png)" in text
        assert (tmp_path / "charts" / "hourly_trend.png").exists()

    @pytest.mark.parametrize("top_n", [0, -1])
    def test_non_positive_top_n_rejected(self, tmp_path, top_n):
        with pytest.raises(ValueError):
            ReportBuilder(tmp_path, top_n=top_n, render_charts=False)

    def test_empty_currency_symbol_kept(self, analysed, tmp_path):
        """An explicit empty symbol is not replaced by the default"""
        df, views, quality = analysed

        builder = ReportBuilder(tmp_path, top_n=2, render_charts=False, currency_symbol="")
        text = builder.build(df, views, quality).report_path.read_text(encoding="utf-8")

        assert builder.currency_symbol == ""
        assert "$" not in text
