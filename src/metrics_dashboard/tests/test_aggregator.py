"""
Unit tests for aggregator module.
"""

import pytest
import pandas as pd
from modules.aggregator import MetricsAggregator, category_total, metric_total
from modules.parser import parse_csv

CSV_TEXT = """Location,Category,Product,Metric,Total,Jun-25,May-25,Apr-25,Jan-24
Kenkere House,Apparel,Shirts,Sales,600,110,100,,50
Kenkere House,Apparel,Jeans,Sales,300,,200,100,
Kenkere House,Footwear,Sneakers,Sales,250,0,50,200,
Kenkere House,Apparel,Shirts,Footfall,40,10,10,10,10
"""


@pytest.fixture
def location_data():
    return parse_csv(CSV_TEXT)['Kenkere House']


@pytest.fixture
def aggregator(location_data):
    return MetricsAggregator(location_data)


class TestTotals:
    """Tests for category and metric totals."""

    def test_category_total_skips_absent(self, location_data):
        """Test that absent values count as zero."""
        apparel = location_data['Sales']['Apparel']
        assert category_total(apparel, 'Jun-25') == 110
        assert category_total(apparel, 'May-25') == 300
        assert category_total(apparel, 'Apr-25') == 100

    def test_category_total_all_absent_is_zero(self, location_data):
        """Test that a month with no values still totals to a number."""
        footwear = location_data['Sales']['Footwear']
        assert category_total(footwear, 'Jan-24') == 0
        assert category_total(footwear, 'Dec-24') == 0

    def test_metric_total(self, location_data):
        """Test metric total is the sum of category totals."""
        sales = location_data['Sales']
        assert metric_total(sales, 'May-25') == 350
        assert metric_total(sales, 'Apr-25') == 300
        assert metric_total(sales, 'Jun-25') == 110

    def test_aggregator_totals(self, aggregator):
        """Test the aggregator wrappers."""
        assert aggregator.metrics == ['Sales', 'Footfall']
        assert aggregator.categories('Sales') == ['Apparel', 'Footwear']
        assert aggregator.category_total('Sales', 'Footwear', 'Apr-25') == 200
        assert aggregator.metric_total('Footfall', 'Jan-24') == 10


class TestBuildTable:
    """Tests for the table layout."""

    def test_collapsed_table(self, aggregator):
        """Test category rows and the totals row."""
        table = aggregator.build_table('Sales')

        assert list(table['label']) == ['Apparel', 'Footwear', 'TOTALS']
        assert list(table['row_type']) == ['category', 'category', 'total']
        assert list(table['products'])[:2] == [2, 1]
        assert len(table.columns) == 4 + 18
        assert table.loc[2, 'May-25'] == 350

    def test_expanded_table(self, aggregator):
        """Test product rows follow their expanded category."""
        table = aggregator.build_table('Sales', expanded=['Apparel'])

        assert list(table['label']) == ['Apparel', 'Shirts', 'Jeans', 'Footwear', 'TOTALS']
        jeans = table[table['label'] == 'Jeans'].iloc[0]
        assert jeans['row_type'] == 'product'
        assert jeans['category'] == 'Apparel'
        assert pd.isna(jeans['Jun-25'])
        assert jeans['May-25'] == 200

    def test_unknown_metric(self, aggregator):
        """Test that an unknown metric raises KeyError."""
        with pytest.raises(KeyError):
            aggregator.build_table('Margin')


class TestGrowthTable:
    """Tests for growth labels."""

    def test_category_growth(self, aggregator):
        """Test category growth against the previous month."""
        growth = aggregator.growth_table('Sales')
        apparel = growth.iloc[0]

        # Jun-25 110 vs May-25 300
        assert apparel['Jun-25'] == '▼ −63.3%'
        # May-25 300 vs Apr-25 100
        assert apparel['May-25'] == '▲ +200.0%'
        # Apr-25 100 vs Mar-25 0
        assert apparel['Apr-25'] == '-'
        # Last column has nothing to compare against
        assert apparel['Jan-24'] == ''

    def test_zero_current_has_no_indicator(self, aggregator):
        """Test that empty months get no growth label."""
        growth = aggregator.growth_table('Sales')
        footwear = growth.iloc[1]
        assert footwear['Jun-25'] == ''
        assert footwear['Dec-24'] == ''

    def test_totals_row_has_no_growth(self, aggregator):
        """Test that the totals row is never annotated."""
        growth = aggregator.growth_table('Sales')
        totals = growth.iloc[-1]
        assert totals['label'] == 'TOTALS'
        assert all(totals[key] == '' for key in aggregator.column_keys)

    def test_product_growth_needs_previous_value(self, aggregator):
        """Test product rows skip growth when the previous month is absent."""
        growth = aggregator.growth_table('Sales', expanded=['Apparel'])
        jeans = growth[growth['label'] == 'Jeans'].iloc[0]
        shirts = growth[growth['label'] == 'Shirts'].iloc[0]

        # Apr-25 100 vs Mar-25 absent
        assert jeans['Apr-25'] == ''
        assert jeans['May-25'] == '▲ +100.0%'
        # May-25 100 vs Apr-25 absent
        assert shirts['May-25'] == ''
        assert shirts['Jun-25'] == '▲ +10.0%'


class TestFormatTable:
    """Tests for the display table."""

    def test_grouped_headers(self, aggregator):
        """Test year/quarter/month column levels."""
        table = aggregator.format_table('Footfall')

        assert table.columns.names == ['Year', 'Quarter', 'Month']
        assert table.columns[0] == (2025, 'Q2', 'Jun-25')
        assert table.columns[-1] == (2024, 'Q1', 'Jan-24')
        assert len(table.columns) == 18

    def test_cells(self, aggregator):
        """Test value formatting and growth in cells."""
        table = aggregator.format_table('Sales')

        assert list(table.index) == ['Apparel (2 products)', 'Footwear (1 products)', 'TOTALS']
        assert table.iloc[0][(2025, 'Q2', 'May-25')] == '₹300 ▲ +200.0%'
        assert table.iloc[1][(2025, 'Q2', 'Jun-25')] == '—'
        assert table.iloc[2][(2025, 'Q2', 'May-25')] == '₹350'

    def test_non_currency_cells(self, aggregator):
        """Test plain number formatting."""
        table = aggregator.format_table('Footfall')
        assert table.iloc[0][(2025, 'Q2', 'Jun-25')] == '10.0 0%'
        assert table.iloc[-1][(2025, 'Q2', 'Jun-25')] == '10.0'


class TestTrend:
    """Tests for the trend series."""

    def test_metric_trend(self, aggregator):
        """Test chronological metric totals."""
        trend = aggregator.metric_trend('Sales')

        assert list(trend.index)[0] == 'Jan-24'
        assert list(trend.index)[-1] == 'Jun-25'
        assert trend['May-25'] == 350
        assert trend['Jan-24'] == 50
        assert len(trend) == 18
