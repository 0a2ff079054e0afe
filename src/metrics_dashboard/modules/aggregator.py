"""
Aggregation for the metrics table: category subtotals, metric totals and
the row layout shown for one location.
"""

import logging
from typing import Iterable, List, Optional

import pandas as pd

from modules.business import (
    CalendarHelper,
    EMPTY_CELL,
    MonthColumn,
    compute_growth,
    format_metric_value,
)
from modules.parser import CategoryData, LocationData, MetricGroup

logger = logging.getLogger(__name__)

TOTALS_LABEL = 'TOTALS'
META_COLUMNS = ['label', 'row_type', 'category', 'products']


def category_total(category_data: CategoryData, column_key: str) -> float:
    """
    Sum a month across all products in a category.

    Absent values count as 0, so the result is always a number.
    """
    return sum(data.value(column_key) or 0 for data in category_data.values())


def metric_total(metric_data: MetricGroup, column_key: str) -> float:
    """Sum of the category totals for a month."""
    return sum(category_total(category_data, column_key) for category_data in metric_data.values())


class MetricsAggregator:
    """Build the drill-down table for one location."""

    def __init__(self, location_data: LocationData, columns: Optional[List[MonthColumn]] = None):
        """
        Initialize aggregator.

        Args:
            location_data: Parsed data for a single location
            columns: Month columns to show, most recent first
        """
        self.location_data = location_data
        self.columns = columns if columns is not None else CalendarHelper.get_month_columns()

    @property
    def metrics(self) -> List[str]:
        return list(self.location_data)

    @property
    def column_keys(self) -> List[str]:
        return [column.key for column in self.columns]

    def categories(self, metric: str) -> List[str]:
        return list(self.location_data[metric])

    def category_total(self, metric: str, category: str, column_key: str) -> float:
        return category_total(self.location_data[metric][category], column_key)

    def metric_total(self, metric: str, column_key: str) -> float:
        return metric_total(self.location_data[metric], column_key)

    def _rows(self, metric: str, expanded: Iterable[str]):
        """
        Yield (meta, values, show_growth) for each table row.

        Category rows are always present, product rows only follow expanded
        categories, and the totals row comes last.
        """
        metric_data = self.location_data[metric]
        expanded = set(expanded)

        for category, category_data in metric_data.items():
            meta = {
                'label': category,
                'row_type': 'category',
                'category': category,
                'products': len(category_data),
            }
            values = [category_total(category_data, key) for key in self.column_keys]
            yield meta, values, True

            if category not in expanded:
                continue

            for product, data in category_data.items():
                meta = {
                    'label': product,
                    'row_type': 'product',
                    'category': category,
                    'products': None,
                }
                yield meta, [data.value(key) for key in self.column_keys], True

        meta = {
            'label': TOTALS_LABEL,
            'row_type': 'total',
            'category': None,
            'products': sum(len(category_data) for category_data in metric_data.values()),
        }
        yield meta, [metric_total(metric_data, key) for key in self.column_keys], False

    def _growth_labels(self, values: List[Optional[float]]) -> List[str]:
        labels = []
        for index, current in enumerate(values):
            previous_column = CalendarHelper.previous_column(self.columns, index)
            previous = values[index + 1] if previous_column is not None else None
            if current and current > 0 and previous is not None:
                labels.append(str(compute_growth(current, previous)))
            else:
                labels.append('')
        return labels

    def build_table(self, metric: str, expanded: Iterable[str] = ()) -> pd.DataFrame:
        """
        Numeric table for a metric.

        Args:
            metric: Metric to show
            expanded: Categories whose product rows are included

        Returns:
            DataFrame with label, row_type, category, products and one column
            per month key
        """
        records = []
        for meta, values, _ in self._rows(metric, expanded):
            record = dict(meta)
            record.update(zip(self.column_keys, values))
            records.append(record)

        table = pd.DataFrame(records, columns=META_COLUMNS + self.column_keys)
        logger.debug(f"Built table for {metric}: {len(table)} rows")
        return table

    def growth_table(self, metric: str, expanded: Iterable[str] = ()) -> pd.DataFrame:
        """Growth labels aligned row-for-row with build_table."""
        records = []
        for meta, values, show_growth in self._rows(metric, expanded):
            record = dict(meta)
            labels = self._growth_labels(values) if show_growth else [''] * len(values)
            record.update(zip(self.column_keys, labels))
            records.append(record)
        return pd.DataFrame(records, columns=META_COLUMNS + self.column_keys)

    def format_table(self, metric: str, expanded: Iterable[str] = ()) -> pd.DataFrame:
        """
        Display table with grouped (year, quarter, month) column headers.

        Each cell holds the formatted value followed by its growth label.
        """
        index = []
        rows = []
        for meta, values, show_growth in self._rows(metric, expanded):
            labels = self._growth_labels(values) if show_growth else [''] * len(values)
            cells = []
            for value, growth in zip(values, labels):
                text = format_metric_value(value, metric)
                if growth and text != EMPTY_CELL:
                    text = f"{text} {growth}"
                cells.append(text)
            rows.append(cells)
            index.append(self._row_label(meta))

        header = pd.MultiIndex.from_tuples(
            [(column.year, f"Q{column.quarter}", column.header) for column in self.columns],
            names=['Year', 'Quarter', 'Month'],
        )
        return pd.DataFrame(rows, index=pd.Index(index, name=metric), columns=header)

    @staticmethod
    def _row_label(meta: dict) -> str:
        if meta['row_type'] == 'category':
            return f"{meta['label']} ({meta['products']} products)"
        if meta['row_type'] == 'product':
            return f"    {meta['label']}"
        return meta['label']

    def metric_trend(self, metric: str) -> pd.Series:
        """Metric totals per month, oldest first."""
        columns = list(reversed(self.columns))
        return pd.Series(
            [self.metric_total(metric, column.key) for column in columns],
            index=[column.key for column in columns],
            name=metric,
        )

