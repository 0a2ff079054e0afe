"""
Business logic for the metrics table.

Includes calendar helpers for the month columns, growth indicators and
value formatting.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from modules.parser import MONTH_LABELS

logger = logging.getLogger(__name__)

# Month ordering
MONTH_ORDER = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

# Metrics whose values are money
CURRENCY_KEYWORDS = ['sales', 'revenue', 'value', 'amount', 'vat']

# Growth smaller than this (in percent) is shown as flat
FLAT_GROWTH_THRESHOLD = 0.1

EMPTY_CELL = '—'
MINUS_SIGN = '−'


@dataclass(frozen=True)
class MonthColumn:
    """One month column of the table."""

    key: str
    header: str
    year: int
    quarter: int


class CalendarHelper:
    """Helper for month columns and their year/quarter grouping."""

    @staticmethod
    def month_to_number(month: str) -> int:
        """
        Convert month name to number.

        Args:
            month: Month name (Jan, Feb, etc.)

        Returns:
            Month number (1-12), 0 if unknown
        """
        try:
            return MONTH_ORDER.index(month) + 1
        except ValueError:
            return 0

    @staticmethod
    def parse_label(label: str) -> MonthColumn:
        """Build a MonthColumn from a label such as "Jun-25"."""
        month_name, year = label.split('-')
        month_number = CalendarHelper.month_to_number(month_name)
        if month_number == 0:
            logger.warning(f"Unknown month in column label {label!r}, treating as January")
        month_index = max(month_number - 1, 0)
        return MonthColumn(
            key=label,
            header=label,
            year=int(f"20{year}"),
            quarter=month_index // 3 + 1,
        )

    @staticmethod
    def get_month_columns() -> List[MonthColumn]:
        """All month columns, most recent first."""
        return [CalendarHelper.parse_label(label) for label in MONTH_LABELS]

    @staticmethod
    def previous_column(columns: List[MonthColumn], index: int) -> Optional[MonthColumn]:
        """
        The column one month earlier than columns[index].

        Columns run most recent first, so that is the next entry; the last
        column has no previous one.
        """
        if index < len(columns) - 1:
            return columns[index + 1]
        return None

    @staticmethod
    def group_columns_by_year(columns: List[MonthColumn]) -> List[Tuple[int, List[MonthColumn]]]:
        """Split columns into contiguous year groups, keeping column order."""
        groups: List[Tuple[int, List[MonthColumn]]] = []
        for column in columns:
            if groups and groups[-1][0] == column.year:
                groups[-1][1].append(column)
            else:
                groups.append((column.year, [column]))
        return groups

    @staticmethod
    def group_columns_by_quarter(columns: List[MonthColumn]) -> List[Tuple[int, List[MonthColumn]]]:
        """Split one year's columns into contiguous quarter groups."""
        groups: List[Tuple[int, List[MonthColumn]]] = []
        for column in columns:
            if groups and groups[-1][0] == column.quarter:
                groups[-1][1].append(column)
            else:
                groups.append((column.quarter, [column]))
        return groups

    @staticmethod
    def header_spans() -> List[Tuple[int, int, List[MonthColumn]]]:
        """(year, quarter, columns) spans used for the grouped table header."""
        spans = []
        for year, year_columns in CalendarHelper.group_columns_by_year(
            CalendarHelper.get_month_columns()
        ):
            for quarter, quarter_columns in CalendarHelper.group_columns_by_quarter(year_columns):
                spans.append((year, quarter, quarter_columns))
        return spans


@dataclass(frozen=True)
class GrowthIndicator:
    """Month-over-month change shown next to a value."""

    direction: str  # 'up', 'down', 'flat' or 'none'
    percent: Optional[float] = None

    @property
    def label(self) -> str:
        if self.direction == 'none':
            return '-'
        if self.direction == 'flat':
            return '0%'
        sign = '+' if self.direction == 'up' else MINUS_SIGN
        return f"{sign}{abs(self.percent):.1f}%"

    @property
    def marker(self) -> str:
        return {'up': '▲', 'down': '▼'}.get(self.direction, '–')

    def __str__(self) -> str:
        if self.direction in ('up', 'down'):
            return f"{self.marker} {self.label}"
        return self.label


def compute_growth(current: Optional[float], previous: Optional[float]) -> GrowthIndicator:
    """
    Growth from the previous month to the current one.

    Missing or zero values on either side give a neutral "no data"
    indicator rather than -100% or infinite growth.
    """
    if not current or not previous:
        return GrowthIndicator('none')

    growth = (current - previous) / previous * 100
    if abs(growth) < FLAT_GROWTH_THRESHOLD:
        return GrowthIndicator('flat', growth)
    return GrowthIndicator('up' if growth > 0 else 'down', growth)


def is_currency_metric(metric: str) -> bool:
    """Check whether a metric holds money amounts."""
    metric_lower = metric.lower()
    return any(keyword in metric_lower for keyword in CURRENCY_KEYWORDS)


def format_inr_value(value: float) -> str:
    """Format value in rupees using crore/lakh/thousand units."""
    if value >= 10_000_000:  # 1 Crore
        return f"₹{value / 10_000_000:.1f}Cr"
    elif value >= 100_000:  # 1 Lakh
        return f"₹{value / 100_000:.1f}L"
    elif value >= 1_000:
        return f"₹{value / 1_000:.1f}K"
    else:
        return f"₹{value:.0f}"


def format_metric_value(value: Optional[float], metric: str) -> str:
    """Format a table cell; empty and zero values show as a dash."""
    if not value or math.isnan(value):
        return EMPTY_CELL
    if is_currency_metric(metric):
        return format_inr_value(value)
    return f"{value:.1f}"
