"""
CSV parser for location metrics exports.

Turns the flat export (one row per location/metric/category/product, one
column per month) into a tree of typed nodes:

    ParsedCSVData -> LocationData -> MetricGroup -> CategoryData -> MetricData
"""

import io
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional

import pandas as pd

from modules.errors import CSVParseError

logger = logging.getLogger(__name__)

# Month columns the dashboard knows about, most recent first
MONTH_LABELS = [
    'Jun-25', 'May-25', 'Apr-25', 'Mar-25', 'Feb-25', 'Jan-25',
    'Dec-24', 'Nov-24', 'Oct-24', 'Sep-24', 'Aug-24', 'Jul-24',
    'Jun-24', 'May-24', 'Apr-24', 'Mar-24', 'Feb-24', 'Jan-24',
]

IDENTITY_COLUMNS = ['Location', 'Category', 'Product', 'Metric']
TOTAL_COLUMN = 'Total'


def is_month_label(header: str) -> bool:
    """Return True if header is one of the known month columns."""
    return header in MONTH_LABELS


def looks_like_month_label(header: str) -> bool:
    """
    Legacy month detection: any header with a hyphen and a "24"/"25" in it.

    Also matches things like "SKU-24X"; use is_month_label unless the loose
    behaviour is needed.
    """
    return '-' in header and ('24' in header or '25' in header)


def parse_number(value) -> Optional[float]:
    """
    Parse a CSV cell into a float.

    Empty, missing and non-numeric cells give None. "0" gives 0.0.
    """
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None

    text = str(value).strip()
    if not text:
        return None

    try:
        number = float(text)
    except ValueError:
        return None

    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class MetricData:
    """Monthly series for one location/metric/category/product."""

    location: str
    category: str
    product: str
    metric: str
    months: Mapping = field(default_factory=dict)
    total: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'months', MappingProxyType(dict(self.months)))

    def value(self, month: str) -> Optional[float]:
        """Value for a month label, None when absent or empty."""
        return self.months.get(month)


class CategoryData(Mapping):
    """Products within one category, keyed in first-appearance order."""

    level = 'category'

    def __init__(self, name: str):
        self.name = name
        self._products: Dict[str, MetricData] = {}

    def __getitem__(self, product: str) -> MetricData:
        return self._products[product]

    def __iter__(self) -> Iterator[str]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def put(self, product: str, data: MetricData) -> None:
        """Store data for a product, replacing any earlier entry."""
        if product in self._products:
            logger.debug(f"Replacing duplicate product {product!r} in category {self.name!r}")
        self._products[product] = data

    def __repr__(self) -> str:
        return f"CategoryData({self.name!r}, products={list(self._products)})"


class _Node(Mapping):
    """Ordered container that owns child nodes of a single type."""

    child_type = None
    level = 'node'

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self._children = {}

    def __getitem__(self, key: str):
        return self._children[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def get_or_create(self, key: str):
        """Return the child called key, creating it on first use."""
        child = self._children.get(key)
        if child is None:
            child = self.child_type(key)
            self._children[key] = child
            logger.debug(f"Created {child.level}: {key}")
        return child

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {list(self._children)})"


class MetricGroup(_Node):
    """Categories tracked under one metric."""

    child_type = CategoryData
    level = 'metric'


class LocationData(_Node):
    """Metrics tracked at one location."""

    child_type = MetricGroup
    level = 'location'


class ParsedCSVData(_Node):
    """Root of the parsed tree: location -> metric -> category -> product."""

    child_type = LocationData
    level = 'root'

    @property
    def locations(self) -> List[str]:
        return list(self._children)

    def add(self, record: MetricData) -> None:
        """Insert a record at its compound key (last one wins)."""
        category = (
            self.get_or_create(record.location)
            .get_or_create(record.metric)
            .get_or_create(record.category)
        )
        category.put(record.product, record)

    def iter_records(self) -> Iterator[MetricData]:
        for location in self.values():
            for metric in location.values():
                for category in metric.values():
                    yield from category.values()

    def summary(self) -> Dict[str, int]:
        """Counts of distinct nodes at each level."""
        metrics = set()
        categories = set()
        records = 0
        for record in self.iter_records():
            metrics.add((record.location, record.metric))
            categories.add((record.location, record.metric, record.category))
            records += 1
        return {
            'locations': len(self),
            'metrics': len(metrics),
            'categories': len(categories),
            'products': records,
        }

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten the tree into tidy format.

        Returns:
            DataFrame with columns: location, metric, category, product,
            month, value, total (one row per record and month column)
        """
        columns = ['location', 'metric', 'category', 'product', 'month', 'value', 'total']
        rows = []
        for record in self.iter_records():
            for month, value in record.months.items():
                rows.append({
                    'location': record.location,
                    'metric': record.metric,
                    'category': record.category,
                    'product': record.product,
                    'month': month,
                    'value': value,
                    'total': record.total,
                })
        return pd.DataFrame(rows, columns=columns)


def _clean_text(value) -> str:
    if not isinstance(value, str):
        return ''
    return value.strip()


def read_rows(csv_text: str) -> pd.DataFrame:
    """
    Read CSV text into a DataFrame of raw strings with trimmed headers.

    Raises:
        CSVParseError: if the text cannot be tokenised as CSV
    """
    if not csv_text or not csv_text.strip():
        return pd.DataFrame()

    reader_options = {
        'dtype': str,
        'keep_default_na': False,
        'skip_blank_lines': True,
        # Trailing delimiters must not turn the first column into the index
        'index_col': False,
        'engine': 'python',
    }

    try:
        width = len(pd.read_csv(io.StringIO(csv_text), nrows=0, **reader_options).columns)
        # Extra cells past the header are ignored, the row itself is kept
        df = pd.read_csv(
            io.StringIO(csv_text),
            on_bad_lines=lambda fields: fields[:width],
            **reader_options,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as e:
        raise CSVParseError(f"Could not parse CSV: {e}") from e

    df.columns = [str(col).strip() for col in df.columns]
    return df


def parse_csv(
    csv_text: str,
    month_filter: Callable[[str], bool] = is_month_label,
) -> ParsedCSVData:
    """
    Parse a metrics CSV export into a ParsedCSVData tree.

    Rows missing any of Location, Category, Product or Metric are skipped.
    Later rows replace earlier ones with the same compound key.

    Args:
        csv_text: Raw CSV text, first row is the header
        month_filter: Predicate deciding which headers are month columns

    Returns:
        Parsed tree, empty when nothing usable was found
    """
    logger.info("Starting CSV parse")
    df = read_rows(csv_text)
    parsed = ParsedCSVData()

    if df.empty:
        logger.warning("CSV contained no data rows")
        return parsed

    missing = [col for col in IDENTITY_COLUMNS if col not in df.columns]
    if missing:
        logger.warning(f"CSV is missing required columns: {missing}")

    month_columns = [col for col in df.columns if month_filter(col)]
    logger.info(f"Read {len(df)} rows, {len(month_columns)} month columns")

    skipped = 0
    for index, row in enumerate(df.to_dict('records')):
        location = _clean_text(row.get('Location'))
        category = _clean_text(row.get('Category'))
        product = _clean_text(row.get('Product'))
        metric = _clean_text(row.get('Metric'))

        if not (location and category and product and metric):
            logger.debug(f"Skipping row {index} due to missing data")
            skipped += 1
            continue

        total = parse_number(row.get(TOTAL_COLUMN))
        months = {col: parse_number(row.get(col)) for col in month_columns}

        parsed.add(MetricData(
            location=location,
            category=category,
            product=product,
            metric=metric,
            months=months,
            total=total if total is not None else 0.0,
        ))

    logger.debug(f"Skipped {skipped} incomplete rows")
    logger.info(f"Locations found: {parsed.locations}")
    return parsed
