"""
Loading of the metrics CSV.

A load is one shot: it either yields data, yields an empty tree, or fails
with a message for the user. Nothing is retried.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Optional, Union

from modules.errors import DashboardError, DataLoadError
from modules.parser import ParsedCSVData, parse_csv

logger = logging.getLogger(__name__)

LOADED = 'loaded'
EMPTY = 'empty'
ERROR = 'error'


@dataclass
class LoadResult:
    """Outcome of loading the metrics CSV."""

    status: str
    data: ParsedCSVData = field(default_factory=ParsedCSVData)
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == LOADED


def read_csv_text(source: Union[str, Path, IO]) -> str:
    """
    Read raw CSV text from a path or an open file.

    Raises:
        DataLoadError: if the source is missing or unreadable
    """
    if hasattr(source, 'read'):
        content = source.read()
        if isinstance(content, bytes):
            try:
                return content.decode('utf-8-sig')
            except UnicodeDecodeError as e:
                raise DataLoadError(f"CSV file is not valid UTF-8: {e}") from e
        return content

    path = Path(source)
    if not path.exists():
        raise DataLoadError(f"CSV file not found: {path}")

    try:
        return path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Failed to load CSV file {path}: {e}") from e


def load_metrics(source: Union[str, Path, IO]) -> LoadResult:
    """
    Read and parse a metrics CSV.

    Args:
        source: Path to the CSV, or a file-like object (e.g. an upload)

    Returns:
        LoadResult with status loaded, empty or error
    """
    try:
        csv_text = read_csv_text(source)
        logger.debug(f"CSV text loaded: {csv_text[:500]}...")
        data = parse_csv(csv_text)
    except DashboardError as e:
        logger.error(f"Error loading CSV: {e}")
        return LoadResult(ERROR, message=str(e))

    if len(data) == 0:
        logger.warning("No metrics data found in the CSV file")
        return LoadResult(EMPTY, data=data, message="No metrics data found in the CSV file")

    logger.info(f"Loaded {data.summary()}")
    return LoadResult(LOADED, data=data)
