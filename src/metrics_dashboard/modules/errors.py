"""
Exception types raised while loading and parsing metrics data.
"""


class DashboardError(Exception):
    """Base class for dashboard errors."""


class DataLoadError(DashboardError):
    """Raised when the CSV source cannot be read."""


class CSVParseError(DashboardError):
    """Raised when the CSV text cannot be parsed into rows."""
