"""
Dashboard configuration.

Defaults live here as module constants; a few can be overridden through
environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

# Paths
BASE_DIR = Path(__file__).parent.parent
DEFAULT_CSV_PATH = BASE_DIR / 'data' / 'Metrics.csv'

# Friendly names shown on the location tabs
LOCATION_DISPLAY_NAMES = {
    'Kenkere House': 'Kenkere House',
    'Supreme HQ Bandra': 'Supreme HQ, Bandra',
    'Kwality House Kemps Corner': 'Kwality House, Kemps Corner',
}


@dataclass
class DashboardSettings:
    """Runtime settings for the app and CLI."""

    csv_path: Path = DEFAULT_CSV_PATH
    log_level: str = 'INFO'
    location_display_names: Dict[str, str] = field(
        default_factory=lambda: dict(LOCATION_DISPLAY_NAMES)
    )

    @classmethod
    def from_env(cls) -> 'DashboardSettings':
        """Build settings, honouring METRICS_CSV_PATH and METRICS_LOG_LEVEL."""
        csv_path = os.environ.get('METRICS_CSV_PATH')
        log_level = os.environ.get('METRICS_LOG_LEVEL', 'INFO')
        return cls(
            csv_path=Path(csv_path) if csv_path else DEFAULT_CSV_PATH,
            log_level=log_level.upper(),
        )

    def display_name(self, location: str) -> str:
        return self.location_display_names.get(location, location)
