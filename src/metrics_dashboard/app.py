"""
Streamlit dashboard for location performance metrics.

Launch with: streamlit run app.py
"""

import io
import logging
import sys
from pathlib import Path

import pandas as pd
import plotly.express as px
import streamlit as st

# Add modules to path
sys.path.insert(0, str(Path(__file__).parent))

from modules.aggregator import MetricsAggregator
from modules.business import is_currency_metric
from modules.config import DashboardSettings
from modules.loader import EMPTY, ERROR, LoadResult, load_metrics
from modules.parser import LocationData

settings = DashboardSettings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title="Performance Analytics Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)

TABLE_STYLES = [
    {'selector': 'th', 'props': [('background-color', '#f8f9fa'), ('text-align', 'center')]},
    {'selector': 'td', 'props': [('text-align', 'right'), ('white-space', 'nowrap')]},
    {'selector': 'tbody tr:last-child', 'props': [('font-weight', 'bold'), ('background-color', '#eef2ff')]},
    {'selector': 'tbody th', 'props': [('text-align', 'left'), ('white-space', 'pre')]},
]


@st.cache_resource
def load_data(csv_path: str) -> LoadResult:
    """Load and parse the metrics CSV from disk."""
    return load_metrics(csv_path)


def load_upload(uploaded_file) -> LoadResult:
    """Parse a CSV uploaded through the sidebar."""
    logger.info(f"Loading uploaded file: {uploaded_file.name}")
    return load_metrics(io.BytesIO(uploaded_file.getvalue()))


def render_table(aggregator: MetricsAggregator, metric: str, expanded) -> None:
    """Render the metric table with sticky headers and first column."""
    table = aggregator.format_table(metric, expanded)
    styler = (
        table.style
        .set_table_styles(TABLE_STYLES)
        .set_sticky(axis='index')
        .set_sticky(axis='columns')
    )
    st.markdown(
        f'<div style="max-height: 640px; overflow: auto;">{styler.to_html()}</div>',
        unsafe_allow_html=True,
    )


def render_trend(aggregator: MetricsAggregator, metric: str) -> None:
    """Line chart of the metric total over time."""
    trend = aggregator.metric_trend(metric)
    trend_df = pd.DataFrame({'month': trend.index, 'total': trend.values})

    fig = px.line(
        trend_df,
        x='month',
        y='total',
        markers=True,
        title=f"{metric} - Monthly Total",
        labels={'total': '₹' if is_currency_metric(metric) else metric, 'month': 'Month'}
    )
    st.plotly_chart(fig, width='stretch')


def render_location(location: str, location_data: LocationData) -> None:
    """Metric tabs and drill-down table for one location."""
    aggregator = MetricsAggregator(location_data)
    metrics = aggregator.metrics

    if not metrics:
        st.info("No metrics available for this location.")
        return

    metric_tabs = st.tabs(metrics)
    for metric, metric_tab in zip(metrics, metric_tabs):
        with metric_tab:
            categories = aggregator.categories(metric)
            st.subheader(f"{settings.display_name(location)} · {metric}")

            expanded = st.multiselect(
                "Expand categories",
                options=categories,
                default=[],
                key=f"expand::{location}::{metric}",
            )

            render_table(aggregator, metric, expanded)
            render_trend(aggregator, metric)


def main():
    """Main dashboard application."""

    st.title("📊 Performance Analytics Dashboard")
    st.caption("Metrics across all locations with monthly growth indicators")

    # Sidebar source selection
    st.sidebar.header("Data Source")
    csv_path = st.sidebar.text_input("CSV path", str(settings.csv_path))
    uploaded_file = st.sidebar.file_uploader("Or upload a CSV", type=['csv'])

    with st.spinner("Loading Metrics Data..."):
        if uploaded_file is not None:
            result = load_upload(uploaded_file)
        else:
            result = load_data(csv_path)

    if result.status == ERROR:
        st.error(f"Error Loading Data: {result.message}")
        st.stop()

    if result.status == EMPTY:
        st.warning("No Data Available")
        st.write("No metrics data found in the CSV file.")
        st.stop()

    data = result.data
    locations = data.locations

    location_tabs = st.tabs([
        f"{settings.display_name(location)} ({len(data[location])} metrics available)"
        for location in locations
    ])
    for location, location_tab in zip(locations, location_tabs):
        with location_tab:
            render_location(location, data[location])

    # Footer
    summary = data.summary()
    st.sidebar.markdown("---")
    st.sidebar.info(f"Locations: **{summary['locations']}**")
    st.sidebar.info(f"Products tracked: **{summary['products']:,}**")


if __name__ == '__main__':
    main()
