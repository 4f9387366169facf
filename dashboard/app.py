"""
ABC pool dashboard.

    streamlit run dashboard/app.py

Reads the JSON datasets the collectors write; never writes back.
"""
import streamlit as st

from config import get_settings
from dashboard.data import (
    POOL_COLUMNS,
    ROSTER_COLUMNS,
    SERIES_OPTIONS,
    load_frame,
    pool_chart_frame,
    roster_table,
    truncate_address,
)
from utils.log_setup import setup_logging

st.set_page_config(page_title="ABC Pool Statistics", layout="wide")

settings = get_settings()
setup_logging(settings.LOG_LEVEL)


@st.cache_data(ttl=300)
def _load(path: str, columns):
    return load_frame(path, list(columns))


def render_pool_stats():
    st.header("ABC Pool Statistics")
    df = _load(str(settings.pool_stats_path), tuple(POOL_COLUMNS))

    series = st.selectbox(
        "Series",
        SERIES_OPTIONS,
        format_func=lambda o: "All Chains" if o == "All" else o,
    )
    chart = pool_chart_frame(df, series)
    if chart.empty:
        st.info("No data available")
        return

    st.subheader("Staker Count")
    st.bar_chart(chart["stakerNumber"])
    st.subheader("Total POS (万)")
    st.bar_chart(chart["totalPOS"])


def render_roster():
    st.header("Tesla Voting Power")
    df = _load(str(settings.roster_path), tuple(ROSTER_COLUMNS))

    query = st.text_input("Search", placeholder="Enter eSpace address...")
    table = roster_table(df, query)
    if table.empty:
        st.info("No data found")
        return

    view = table.assign(Address=table["espaceAddr"].map(truncate_address))
    view = view.rename(
        columns={"snapshotDate": "Date", "posAmount": "POS", "abcAmount": "ABC", "vote": "Votes"}
    )
    st.dataframe(
        view[["Address", "Date", "POS", "ABC", "Votes"]],
        use_container_width=True,
        hide_index=True,
    )
    csv = table.to_csv(index=False).encode("utf-8")
    st.download_button("📥 Download CSV", data=csv, file_name="teslaSnapshot.csv")


stats_tab, roster_tab = st.tabs(["Pool Stats", "Tesla"])
with stats_tab:
    render_pool_stats()
with roster_tab:
    render_roster()
