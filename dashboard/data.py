"""
Shaping of the persisted datasets for the dashboard.

Pure pandas; no Streamlit imports so it can be tested on its own.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd

from storage.dataset import DatasetStore

SERIES_ALL = "All"
SERIES_OPTIONS: List[str] = [SERIES_ALL, "v1 core", "v1 espace", "v2 espace"]

POOL_COLUMNS = ["snapshotDate", "epochNumber", "chain", "version", "stakerNumber", "totalPOS"]
ROSTER_COLUMNS = ["snapshotDate", "espaceAddr", "posAmount", "abcAmount", "vote"]

# totalPOS counts votes of 1000 CFX; dividing by 10 yields units of 万 (10k) CFX
POS_DISPLAY_DIVISOR = 10


def load_frame(path: str | Path, columns: List[str]) -> pd.DataFrame:
    records = DatasetStore(path).load(quarantine=False)
    df = pd.DataFrame(records)
    if df.empty:
        return pd.DataFrame(columns=columns)
    return df


def correct_core_v1(df: pd.DataFrame) -> pd.DataFrame:
    """
    The v1 core pool total already includes the v1 eSpace pool; subtract the
    same-date eSpace total so series can be summed without double counting.
    """
    if df.empty:
        return df.copy()
    out = df.copy()
    espace_v1 = (
        out[(out["chain"] == "espace") & (out["version"] == "v1")]
        .groupby("snapshotDate")["totalPOS"]
        .sum()
    )
    core_v1 = (out["chain"] == "core") & (out["version"] == "v1")
    out.loc[core_v1, "totalPOS"] = (
        out.loc[core_v1, "totalPOS"] - out.loc[core_v1, "snapshotDate"].map(espace_v1).fillna(0)
    ).astype("int64")
    return out


def pool_chart_frame(df: pd.DataFrame, series: str = SERIES_ALL) -> pd.DataFrame:
    """
    Per-date totals of the selected series, sorted by date.

    Columns: ``stakerNumber``, ``totalPOS`` (in 万), indexed by ``snapshotDate``.
    """
    if df.empty:
        return pd.DataFrame(columns=["stakerNumber", "totalPOS"], index=pd.Index([], name="snapshotDate"))

    sel = correct_core_v1(df)
    if series != SERIES_ALL:
        label = sel["version"].astype(str) + " " + sel["chain"].astype(str)
        sel = sel[label == series]

    agg = sel.groupby("snapshotDate")[["stakerNumber", "totalPOS"]].sum()
    agg = agg.sort_index(key=lambda idx: pd.to_datetime(idx, format="%Y%m%d"))
    agg["totalPOS"] = agg["totalPOS"] / POS_DISPLAY_DIVISOR
    return agg


def roster_table(df: pd.DataFrame, query: str = "") -> pd.DataFrame:
    """Case-insensitive address substring filter, highest vote first."""
    if df.empty:
        return df
    out = df
    q = (query or "").strip().lower()
    if q:
        out = out[out["espaceAddr"].astype(str).str.lower().str.contains(q, regex=False)]
    return out.sort_values("vote", ascending=False, kind="stable").reset_index(drop=True)


def truncate_address(addr: str) -> str:
    if len(addr) <= 8:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"
