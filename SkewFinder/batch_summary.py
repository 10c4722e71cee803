"""
Tabular summary of a batch result (one row per record).
"""

from typing import Dict, Optional

import pandas as pd

from SkewFinder.batch_dispatcher import BatchResult
from SkewFinder.errors import PipelineError
from SkewFinder.skew_engine import skew_extremes

SUMMARY_COLUMNS = [
    "Name", "Status", "Length", "Min_Skew", "Min_Position",
    "Max_Skew", "Max_Position", "Final_Skew", "Error_Kind", "Error",
]


def summarize_batch(results: BatchResult, order: Optional[Dict[str, int]] = None) -> pd.DataFrame:
    """
    Build a DataFrame describing every record of a batch.

    Args:
        results: Output of BatchDispatcher.submit / run_serial
        order: Optional name -> position map to sort rows (default: by name)

    Returns:
        DataFrame with SUMMARY_COLUMNS; failed records have NA numeric fields
    """
    rows = []
    for name, outcome in results.items():
        if isinstance(outcome, PipelineError):
            rows.append({
                "Name": name, "Status": "error",
                "Error_Kind": outcome.kind, "Error": str(outcome.cause),
            })
            continue
        extremes = skew_extremes(outcome)
        rows.append({
            "Name": name,
            "Status": "ok",
            "Length": len(outcome) - 1,
            "Min_Skew": extremes['min_skew'],
            "Min_Position": extremes['min_position'],
            "Max_Skew": extremes['max_skew'],
            "Max_Position": extremes['max_position'],
            "Final_Skew": outcome[-1],
        })

    df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    for col in ("Length", "Min_Skew", "Min_Position", "Max_Skew", "Max_Position", "Final_Skew"):
        df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")

    if order is not None:
        df = df.assign(_order=df["Name"].map(order)).sort_values("_order").drop(columns="_order")
    else:
        df = df.sort_values("Name")
    return df.reset_index(drop=True)
