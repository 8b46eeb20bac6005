from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def status_bar_chart(rows: List[Dict[str, Any]]) -> alt.Chart:
    """Tasks by status, one bar per bucket coloured with the row's ``fill``."""
    df = pd.DataFrame(rows, columns=["name", "value", "fill"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("name:N", title=None, sort=None),
            y=alt.Y("value:Q", title="Tasks"),
            color=alt.Color("fill:N", scale=None, legend=None),
            tooltip=["name", "value"],
        )
        .properties(title="Tasks by Status")
    )


def progress_area_chart(rows: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(rows)
    long = df.melt(id_vars=["name"], var_name="bucket", value_name="count") if not df.empty else pd.DataFrame(columns=["name", "bucket", "count"])
    return (
        alt.Chart(long)
        .mark_area()
        .encode(
            x=alt.X("name:N", title=None),
            y=alt.Y("count:Q", stack="zero", title="Tasks"),
            color=alt.Color(
                "bucket:N",
                scale=alt.Scale(
                    domain=["completed", "inProgress", "notStarted"],
                    range=["#22c55e", "#3b82f6", "#ef4444"],
                ),
            ),
        )
        .properties(title="Progress Overview")
    )
