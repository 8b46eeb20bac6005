from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from core.charts import progress_area_chart, status_bar_chart, to_vega_spec
from core.records import Task, TaskStatus

STATUS_COLORS = {
    "Completed": "#22c55e",
    "In Progress": "#3b82f6",
    "Not Started": "#ef4444",
}

TASK_COLUMNS = ["id", "name", "status", "progress", "assignee"]


@dataclass(frozen=True)
class TaskStats:
    completed: int = 0
    in_progress: int = 0
    not_started: int = 0
    overall: int = 0


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def tasks_frame(tasks: Iterable[Task]) -> pd.DataFrame:
    return pd.DataFrame([t.to_dict() for t in tasks], columns=TASK_COLUMNS)


def compute_task_stats(tasks: Iterable[Task]) -> TaskStats:
    df = tasks_frame(tasks)
    if df.empty:
        return TaskStats()
    counts = df["status"].value_counts()
    progress = pd.to_numeric(df["progress"], errors="coerce").fillna(0)
    return TaskStats(
        completed=int(counts.get(TaskStatus.COMPLETED.value, 0)),
        # In Review is still work in flight.
        in_progress=int(counts.get(TaskStatus.IN_PROGRESS.value, 0) + counts.get(TaskStatus.IN_REVIEW.value, 0)),
        not_started=int(counts.get(TaskStatus.NOT_STARTED.value, 0)),
        overall=int(round_half_up(progress.mean()) or 0),
    )


def status_chart_data(stats: TaskStats) -> List[Dict[str, Any]]:
    return [
        {"name": "Completed", "value": stats.completed, "fill": STATUS_COLORS["Completed"]},
        {"name": "In Progress", "value": stats.in_progress, "fill": STATUS_COLORS["In Progress"]},
        {"name": "Not Started", "value": stats.not_started, "fill": STATUS_COLORS["Not Started"]},
    ]


def progress_chart_data(stats: TaskStats) -> List[Dict[str, Any]]:
    return [
        {
            "name": "Tasks",
            "completed": stats.completed,
            "inProgress": stats.in_progress,
            "notStarted": stats.not_started,
        }
    ]


def compute_dashboard(controller) -> Dict[str, Any]:
    tasks = list(controller.view())
    stats = compute_task_stats(controller.records)
    status_rows = status_chart_data(stats)
    progress_rows = progress_chart_data(stats)
    draft = controller.draft
    return {
        "source": controller.source,
        "loading": controller.loading,
        "stats": asdict(stats),
        "tasks": [t.to_dict() for t in tasks],
        "editing": draft.to_dict() if draft is not None else None,
        "charts": {
            "status": to_vega_spec(status_bar_chart(status_rows)),
            "progress": to_vega_spec(progress_area_chart(progress_rows)),
        },
        "status_chart_data": status_rows,
        "progress_chart_data": progress_rows,
    }
