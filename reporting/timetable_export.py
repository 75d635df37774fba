from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from scheduling.fitness import day_gap_hours, teacher_day_hours
from scheduling.formatting import (
    class_pools,
    format_class_timetable,
    format_location_timetable,
    format_teacher_timetable,
)
from scheduling.models import ScheduledEntry, SchedulerInput


def _safe_sheet_name(name: str) -> str:
    """Excel sheet names: max 31 chars, cannot contain: `: \\ / ? * [ ]`."""

    bad = [":", "\\", "/", "?", "*", "[", "]"]
    out = str(name or "Sheet")
    for b in bad:
        out = out.replace(b, "-")
    out = out.strip() or "Sheet"
    return out[:31]


def _timetable_df_from_table(*, day_names: Sequence[str], table: List[List[str]]) -> pd.DataFrame:
    """Convert a (days x hours) table into a spreadsheet-style DataFrame."""

    hours = len(table[0]) if table else 0
    df = pd.DataFrame(table, columns=[str(h) for h in range(1, hours + 1)])
    df.insert(0, "DAY", list(day_names))
    return df


def teacher_timetable_df(*, problem: SchedulerInput, entries: Iterable[ScheduledEntry], teacher_id: str) -> pd.DataFrame:
    table = format_teacher_timetable(problem, list(entries), teacher_id)
    return _timetable_df_from_table(day_names=problem.days, table=table)


def location_timetable_df(*, problem: SchedulerInput, entries: Iterable[ScheduledEntry], location_id: str) -> pd.DataFrame:
    table = format_location_timetable(problem, list(entries), location_id)
    return _timetable_df_from_table(day_names=problem.days, table=table)


def class_timetable_df(
    *,
    problem: SchedulerInput,
    entries: Iterable[ScheduledEntry],
    branch_id: str,
    grade_level: int,
) -> pd.DataFrame:
    table = format_class_timetable(problem, list(entries), branch_id, grade_level)
    return _timetable_df_from_table(day_names=problem.days, table=table)


def teacher_workload_df(
    *,
    problem: SchedulerInput,
    entries: Iterable[ScheduledEntry],
    min_lessons_per_day: int = 4,
) -> pd.DataFrame:
    """One row per teacher: weekly hours, working/free days, idle gaps, short days."""

    by_teacher = teacher_day_hours(entries)
    n_days = len(problem.days)
    rows = []
    for t in problem.teachers:
        days = by_teacher.get(t.id, {})
        rows.append(
            {
                "teacher_id": t.id,
                "name": t.name,
                "hours": sum(len(h) for h in days.values()),
                "working_days": len(days),
                "free_days": n_days - len(days),
                "gap_hours": sum(day_gap_hours(h) for h in days.values()),
                "short_days": sum(1 for h in days.values() if 0 < len(h) < int(min_lessons_per_day)),
            }
        )
    out = pd.DataFrame(rows)
    if out.empty:
        return out
    return out.sort_values(["hours", "teacher_id"], ascending=[False, True]).reset_index(drop=True)


def weekly_entries_df(*, problem: SchedulerInput, entries: Iterable[ScheduledEntry]) -> pd.DataFrame:
    lessons = {l.id: l.name for l in problem.lessons}
    day_order = {d: i for i, d in enumerate(problem.days)}
    rows = []
    for e in sorted(entries, key=lambda x: (day_order.get(x.time_slot.day, 99), x.time_slot.hour, x.lesson_id)):
        rows.append(
            {
                "day": e.time_slot.day,
                "hour": e.time_slot.hour,
                "lesson_id": e.lesson_id,
                "lesson_name": lessons.get(e.lesson_id, e.lesson_id),
                "branch_id": e.branch_id,
                "grade_level": e.grade_level,
                "teacher_ids": ",".join(e.teacher_ids),
                "location_ids": ",".join(e.location_ids),
            }
        )
    return pd.DataFrame(rows)


def weekly_reports_workbook_bytes(
    *,
    problem: SchedulerInput,
    entries: Sequence[ScheduledEntry],
    min_lessons_per_day: int = 4,
) -> bytes:
    """Multi-sheet Excel workbook: workload, entries, one sheet per class/teacher/location."""

    # Pandas uses openpyxl to write .xlsx by default.
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        teacher_workload_df(problem=problem, entries=entries, min_lessons_per_day=min_lessons_per_day).to_excel(
            writer, sheet_name=_safe_sheet_name("Teacher Workload"), index=False
        )
        weekly_entries_df(problem=problem, entries=entries).to_excel(
            writer, sheet_name=_safe_sheet_name("Entries"), index=False
        )
        for branch_id, grade in class_pools(problem):
            df = class_timetable_df(problem=problem, entries=entries, branch_id=branch_id, grade_level=grade)
            df.to_excel(writer, sheet_name=_safe_sheet_name(f"Class-{branch_id}-{grade}"), index=False)
        for t in sorted(problem.teachers, key=lambda x: x.id):
            df = teacher_timetable_df(problem=problem, entries=entries, teacher_id=t.id)
            df.to_excel(writer, sheet_name=_safe_sheet_name(f"Teacher-{t.id}"), index=False)
        for loc in sorted(problem.locations, key=lambda x: x.id):
            df = location_timetable_df(problem=problem, entries=entries, location_id=loc.id)
            df.to_excel(writer, sheet_name=_safe_sheet_name(f"Location-{loc.id}"), index=False)
    return out.getvalue()


def weekly_reports_zip_bytes(
    *,
    problem: SchedulerInput,
    entries: Sequence[ScheduledEntry],
    min_lessons_per_day: int = 4,
    include_workbook: bool = True,
) -> bytes:
    """ZIP with the workbook plus every table and timetable as CSV."""

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as z:
        if include_workbook:
            z.writestr(
                "weekly_reports.xlsx",
                weekly_reports_workbook_bytes(problem=problem, entries=entries, min_lessons_per_day=min_lessons_per_day),
            )
        z.writestr(
            "tables/teacher_workload.csv",
            teacher_workload_df(problem=problem, entries=entries, min_lessons_per_day=min_lessons_per_day)
            .to_csv(index=False)
            .encode("utf-8"),
        )
        z.writestr("tables/entries.csv", weekly_entries_df(problem=problem, entries=entries).to_csv(index=False).encode("utf-8"))

        for branch_id, grade in class_pools(problem):
            df = class_timetable_df(problem=problem, entries=entries, branch_id=branch_id, grade_level=grade)
            z.writestr(f"timetables/classes/{branch_id}-{grade}.csv", df.to_csv(index=False).encode("utf-8"))
        for t in problem.teachers:
            df = teacher_timetable_df(problem=problem, entries=entries, teacher_id=t.id)
            z.writestr(f"timetables/teachers/{t.id}.csv", df.to_csv(index=False).encode("utf-8"))
        for loc in problem.locations:
            df = location_timetable_df(problem=problem, entries=entries, location_id=loc.id)
            z.writestr(f"timetables/locations/{loc.id}.csv", df.to_csv(index=False).encode("utf-8"))

    return buf.getvalue()


@dataclass(frozen=True)
class ImageExportOptions:
    title: Optional[str] = None
    font_size: int = 10
    cell_height: float = 0.35
    cell_width: float = 1.6


def df_to_markdown(df: pd.DataFrame) -> str:
    """Convert DataFrame to a GitHub-flavored Markdown table."""

    # pandas to_markdown needs tabulate; a tiny renderer avoids the extra dependency.
    cols = list(df.columns)
    rows = df.astype(str).values.tolist()

    def esc(s: str) -> str:
        return str(s).replace("\n", " ").replace("|", "\\|")

    header = "| " + " | ".join(esc(c) for c in cols) + " |"
    sep = "| " + " | ".join(["---"] * len(cols)) + " |"
    body = ["| " + " | ".join(esc(v) for v in r) + " |" for r in rows]
    return "\n".join([header, sep] + body) + "\n"


def df_to_png_bytes(df: pd.DataFrame, *, options: ImageExportOptions = ImageExportOptions()) -> bytes:
    """Render a weekly grid DataFrame as a PNG image (matplotlib table artist)."""

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    nrows, ncols = df.shape
    fig_w = max(6.0, float(options.cell_width) * (ncols + 1))
    fig_h = max(2.0, float(options.cell_height) * (nrows + 2))

    fig, ax = plt.subplots(figsize=(fig_w, fig_h))
    ax.axis("off")
    if options.title:
        ax.set_title(options.title, fontsize=options.font_size + 2, pad=12)

    tbl = ax.table(cellText=df.values, colLabels=list(df.columns), cellLoc="center", loc="center")
    tbl.auto_set_font_size(False)
    tbl.set_fontsize(options.font_size)
    tbl.scale(1.0, 1.4)

    for (r, _c), cell in tbl.get_celld().items():
        cell.set_linewidth(0.6)
        if r == 0:
            cell.set_facecolor("#f0f2f6")
            cell.set_text_props(weight="bold")

    buf = io.BytesIO()
    fig.tight_layout()
    fig.savefig(buf, format="png", dpi=200, bbox_inches="tight")
    plt.close(fig)
    return buf.getvalue()
