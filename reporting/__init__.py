"""Tabular and file exports of a finished weekly schedule."""

from .timetable_export import (
    ImageExportOptions,
    class_timetable_df,
    df_to_markdown,
    df_to_png_bytes,
    location_timetable_df,
    teacher_timetable_df,
    teacher_workload_df,
    weekly_entries_df,
    weekly_reports_workbook_bytes,
    weekly_reports_zip_bytes,
)

__all__ = [
    "ImageExportOptions",
    "class_timetable_df",
    "df_to_markdown",
    "df_to_png_bytes",
    "location_timetable_df",
    "teacher_timetable_df",
    "teacher_workload_df",
    "weekly_entries_df",
    "weekly_reports_workbook_bytes",
    "weekly_reports_zip_bytes",
]
