"""Weekly grid tables (rows = days, columns = hours) for a finished schedule."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Tuple

from .models import ScheduledEntry, SchedulerInput, class_pool


def _empty_table(problem: SchedulerInput) -> List[List[str]]:
    return [["" for _ in range(problem.hours_per_day)] for _ in problem.days]


def _fill(
    problem: SchedulerInput,
    entries: Iterable[ScheduledEntry],
    keep: Callable[[ScheduledEntry], bool],
    label: Callable[[ScheduledEntry], str],
) -> List[List[str]]:
    table = _empty_table(problem)
    day_idx = {d: i for i, d in enumerate(problem.days)}
    for e in entries:
        if not keep(e):
            continue
        row = day_idx.get(e.time_slot.day)
        col = int(e.time_slot.hour) - 1
        if row is None or not (0 <= col < problem.hours_per_day):
            continue
        table[row][col] = label(e)
    return table


def _names(problem: SchedulerInput) -> Tuple[Dict[str, str], Dict[str, str], Dict[str, str]]:
    return (
        {l.id: l.name for l in problem.lessons},
        {t.id: t.name for t in problem.teachers},
        {loc.id: loc.name for loc in problem.locations},
    )


def format_teacher_timetable(problem: SchedulerInput, entries: Iterable[ScheduledEntry], teacher_id: str) -> List[List[str]]:
    """'LESSON @ LOCATION' per cell for one teacher."""

    lessons, _teachers, locations = _names(problem)

    def label(e: ScheduledEntry) -> str:
        # pair the teacher with the location at the same position
        pos = e.teacher_ids.index(teacher_id)
        loc_id = e.location_ids[pos] if pos < len(e.location_ids) else e.location_ids[0]
        return f"{lessons.get(e.lesson_id, e.lesson_id)} @ {locations.get(loc_id, loc_id)}"

    return _fill(problem, entries, lambda e: teacher_id in e.teacher_ids, label)


def format_location_timetable(problem: SchedulerInput, entries: Iterable[ScheduledEntry], location_id: str) -> List[List[str]]:
    """'LESSON (TEACHER)' per cell for one location."""

    lessons, teachers, _locations = _names(problem)

    def label(e: ScheduledEntry) -> str:
        pos = e.location_ids.index(location_id)
        tid = e.teacher_ids[pos] if pos < len(e.teacher_ids) else e.teacher_ids[0]
        return f"{lessons.get(e.lesson_id, e.lesson_id)} ({teachers.get(tid, tid)})"

    return _fill(problem, entries, lambda e: location_id in e.location_ids, label)


def format_class_timetable(
    problem: SchedulerInput,
    entries: Iterable[ScheduledEntry],
    branch_id: str,
    grade_level: int,
) -> List[List[str]]:
    """'LESSON (TEACHER[, TEACHER])' per cell for one class pool."""

    lessons, teachers, _locations = _names(problem)
    pool = class_pool(branch_id, grade_level)

    def label(e: ScheduledEntry) -> str:
        who = ", ".join(teachers.get(t, t) for t in e.teacher_ids)
        return f"{lessons.get(e.lesson_id, e.lesson_id)} ({who})"

    return _fill(problem, entries, lambda e: class_pool(e.branch_id, e.grade_level) == pool, label)


def class_pools(problem: SchedulerInput) -> List[Tuple[str, int]]:
    """Distinct (branch_id, grade_level) classes of the active lessons, in input order."""

    out: List[Tuple[str, int]] = []
    for l in problem.active_lessons:
        key = (l.branch_id, int(l.grade_level))
        if key not in out:
            out.append(key)
    return out

