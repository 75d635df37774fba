"""Build a `SchedulerInput` from raw records (e.g. rows exported from the DB).

Raw JSON layout (all keys snake_case)::

    {
      "hours_per_day": 10,
      "days": ["Monday", ...],                       # optional
      "branches": {"<class branch id>": "<teacher branch id>"},
      "teachers": [{"id", "name", "branch_id", "is_active",
                    "unavailability": [{"day_of_week": 1, "start_period": 1, "end_period": 3}]}],
      "locations": [{"id", "name", "lab_type_id", "capacity", "schedulable"}],
      "lessons": [{"id", "name", "branch_id", "grade_level", "weekly_hours",
                   "divisible", "dual_resource", "lab_type_ids", "active",
                   "eligible_teacher_ids"}],             # last key optional
      "assignments": [{"teacher_id", "lesson_id", "assignment": "required" | "excluded"}]
    }

Eligible teachers of a lesson are resolved like this:
1. if any teacher has a `required` assignment for it, only those teachers
2. else an explicit `eligible_teacher_ids` list, when present
3. else every active teacher of the lesson's subject branch (via `branches`)
   minus teachers with an `excluded` assignment
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

import json
import logging

from .models import (
    DAYS_OF_WEEK,
    DEFAULT_HOURS_PER_DAY,
    Lesson,
    Location,
    SchedulerInput,
    Teacher,
    TimeSlot,
    generate_time_slots,
)


logger = logging.getLogger(__name__)


class SchedulerInputError(ValueError):
    """Raw scheduling data is incomplete or inconsistent."""


def _require(record: Mapping[str, Any], key: str, kind: str) -> Any:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise SchedulerInputError(f"{kind} record is missing '{key}': {dict(record)}")
    return value


def map_unavailability(
    ranges: Iterable[Mapping[str, Any]],
    days: Tuple[str, ...] = DAYS_OF_WEEK,
    hours_per_day: int = DEFAULT_HOURS_PER_DAY,
) -> FrozenSet[TimeSlot]:
    """Expand {day_of_week (1 = first day), start_period, end_period} ranges.

    Ranges outside the grid are clipped; unknown days are ignored.
    """

    slots: Set[TimeSlot] = set()
    for r in ranges or []:
        idx = int(r.get("day_of_week", 0)) - 1
        if idx < 0 or idx >= len(days):
            continue
        start = int(r.get("start_period", 1))
        end = int(r.get("end_period", start))
        for hour in range(max(1, start), min(int(hours_per_day), end) + 1):
            slots.add(TimeSlot(day=days[idx], hour=hour))
    return frozenset(slots)


def _assignments_by_lesson(assignments: Iterable[Mapping[str, Any]]) -> Dict[str, Dict[str, List[str]]]:
    out: Dict[str, Dict[str, List[str]]] = {}
    for a in assignments or []:
        lesson_id = a.get("lesson_id")
        teacher_id = a.get("teacher_id")
        kind = str(a.get("assignment") or "").lower()
        if not lesson_id or not teacher_id or kind not in {"required", "excluded"}:
            continue
        bucket = out.setdefault(str(lesson_id), {"required": [], "excluded": []})
        bucket[kind].append(str(teacher_id))
    return out


def build_required_assignments(assignments: Iterable[Mapping[str, Any]]) -> Dict[str, FrozenSet[str]]:
    required: Dict[str, Set[str]] = {}
    for lesson_id, bucket in _assignments_by_lesson(assignments).items():
        for teacher_id in bucket["required"]:
            required.setdefault(teacher_id, set()).add(lesson_id)
    return {tid: frozenset(ids) for tid, ids in required.items()}


def prepare_scheduler_input(raw: Mapping[str, Any]) -> SchedulerInput:
    hours_per_day = int(raw.get("hours_per_day") or DEFAULT_HOURS_PER_DAY)
    days = tuple(raw.get("days") or DAYS_OF_WEEK)
    if hours_per_day < 1:
        raise SchedulerInputError("hours_per_day must be >= 1")

    teacher_rows = [t for t in (raw.get("teachers") or []) if t.get("is_active", True)]
    teachers = tuple(
        Teacher(
            id=str(_require(t, "id", "Teacher")),
            name=str(t.get("name") or t["id"]),
            unavailable_slots=map_unavailability(t.get("unavailability") or [], days, hours_per_day),
        )
        for t in teacher_rows
    )
    teacher_branch = {str(t["id"]): t.get("branch_id") for t in teacher_rows}
    logger.info("Active teachers: %d of %d", len(teachers), len(raw.get("teachers") or []))

    locations = tuple(
        Location(
            id=str(_require(loc, "id", "Location")),
            name=str(loc.get("name") or loc["id"]),
            lab_type=loc.get("lab_type_id"),
            capacity=loc.get("capacity", 0),
        )
        for loc in (raw.get("locations") or [])
        if loc.get("schedulable", True)
    )

    assignments = raw.get("assignments") or []
    by_lesson = _assignments_by_lesson(assignments)
    branch_map: Mapping[str, Optional[str]] = raw.get("branches") or {}
    known_teachers = {t.id for t in teachers}

    lessons: List[Lesson] = []
    for row in raw.get("lessons") or []:
        lesson_id = str(_require(row, "id", "Lesson"))
        weekly_hours = int(_require(row, "weekly_hours", "Lesson"))
        if weekly_hours < 1:
            raise SchedulerInputError(f"Lesson {lesson_id} must have weekly_hours >= 1")
        branch_id = str(_require(row, "branch_id", "Lesson"))

        bucket = by_lesson.get(lesson_id, {"required": [], "excluded": []})
        if bucket["required"]:
            eligible = list(bucket["required"])
        elif row.get("eligible_teacher_ids") is not None:
            eligible = [str(x) for x in row["eligible_teacher_ids"]]
        else:
            subject_branch = branch_map.get(branch_id)
            eligible = [
                tid
                for tid, b in teacher_branch.items()
                if subject_branch is not None and b == subject_branch and tid not in bucket["excluded"]
            ]
        eligible = [tid for tid in dict.fromkeys(eligible) if tid in known_teachers]
        if not eligible:
            logger.warning("No eligible teachers for lesson %s (%s)", row.get("name"), lesson_id)

        lessons.append(
            Lesson(
                id=lesson_id,
                name=str(row.get("name") or lesson_id),
                branch_id=branch_id,
                grade_level=int(_require(row, "grade_level", "Lesson")),
                weekly_hours=weekly_hours,
                divisible=bool(row.get("divisible", False)),
                dual_resource=bool(row.get("dual_resource", False)),
                eligible_lab_types=frozenset(str(x) for x in (row.get("lab_type_ids") or [])),
                eligible_teacher_ids=tuple(eligible),
                active=bool(row.get("active", True)),
            )
        )

    ids = [l.id for l in lessons]
    if len(ids) != len(set(ids)):
        raise SchedulerInputError("Lesson ids must be unique")

    return SchedulerInput(
        lessons=tuple(lessons),
        teachers=teachers,
        locations=locations,
        time_slots=generate_time_slots(days, hours_per_day),
        required_assignments=build_required_assignments(assignments),
    )


def load_scheduler_input_from_json(path: str) -> SchedulerInput:
    """Load raw records from a JSON file and prepare a `SchedulerInput`."""

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return prepare_scheduler_input(raw)
