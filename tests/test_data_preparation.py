from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scheduling.data_preparation import (
    SchedulerInputError,
    build_required_assignments,
    load_scheduler_input_from_json,
    map_unavailability,
    prepare_scheduler_input,
)
from scheduling.models import TimeSlot


def _raw() -> dict:
    return {
        "hours_per_day": 6,
        "branches": {"MATH": "TB-MATH"},
        "teachers": [
            {"id": "T1", "name": "A", "branch_id": "TB-MATH", "unavailability": [{"day_of_week": 2, "start_period": 5, "end_period": 9}]},
            {"id": "T2", "name": "B", "branch_id": "TB-MATH"},
            {"id": "T3", "name": "C", "branch_id": "TB-MATH", "is_active": False},
            {"id": "T4", "name": "D", "branch_id": "TB-ART"},
        ],
        "locations": [
            {"id": "R1", "name": "Room 1", "capacity": 30},
            {"id": "R2", "name": "Hall", "capacity": 100, "schedulable": False},
        ],
        "lessons": [
            {"id": "L1", "name": "Algebra", "branch_id": "MATH", "grade_level": 10, "weekly_hours": 4, "divisible": True},
            {"id": "L2", "name": "Geometry", "branch_id": "MATH", "grade_level": 10, "weekly_hours": 2},
            {"id": "L3", "name": "Drawing", "branch_id": "ART", "grade_level": 10, "weekly_hours": 2, "eligible_teacher_ids": ["T4"]},
        ],
        "assignments": [
            {"teacher_id": "T2", "lesson_id": "L2", "assignment": "required"},
            {"teacher_id": "T2", "lesson_id": "L1", "assignment": "excluded"},
        ],
    }


def test_unavailability_ranges_are_expanded_and_clipped() -> None:
    slots = map_unavailability([{"day_of_week": 1, "start_period": 9, "end_period": 12}, {"day_of_week": 7}], hours_per_day=10)
    assert slots == frozenset({TimeSlot("Monday", 9), TimeSlot("Monday", 10)})


def test_required_assignments_are_indexed_by_teacher() -> None:
    required = build_required_assignments(
        [
            {"teacher_id": "T1", "lesson_id": "L1", "assignment": "required"},
            {"teacher_id": "T1", "lesson_id": "L2", "assignment": "REQUIRED"},
            {"teacher_id": "T2", "lesson_id": "L1", "assignment": "excluded"},
        ]
    )
    assert required == {"T1": frozenset({"L1", "L2"})}


def test_prepare_resolves_eligible_teachers() -> None:
    problem = prepare_scheduler_input(_raw())
    lessons = {l.id: l for l in problem.lessons}

    assert [t.id for t in problem.teachers] == ["T1", "T2", "T4"]
    assert [loc.id for loc in problem.locations] == ["R1"]
    # excluded teacher removed from the branch pool
    assert lessons["L1"].eligible_teacher_ids == ("T1",)
    # required teacher wins over the branch pool
    assert lessons["L2"].eligible_teacher_ids == ("T2",)
    assert lessons["L3"].eligible_teacher_ids == ("T4",)
    assert problem.is_required("T2", "L2")
    assert problem.hours_per_day == 6
    assert len(problem.time_slots) == 30
    t1 = [t for t in problem.teachers if t.id == "T1"][0]
    assert t1.unavailable_slots == frozenset({TimeSlot("Tuesday", 5), TimeSlot("Tuesday", 6)})


def test_prepare_rejects_bad_records() -> None:
    raw = _raw()
    raw["lessons"].append(dict(raw["lessons"][0]))
    with pytest.raises(SchedulerInputError):
        prepare_scheduler_input(raw)

    raw = _raw()
    del raw["lessons"][0]["weekly_hours"]
    with pytest.raises(SchedulerInputError):
        prepare_scheduler_input(raw)

    raw = _raw()
    raw["hours_per_day"] = -1
    with pytest.raises(ValueError):
        prepare_scheduler_input(raw)


def test_load_from_json_file(tmp_path) -> None:
    path = tmp_path / "input.json"
    path.write_text(json.dumps(_raw()), encoding="utf-8")

    problem = load_scheduler_input_from_json(str(path))

    assert {l.id for l in problem.active_lessons} == {"L1", "L2", "L3"}
