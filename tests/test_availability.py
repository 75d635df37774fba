from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scheduling.availability import class_free, find_block, location_free, location_suitable, teacher_free
from scheduling.models import Lesson, Location, Schedule, ScheduledEntry, Teacher, TimeSlot


def _entry(lesson_id: str, teacher: str, location: str, day: str, hour: int, branch: str = "B1", grade: int = 10):
    return ScheduledEntry(
        lesson_id=lesson_id,
        teacher_ids=(teacher,),
        location_ids=(location,),
        time_slot=TimeSlot(day, hour),
        branch_id=branch,
        grade_level=grade,
    )


def test_teacher_free_respects_unavailability_and_bookings() -> None:
    t = Teacher(id="T1", name="A", unavailable_slots=frozenset({TimeSlot("Monday", 1)}))
    schedule = Schedule([_entry("L1", "T1", "R1", "Monday", 2)])

    assert not teacher_free(schedule, t, TimeSlot("Monday", 1))
    assert not teacher_free(schedule, t, TimeSlot("Monday", 2))
    assert teacher_free(schedule, t, TimeSlot("Monday", 3))


def test_location_free_checks_index() -> None:
    schedule = Schedule([_entry("L1", "T1", "R1", "Tuesday", 4)])
    assert not location_free(schedule, Location("R1", "Room 1"), TimeSlot("Tuesday", 4))
    assert location_free(schedule, Location("R2", "Room 2"), TimeSlot("Tuesday", 4))


def test_grade_nine_classes_share_one_pool() -> None:
    schedule = Schedule([_entry("L1", "T1", "R1", "Monday", 1, branch="B1", grade=9)])

    # any branch at grade 9 collides
    assert not class_free(schedule, "B2", 9, TimeSlot("Monday", 1))
    # other grades are separated by branch
    assert class_free(schedule, "B2", 10, TimeSlot("Monday", 1))
    assert class_free(schedule, "B1", 10, TimeSlot("Monday", 1))


def test_schedule_add_rejects_double_booking() -> None:
    schedule = Schedule([_entry("L1", "T1", "R1", "Monday", 1)])
    with pytest.raises(ValueError):
        schedule.add(_entry("L2", "T1", "R2", "Monday", 1, branch="B2"))
    with pytest.raises(ValueError):
        schedule.add(_entry("L2", "T2", "R1", "Monday", 1, branch="B2"))
    with pytest.raises(ValueError):
        schedule.add(_entry("L2", "T2", "R2", "Monday", 1))


def test_schedule_remove_keeps_indices_in_sync() -> None:
    e = _entry("L1", "T1", "R1", "Monday", 1)
    schedule = Schedule([e])
    schedule.remove(e)

    assert len(schedule) == 0
    assert not schedule.by_teacher and not schedule.by_location and not schedule.by_class
    assert schedule.lesson_entries("L1") == []


def test_location_suitability_by_lab_type() -> None:
    theory = Lesson("L1", "Math", "B1", 10, 2)
    lab = Lesson("L2", "Chem", "B1", 10, 2, eligible_lab_types=frozenset({"chem"}))
    room = Location("R1", "Room")
    chem_lab = Location("C1", "Chem Lab", lab_type="chem")
    bio_lab = Location("B1", "Bio Lab", lab_type="bio")

    assert location_suitable(theory, room)
    assert not location_suitable(theory, chem_lab)
    assert location_suitable(lab, chem_lab)
    assert not location_suitable(lab, bio_lab)
    assert not location_suitable(lab, room)


def test_find_block_requires_contiguous_free_hours() -> None:
    lesson = Lesson("L1", "Math", "B1", 10, 3)
    t = Teacher("T1", "A")
    room = Location("R1", "Room")
    schedule = Schedule([_entry("LX", "T1", "R9", "Monday", 3, branch="B2")])

    assert find_block(schedule, lesson, [t], [room], TimeSlot("Monday", 1), 3, hours_per_day=8) is None
    assert find_block(schedule, lesson, [t], [room], TimeSlot("Monday", 4), 3, hours_per_day=8) == [
        TimeSlot("Monday", 4),
        TimeSlot("Monday", 5),
        TimeSlot("Monday", 6),
    ]


def test_find_block_cannot_run_past_end_of_day() -> None:
    lesson = Lesson("L1", "Math", "B1", 10, 3)
    logs = []
    block = find_block(
        Schedule(), lesson, [Teacher("T1", "A")], [Location("R1", "Room")], TimeSlot("Monday", 7), 3,
        hours_per_day=8, log=logs.append,
    )
    assert block is None
    assert any("exceeds" in line for line in logs)


def test_find_block_second_half_must_use_another_day() -> None:
    lesson = Lesson("L1", "Math", "B1", 10, 6, divisible=True)
    t = Teacher("T1", "A")
    room = Location("R1", "Room")
    schedule = Schedule([_entry("L1", "T1", "R1", "Monday", h) for h in (1, 2, 3)])

    kwargs = dict(hours_per_day=8, second_half_must_differ_day=True)
    assert find_block(schedule, lesson, [t], [room], TimeSlot("Monday", 5), 3, **kwargs) is None
    assert find_block(schedule, lesson, [t], [room], TimeSlot("Tuesday", 1), 3, **kwargs) is not None


def test_schedule_add_rejects_entry_repeating_a_resource() -> None:
    e = ScheduledEntry("L1", ("T1", "T1"), ("C1", "C2"), TimeSlot("Monday", 1), "B1", 10)
    with pytest.raises(ValueError):
        Schedule().add(e)
