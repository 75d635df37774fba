"""Availability predicates and the contiguous block finder.

All functions are pure with respect to the given `Schedule`: they read its
indices and never mutate it.
"""

from __future__ import annotations

from typing import Callable, Collection, List, Optional, Sequence

from .models import Lesson, Location, Schedule, Teacher, TimeSlot, class_pool


LogFn = Callable[[str], None]


def teacher_free(schedule: Schedule, teacher: Teacher, slot: TimeSlot) -> bool:
    if slot in teacher.unavailable_slots:
        return False
    return (teacher.id, slot) not in schedule.by_teacher


def location_free(schedule: Schedule, location: Location, slot: TimeSlot) -> bool:
    return (location.id, slot) not in schedule.by_location


def class_free(schedule: Schedule, branch_id: str, grade_level: int, slot: TimeSlot) -> bool:
    # Grade 9 is a single pool across branches (see models.class_pool).
    return (class_pool(branch_id, grade_level), slot) not in schedule.by_class


def location_suitable(lesson: Lesson, location: Location) -> bool:
    if not lesson.eligible_lab_types:
        return location.lab_type is None
    return location.lab_type is not None and location.lab_type in lesson.eligible_lab_types


def first_part_day(schedule: Schedule, lesson_id: str) -> Optional[str]:
    entries = schedule.by_lesson.get(lesson_id)
    if not entries:
        return None
    return entries[0].time_slot.day


def find_block(
    schedule: Schedule,
    lesson: Lesson,
    teachers: Sequence[Teacher],
    locations: Sequence[Location],
    start_slot: TimeSlot,
    duration: int,
    *,
    hours_per_day: int,
    valid_slots: Optional[Collection[TimeSlot]] = None,
    second_half_must_differ_day: bool = False,
    log: Optional[LogFn] = None,
) -> Optional[List[TimeSlot]]:
    """Return the `duration` consecutive slots starting at `start_slot`.

    Every hour must be free for every teacher, every location and the
    lesson's class pool. Returns None as soon as one check fails.
    """

    if second_half_must_differ_day:
        day = first_part_day(schedule, lesson.id)
        if day is not None and day == start_slot.day:
            if log:
                log(f"[DiffDay FAIL {start_slot.key}] second half of {lesson.name} cannot share day {day}")
            return None

    block: List[TimeSlot] = []
    for i in range(int(duration)):
        hour = start_slot.hour + i
        if hour > hours_per_day:
            if log:
                log(f"[Block FAIL {start_slot.key} dur={duration}] hour {hour} exceeds {hours_per_day}")
            return None
        slot = TimeSlot(day=start_slot.day, hour=hour)
        if valid_slots is not None and slot not in valid_slots:
            return None

        for t in teachers:
            if not teacher_free(schedule, t, slot):
                if log:
                    log(f"[Block FAIL {slot.key}] teacher {t.name} unavailable for {lesson.name}")
                return None
        for loc in locations:
            if not location_free(schedule, loc, slot):
                if log:
                    log(f"[Block FAIL {slot.key}] location {loc.name} busy for {lesson.name}")
                return None
        if not class_free(schedule, lesson.branch_id, lesson.grade_level, slot):
            if log:
                log(f"[Block FAIL {slot.key}] class {lesson.branch_id}/{lesson.grade_level} busy for {lesson.name}")
            return None

        block.append(slot)
    return block
