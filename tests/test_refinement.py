from __future__ import annotations

import random
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scheduling.config import SchedulerConfig
from scheduling.fitness import total_gap_hours
from scheduling.models import Lesson, Location, ScheduledEntry, SchedulerInput, Teacher, TimeSlot, generate_time_slots
from scheduling.refinement import BlockMover, lesson_blocks, refine_schedule


DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


def _e(lesson: str, day: str, hour: int, teacher: str = "T1", room: str = "R1") -> ScheduledEntry:
    return ScheduledEntry(lesson, (teacher,), (room,), TimeSlot(day, hour), "B1", 10)


def _problem(lessons, teachers=None) -> SchedulerInput:
    return SchedulerInput(
        lessons=tuple(lessons),
        teachers=tuple(teachers or [Teacher("T1", "A")]),
        locations=(Location("R1", "Room 1"), Location("R2", "Room 2")),
        time_slots=generate_time_slots(DAYS, 6),
    )


def test_lesson_blocks_split_on_day_and_gaps() -> None:
    entries = [_e("L1", "Monday", 1), _e("L1", "Monday", 2), _e("L1", "Monday", 4), _e("L1", "Tuesday", 1)]
    blocks = lesson_blocks(entries)
    assert sorted(len(b) for b in blocks) == [1, 1, 2]


def test_move_rejects_teacher_clash_and_unavailability() -> None:
    wednesday = frozenset(TimeSlot("Wednesday", h) for h in range(1, 7))
    problem = _problem(
        [Lesson("L1", "Math", "B1", 10, 2), Lesson("L2", "Physics", "B2", 10, 1)],
        [Teacher("T1", "A", unavailable_slots=wednesday)],
    )
    other = ScheduledEntry("L2", ("T1",), ("R2",), TimeSlot("Tuesday", 2), "B2", 10)
    state = (_e("L1", "Monday", 1), _e("L1", "Monday", 2), other)
    block = lesson_blocks(state[:2])[0]
    mover = BlockMover(problem)

    assert mover.try_move(state, block, "Tuesday", 1) is None
    assert mover.try_move(state, block, "Wednesday", 1) is None
    assert mover.try_move(state, block, "Monday", 6) is None  # runs past the last hour
    moved = mover.try_move(state, block, "Thursday", 3)
    assert moved is not None
    assert sorted(e.time_slot.hour for e in moved if e.lesson_id == "L1" and e.time_slot.day == "Thursday") == [3, 4]


def test_move_keeps_long_lesson_halves_on_different_days() -> None:
    problem = _problem([Lesson("L1", "Math", "B1", 10, 6, divisible=True)])
    state = tuple(_e("L1", "Monday", h) for h in (1, 2, 3)) + tuple(_e("L1", "Tuesday", h) for h in (1, 2, 3))
    tuesday = [b for b in lesson_blocks(state) if b[0].time_slot.day == "Tuesday"][0]
    mover = BlockMover(problem)

    assert mover.try_move(state, tuesday, "Monday", 4) is None
    assert mover.try_move(state, tuesday, "Wednesday", 2) is not None


def test_refine_with_zero_steps_returns_input() -> None:
    problem = _problem([Lesson("L1", "Math", "B1", 10, 1)])
    entries = [_e("L1", "Monday", 1)]

    result = refine_schedule(problem, entries, SchedulerConfig(refine_steps=0))

    assert result.entries == entries
    assert not result.improved
    assert result.total_steps == 0


def test_refine_closes_gaps() -> None:
    problem = _problem([Lesson("L1", "Math", "B1", 10, 2), Lesson("L2", "Physics", "B1", 10, 1)])
    entries = [_e("L1", "Monday", 1), _e("L1", "Monday", 2), _e("L2", "Monday", 5)]

    result = refine_schedule(problem, entries, SchedulerConfig(refine_steps=2000, seed=1), rng=random.Random(1))

    assert result.improved
    assert result.breakdown.score < result.initial_breakdown.score
    assert len(result.entries) == 3
    assert total_gap_hours(result.entries) <= total_gap_hours(entries)
