"""Attempt-local search state shared by the solver and its helpers.

One `SearchContext` is created per attempt and passed by reference into the
solver, the block finder and the dual-resource assignment. Nothing in here is
module-global, so attempts can run in separate processes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import math
import random
import time

from .models import Lesson, Location, Schedule, ScheduledEntry, SchedulerInput, Teacher, TimeSlot
from .availability import location_suitable


@dataclass(frozen=True)
class Placement:
    """One committed block: `hours` consecutive entries of a single lesson."""

    lesson: Lesson
    entries: Tuple[ScheduledEntry, ...]

    @property
    def hours(self) -> int:
        return len(self.entries)

    def describe(self) -> str:
        first = self.entries[0]
        return (
            f"{self.lesson.name} {first.time_slot.key} dur={self.hours} "
            f"T={','.join(first.teacher_ids)} L={','.join(first.location_ids)}"
        )


# ----------------------------
# Chunking rules
# ----------------------------


def chunk_durations(lesson: Lesson, remaining: int) -> Tuple[int, ...]:
    """Legal block sizes for the next part of `lesson` given its remaining hours.

    - non-divisible: the whole remainder as one block
    - divisible, more than 3 hours: two halves, ceil(h/2) first then floor(h/2)
    - divisible, up to 3 hours: 3, 2, then 1 hour blocks
    """

    remaining = int(remaining)
    total = int(lesson.weekly_hours)
    if remaining <= 0:
        return ()
    if not lesson.divisible:
        return (remaining,)

    if total > 3:
        first = int(math.ceil(total / 2))
        second = total // 2
        if remaining == total:
            return (first,)
        if remaining == second:
            return (second,)
        if remaining == first and first != second:
            return (first,)
        return ()

    return tuple(d for d in (3, 2, 1) if d <= remaining)


def needs_different_day(lesson: Lesson, remaining: int) -> bool:
    """True when the next block is the second half of a >5 hour divisible lesson."""

    total = int(lesson.weekly_hours)
    return bool(lesson.divisible) and total > 5 and int(remaining) == total // 2


def make_entries(
    lesson: Lesson,
    teachers: Tuple[Teacher, ...],
    locations: Tuple[Location, ...],
    block: List[TimeSlot],
) -> Tuple[ScheduledEntry, ...]:
    return tuple(
        ScheduledEntry(
            lesson_id=lesson.id,
            teacher_ids=tuple(t.id for t in teachers),
            location_ids=tuple(loc.id for loc in locations),
            time_slot=slot,
            branch_id=lesson.branch_id,
            grade_level=lesson.grade_level,
        )
        for slot in block
    )


# ----------------------------
# Context
# ----------------------------


class SearchContext:
    def __init__(
        self,
        problem: SchedulerInput,
        *,
        rng: random.Random,
        max_steps: int,
        time_limit_seconds: Optional[float] = None,
        verbose: bool = False,
    ) -> None:
        self.problem = problem
        self.rng = rng
        self.max_steps = int(max_steps)
        self.verbose = bool(verbose)
        self.deadline = (time.monotonic() + float(time_limit_seconds)) if time_limit_seconds else None

        self.schedule = Schedule()
        self.logs: List[str] = []
        self.steps = 0

        # Larger lessons first; sorted() is stable so ties keep input order.
        self.lessons: List[Lesson] = sorted(
            (l for l in problem.active_lessons if int(l.weekly_hours) > 0),
            key=lambda l: -int(l.weekly_hours),
        )
        self.remaining: Dict[str, int] = {l.id: int(l.weekly_hours) for l in self.lessons}
        self.initial_remaining: Dict[str, int] = dict(self.remaining)

        self.slots: List[TimeSlot] = list(problem.time_slots)
        self.rng.shuffle(self.slots)
        self.valid_slots = frozenset(problem.time_slots)
        self.hours_per_day = problem.hours_per_day

        teachers_by_id = {t.id: t for t in problem.teachers}
        # A repeated id would let a dual-resource pair use one resource twice.
        schedulable = list(
            {loc.id: loc for loc in problem.locations if loc.capacity is not None and loc.capacity >= 0}.values()
        )

        self._required: Dict[str, List[Teacher]] = {}
        self._others: Dict[str, List[Teacher]] = {}
        self._locations: Dict[str, List[Location]] = {}
        for lesson in self.lessons:
            possible = [teachers_by_id[tid] for tid in dict.fromkeys(lesson.eligible_teacher_ids) if tid in teachers_by_id]
            required = [t for t in possible if problem.is_required(t.id, lesson.id)]
            others = [t for t in possible if not problem.is_required(t.id, lesson.id)]
            locations = [loc for loc in schedulable if location_suitable(lesson, loc)]
            self.rng.shuffle(required)
            self.rng.shuffle(others)
            self.rng.shuffle(locations)
            self._required[lesson.id] = required
            self._others[lesson.id] = others
            self._locations[lesson.id] = locations

    # -- logging --

    def log(self, message: str) -> None:
        self.logs.append(message)

    def trace(self, message: str) -> None:
        if self.verbose:
            self.logs.append(message)

    # -- candidates --

    def required_teachers(self, lesson: Lesson) -> List[Teacher]:
        return self._required.get(lesson.id, [])

    def other_teachers(self, lesson: Lesson) -> List[Teacher]:
        return self._others.get(lesson.id, [])

    def possible_teachers(self, lesson: Lesson) -> List[Teacher]:
        return self.required_teachers(lesson) + self.other_teachers(lesson)

    def candidate_locations(self, lesson: Lesson) -> List[Location]:
        return self._locations.get(lesson.id, [])

    def insufficient_resources(self) -> List[Tuple[Lesson, str]]:
        """Lessons that can never be placed, with a human readable reason."""

        out: List[Tuple[Lesson, str]] = []
        for lesson in self.lessons:
            need = lesson.resources_needed
            n_teachers = len(self.possible_teachers(lesson))
            n_locations = len(self.candidate_locations(lesson))
            if n_teachers < need:
                out.append((lesson, f"needs {need} teacher(s), found {n_teachers}"))
            elif n_locations < need:
                out.append((lesson, f"needs {need} location(s), found {n_locations}"))
        return out

    # -- mutation --

    def commit(self, placement: Placement) -> None:
        for entry in placement.entries:
            self.schedule.add(entry)
        self.remaining[placement.lesson.id] -= placement.hours
        self.steps += 1
        self.trace(f"[Assign] {placement.describe()} (rem {self.remaining[placement.lesson.id]}h)")

    def undo(self, placement: Placement) -> None:
        for entry in placement.entries:
            self.schedule.remove(entry)
        self.remaining[placement.lesson.id] += placement.hours
        self.trace(f"[Backtrack] {placement.describe()}")

    def budget_exhausted(self) -> bool:
        if self.steps >= self.max_steps:
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline
