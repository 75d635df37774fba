"""Post-optimization of a finished schedule.

The backtracking search only guarantees feasibility; its fitness depends on
the random slot order. Refinement anneals the winning schedule by moving a
whole same-day block of one lesson (teachers and locations unchanged) to
another day/start hour. Only moves that keep every hard rule are generated:

- teachers, locations and class pools stay exclusive per slot
- teacher unavailability is respected
- blocks keep their length, so contiguity is preserved
- the two halves of a long divisible lesson stay on different days

Breaking the free-day rule is allowed as an intermediate state but costs
`hard_penalty`, so such a state can never be returned as the best one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import logging
import random

from optimizer import AnnealConfig, anneal

from .availability import class_free, location_free, teacher_free
from .config import SchedulerConfig
from .fitness import FitnessBreakdown, score_schedule, teachers_without_free_day
from .models import Lesson, Schedule, ScheduledEntry, SchedulerInput, TimeSlot


logger = logging.getLogger(__name__)

ScheduleState = Tuple[ScheduledEntry, ...]


@dataclass
class RefinementResult:
    entries: List[ScheduledEntry]
    breakdown: FitnessBreakdown
    initial_breakdown: FitnessBreakdown
    accepted_moves: int
    total_steps: int

    @property
    def improved(self) -> bool:
        return self.breakdown.score < self.initial_breakdown.score


def lesson_blocks(entries: Sequence[ScheduledEntry]) -> List[Tuple[ScheduledEntry, ...]]:
    """Split entries into maximal runs of consecutive hours per (lesson, day)."""

    grouped: Dict[Tuple[str, str], List[ScheduledEntry]] = {}
    for e in entries:
        grouped.setdefault((e.lesson_id, e.time_slot.day), []).append(e)

    blocks: List[Tuple[ScheduledEntry, ...]] = []
    for key in sorted(grouped):
        run: List[ScheduledEntry] = []
        for e in sorted(grouped[key], key=lambda x: x.time_slot.hour):
            if run and e.time_slot.hour != run[-1].time_slot.hour + 1:
                blocks.append(tuple(run))
                run = []
            run.append(e)
        if run:
            blocks.append(tuple(run))
    return blocks


def _shift(entry: ScheduledEntry, day: str, offset: int) -> ScheduledEntry:
    return ScheduledEntry(
        lesson_id=entry.lesson_id,
        teacher_ids=entry.teacher_ids,
        location_ids=entry.location_ids,
        time_slot=TimeSlot(day=day, hour=entry.time_slot.hour + offset),
        branch_id=entry.branch_id,
        grade_level=entry.grade_level,
    )


class BlockMover:
    """Neighbor function: relocate one lesson block to a feasible position."""

    def __init__(self, problem: SchedulerInput) -> None:
        self.problem = problem
        self.days = problem.days
        self.hours_per_day = problem.hours_per_day
        self.valid_slots = frozenset(problem.time_slots)
        self.teachers = {t.id: t for t in problem.teachers}
        self.locations = {loc.id: loc for loc in problem.locations}
        self.lessons: Dict[str, Lesson] = {l.id: l for l in problem.lessons}

    def __call__(self, state: ScheduleState, rng: random.Random) -> ScheduleState:
        blocks = lesson_blocks(state)
        if not blocks or not self.days:
            return state

        block = rng.choice(blocks)
        length = len(block)
        if length > self.hours_per_day:
            return state
        day = rng.choice(self.days)
        start = rng.randint(1, self.hours_per_day - length + 1)
        first = block[0].time_slot
        if day == first.day and start == first.hour:
            return state

        moved = self.try_move(state, block, day, start)
        return moved if moved is not None else state

    def try_move(
        self,
        state: ScheduleState,
        block: Tuple[ScheduledEntry, ...],
        day: str,
        start: int,
    ) -> Optional[ScheduleState]:
        block_set = set(block)
        rest = [e for e in state if e not in block_set]
        lesson = self.lessons.get(block[0].lesson_id)

        if lesson is not None and lesson.divisible and int(lesson.weekly_hours) > 5:
            if any(e.lesson_id == lesson.id and e.time_slot.day == day for e in rest):
                return None

        schedule = Schedule(rest)
        offset = start - block[0].time_slot.hour
        shifted = [_shift(e, day, offset) for e in block]
        for e in shifted:
            slot = e.time_slot
            if slot not in self.valid_slots:
                return None
            for tid in e.teacher_ids:
                teacher = self.teachers.get(tid)
                if teacher is None or not teacher_free(schedule, teacher, slot):
                    return None
            for lid in e.location_ids:
                loc = self.locations.get(lid)
                if loc is None or not location_free(schedule, loc, slot):
                    return None
            if not class_free(schedule, e.branch_id, e.grade_level, slot):
                return None
        return tuple(rest) + tuple(shifted)


def refine_schedule(
    problem: SchedulerInput,
    entries: Sequence[ScheduledEntry],
    config: SchedulerConfig = SchedulerConfig(),
    rng: Optional[random.Random] = None,
) -> RefinementResult:
    teacher_ids = [t.id for t in problem.teachers]
    days = problem.days

    def energy(state: ScheduleState) -> float:
        e = score_schedule(state, teacher_ids, config).score
        return e + float(config.hard_penalty) * len(teachers_without_free_day(state, teacher_ids, days))

    initial = tuple(entries)
    initial_breakdown = score_schedule(initial, teacher_ids, config)
    steps = int(config.refine_steps)
    if steps <= 0 or not initial:
        return RefinementResult(list(initial), initial_breakdown, initial_breakdown, 0, 0)

    result = anneal(
        initial_state=initial,
        neighbor=BlockMover(problem),
        energy=energy,
        config=AnnealConfig(steps=steps, patience=max(100, steps // 2), seed=config.seed),
        rng=rng,
    )
    breakdown = score_schedule(result.best_state, teacher_ids, config)
    logger.info(
        "Refinement: fitness %.4f -> %.4f (%d/%d moves accepted)",
        initial_breakdown.score,
        breakdown.score,
        result.accepted_moves,
        result.total_steps,
    )
    return RefinementResult(
        entries=list(result.best_state),
        breakdown=breakdown,
        initial_breakdown=initial_breakdown,
        accepted_moves=result.accepted_moves,
        total_steps=result.total_steps,
    )
