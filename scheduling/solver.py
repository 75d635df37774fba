"""Backtracking solver.

Lessons are placed one at a time (largest weekly hours first). A lesson may
need several blocks (divisible lessons); after each block the search either
stays on the same lesson or moves to the next one. When no candidate at some
depth leads to a complete schedule, the previous choice is undone and its
next candidate tried, so an unplaceable lesson can force earlier lessons to
move.

The search keeps an explicit stack of frames instead of recursing: each frame
holds a lazy generator of candidate placements and the placement currently
committed from it. Python's default recursion limit would otherwise cap the
number of blocks per instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from .availability import find_block
from .context import Placement, SearchContext, chunk_durations, make_entries, needs_different_day
from .dual_resource import dual_resource_placements
from .models import Lesson


class SearchOutcome(str, Enum):
    SOLVED = "solved"
    EXHAUSTED = "exhausted"
    BUDGET_EXHAUSTED = "budget_exhausted"


def _committed_teacher(ctx: SearchContext, lesson: Lesson) -> Optional[str]:
    entries = ctx.schedule.by_lesson.get(lesson.id)
    if not entries:
        return None
    return entries[0].teacher_ids[0]


def single_resource_placements(ctx: SearchContext, lesson: Lesson) -> Iterator[Placement]:
    remaining = ctx.remaining[lesson.id]
    durations = chunk_durations(lesson, remaining)
    differ_day = needs_different_day(lesson, remaining)

    required = ctx.required_teachers(lesson)
    # Required teachers are never mixed with the others.
    teachers = required if required else ctx.other_teachers(lesson)
    locations = ctx.candidate_locations(lesson)
    existing_teacher = _committed_teacher(ctx, lesson)
    log = ctx.trace if ctx.verbose else None

    for slot in ctx.slots:
        for teacher in teachers:
            if existing_teacher is not None and teacher.id != existing_teacher:
                continue
            for location in locations:
                for duration in durations:
                    block = find_block(
                        ctx.schedule,
                        lesson,
                        (teacher,),
                        (location,),
                        slot,
                        duration,
                        hours_per_day=ctx.hours_per_day,
                        valid_slots=ctx.valid_slots,
                        second_half_must_differ_day=differ_day,
                        log=log,
                    )
                    if block is None:
                        continue
                    yield Placement(lesson=lesson, entries=make_entries(lesson, (teacher,), (location,), block))


def placements_for(ctx: SearchContext, lesson: Lesson) -> Iterator[Placement]:
    if lesson.dual_resource:
        return dual_resource_placements(ctx, lesson)
    return single_resource_placements(ctx, lesson)


@dataclass
class _Frame:
    lesson_index: int
    candidates: Iterator[Placement]
    placement: Optional[Placement] = None


def _unwind(ctx: SearchContext, stack: List[_Frame]) -> None:
    while stack:
        frame = stack.pop()
        if frame.placement is not None:
            ctx.undo(frame.placement)
            frame.placement = None


def solve(ctx: SearchContext) -> SearchOutcome:
    """Run the depth-first search on `ctx` until solved, exhausted or out of budget.

    On SOLVED, `ctx.schedule` holds the full assignment. On any other outcome
    every placement has been undone: the schedule is empty and all remaining
    hour counters are back to their starting values.
    """

    lessons = ctx.lessons
    if not lessons:
        return SearchOutcome.SOLVED

    ctx.trace(f"[Enter] lesson 0: {lessons[0].name}")
    stack: List[_Frame] = [_Frame(lesson_index=0, candidates=placements_for(ctx, lessons[0]))]

    while stack:
        frame = stack[-1]
        if frame.placement is not None:
            ctx.undo(frame.placement)
            frame.placement = None

        if ctx.budget_exhausted():
            _unwind(ctx, stack)
            return SearchOutcome.BUDGET_EXHAUSTED

        placement = next(frame.candidates, None)
        if placement is None:
            ctx.trace(f"[Exhausted] lesson {frame.lesson_index}: {lessons[frame.lesson_index].name}")
            stack.pop()
            continue

        ctx.commit(placement)
        frame.placement = placement

        lesson = lessons[frame.lesson_index]
        next_index = frame.lesson_index if ctx.remaining[lesson.id] > 0 else frame.lesson_index + 1
        if next_index >= len(lessons):
            return SearchOutcome.SOLVED

        if next_index != frame.lesson_index:
            ctx.trace(f"[Enter] lesson {next_index}: {lessons[next_index].name}")
        stack.append(_Frame(lesson_index=next_index, candidates=placements_for(ctx, lessons[next_index])))

    return SearchOutcome.EXHAUSTED
