"""Placement of lessons that need two teachers and two locations at once."""

from __future__ import annotations

from itertools import combinations
from typing import Iterator, List, Tuple

from .availability import find_block
from .context import Placement, SearchContext, chunk_durations, make_entries, needs_different_day
from .models import Lesson, Location, Teacher


def teacher_pairs(ctx: SearchContext, lesson: Lesson) -> List[Tuple[Teacher, Teacher]]:
    """Unordered pairs of distinct teachers; pairs with required teachers first."""

    teachers = ctx.possible_teachers(lesson)
    required = {t.id for t in ctx.required_teachers(lesson)}
    pairs = list(combinations(teachers, 2))
    return sorted(pairs, key=lambda p: -sum(1 for t in p if t.id in required))


def location_pairs(ctx: SearchContext, lesson: Lesson) -> List[Tuple[Location, Location]]:
    return list(combinations(ctx.candidate_locations(lesson), 2))


def dual_resource_placements(ctx: SearchContext, lesson: Lesson) -> Iterator[Placement]:
    """Yield every feasible block for a dual-resource lesson.

    Evaluated lazily: each candidate is checked against the schedule as it
    stands when the solver asks for it. Both teachers and both locations must
    be free for every hour of the block; the yielded placement commits all of
    its entries together.
    """

    remaining = ctx.remaining[lesson.id]
    durations = chunk_durations(lesson, remaining)
    differ_day = needs_different_day(lesson, remaining)
    t_pairs = teacher_pairs(ctx, lesson)
    l_pairs = location_pairs(ctx, lesson)
    log = ctx.trace if ctx.verbose else None

    for slot in ctx.slots:
        for t_pair in t_pairs:
            for l_pair in l_pairs:
                for duration in durations:
                    block = find_block(
                        ctx.schedule,
                        lesson,
                        t_pair,
                        l_pair,
                        slot,
                        duration,
                        hours_per_day=ctx.hours_per_day,
                        valid_slots=ctx.valid_slots,
                        second_half_must_differ_day=differ_day,
                        log=log,
                    )
                    if block is None:
                        continue
                    yield Placement(lesson=lesson, entries=make_entries(lesson, t_pair, l_pair, block))
