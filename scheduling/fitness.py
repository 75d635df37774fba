"""Quality metrics used to rank valid schedules (lower is better)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from .config import SchedulerConfig
from .models import ScheduledEntry


def teacher_day_hours(entries: Iterable[ScheduledEntry]) -> Dict[str, Dict[str, Set[int]]]:
    """teacher_id -> day -> set of occupied hours."""

    out: Dict[str, Dict[str, Set[int]]] = {}
    for e in entries:
        for tid in e.teacher_ids:
            out.setdefault(tid, {}).setdefault(e.time_slot.day, set()).add(int(e.time_slot.hour))
    return out


def teacher_hours(entries: Iterable[ScheduledEntry], teacher_ids: Sequence[str]) -> Dict[str, int]:
    hours = {tid: 0 for tid in teacher_ids}
    for e in entries:
        for tid in e.teacher_ids:
            hours[tid] = hours.get(tid, 0) + 1
    return hours


def workload_variance(entries: Iterable[ScheduledEntry], teacher_ids: Sequence[str]) -> float:
    """Population variance of assigned hours per teacher (idle teachers count as 0)."""

    if not teacher_ids:
        return 0.0
    values = list(teacher_hours(entries, teacher_ids).values())
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def day_gap_hours(hours: Iterable[int]) -> int:
    """Idle hours between the first and last lesson of one teacher-day."""

    ordered = sorted(hours)
    return sum(nxt - cur - 1 for cur, nxt in zip(ordered, ordered[1:]) if nxt - cur > 1)


def total_gap_hours(entries: Iterable[ScheduledEntry]) -> int:
    return sum(day_gap_hours(hours) for days in teacher_day_hours(entries).values() for hours in days.values())


def short_day_penalty(entries: Iterable[ScheduledEntry], min_lessons_per_day: int = 4) -> float:
    """Sum of (min - count)^2 over teacher-days with 1..min-1 lessons."""

    penalty = 0.0
    for days in teacher_day_hours(entries).values():
        for hours in days.values():
            count = len(hours)
            if 0 < count < min_lessons_per_day:
                penalty += float((min_lessons_per_day - count) ** 2)
    return penalty


def teachers_without_free_day(
    entries: Iterable[ScheduledEntry],
    teacher_ids: Sequence[str],
    days: Sequence[str],
) -> List[str]:
    """Teachers that work on every day of the week."""

    worked = teacher_day_hours(entries)
    n_days = len(set(days))
    return [tid for tid in teacher_ids if len(worked.get(tid, {})) >= n_days]


def all_teachers_have_free_day(
    entries: Iterable[ScheduledEntry],
    teacher_ids: Sequence[str],
    days: Sequence[str],
) -> bool:
    return not teachers_without_free_day(entries, teacher_ids, days)


@dataclass(frozen=True)
class FitnessBreakdown:
    variance: float
    total_gaps: int
    short_day_penalty: float
    score: float


def score_schedule(
    entries: Sequence[ScheduledEntry],
    teacher_ids: Sequence[str],
    config: SchedulerConfig = SchedulerConfig(),
) -> FitnessBreakdown:
    variance = workload_variance(entries, teacher_ids)
    gaps = total_gap_hours(entries)
    short = short_day_penalty(entries, int(config.min_lessons_per_day))
    score = (
        float(config.weight_variance) * variance
        + float(config.weight_gaps) * gaps
        + float(config.weight_short_days) * short
    )
    return FitnessBreakdown(variance=variance, total_gaps=gaps, short_day_penalty=short, score=score)


def fitness_summary(breakdown: FitnessBreakdown) -> Tuple[str, ...]:
    return (
        f"V: {breakdown.variance:.2f}",
        f"G: {breakdown.total_gaps}",
        f"SD Pen: {breakdown.short_day_penalty:.2f}",
        f"Fit: {breakdown.score:.4f}",
    )
