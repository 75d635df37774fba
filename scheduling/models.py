"""Domain model for the weekly lesson scheduler.

Everything the search consumes is immutable (lessons, teachers, locations,
time slots). The only mutable structure is `Schedule`, which is owned by a
single attempt and keeps three lookup indices in sync with its entries:

- (teacher_id, slot)          -> entry
- (location_id, slot)         -> entry
- (class_pool, slot)          -> entry

A class pool is (branch_id, grade_level), except that every grade-9 class is
merged into one pool regardless of branch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple


DAYS_OF_WEEK: Tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
DEFAULT_HOURS_PER_DAY = 10

MERGED_GRADE_LEVEL = 9
_MERGED_POOL_BRANCH = "*"


# ----------------------------
# Value types
# ----------------------------


@dataclass(frozen=True)
class TimeSlot:
    day: str
    hour: int  # 1-indexed period of the day

    @property
    def key(self) -> str:
        return f"{self.day}-{self.hour}"


def generate_time_slots(
    days: Iterable[str] = DAYS_OF_WEEK,
    hours_per_day: int = DEFAULT_HOURS_PER_DAY,
) -> Tuple[TimeSlot, ...]:
    """Full weekly grid in day-major order (Monday 1..N, Tuesday 1..N, ...)."""

    return tuple(TimeSlot(day=d, hour=h) for d in days for h in range(1, int(hours_per_day) + 1))


@dataclass(frozen=True)
class Lesson:
    id: str
    name: str
    branch_id: str
    grade_level: int
    weekly_hours: int
    divisible: bool = False
    dual_resource: bool = False
    # Empty => only non-lab locations are suitable.
    eligible_lab_types: FrozenSet[str] = frozenset()
    eligible_teacher_ids: Tuple[str, ...] = ()
    active: bool = True

    @property
    def resources_needed(self) -> int:
        return 2 if self.dual_resource else 1


@dataclass(frozen=True)
class Teacher:
    id: str
    name: str
    unavailable_slots: FrozenSet[TimeSlot] = frozenset()


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    lab_type: Optional[str] = None
    # None means the room is not schedulable (e.g. an office).
    capacity: Optional[int] = 0


@dataclass(frozen=True)
class ScheduledEntry:
    lesson_id: str
    teacher_ids: Tuple[str, ...]
    location_ids: Tuple[str, ...]
    time_slot: TimeSlot
    branch_id: str
    grade_level: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lesson_id": self.lesson_id,
            "teacher_ids": list(self.teacher_ids),
            "location_ids": list(self.location_ids),
            "day": self.time_slot.day,
            "hour": self.time_slot.hour,
            "branch_id": self.branch_id,
            "grade_level": self.grade_level,
        }


def class_pool(branch_id: str, grade_level: int) -> Tuple[str, int]:
    if int(grade_level) == MERGED_GRADE_LEVEL:
        return (_MERGED_POOL_BRANCH, MERGED_GRADE_LEVEL)
    return (str(branch_id), int(grade_level))


# ----------------------------
# Schedule (mutable, attempt-local)
# ----------------------------


class Schedule:
    """Committed entries of one attempt plus per-resource indices."""

    def __init__(self, entries: Iterable[ScheduledEntry] = ()) -> None:
        self._entries: List[ScheduledEntry] = []
        self.by_teacher: Dict[Tuple[str, TimeSlot], ScheduledEntry] = {}
        self.by_location: Dict[Tuple[str, TimeSlot], ScheduledEntry] = {}
        self.by_class: Dict[Tuple[Tuple[str, int], TimeSlot], ScheduledEntry] = {}
        self.by_lesson: Dict[str, List[ScheduledEntry]] = {}
        for e in entries:
            self.add(e)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ScheduledEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> Tuple[ScheduledEntry, ...]:
        return tuple(self._entries)

    def add(self, entry: ScheduledEntry) -> None:
        slot = entry.time_slot
        pool = class_pool(entry.branch_id, entry.grade_level)
        if len(set(entry.teacher_ids)) != len(entry.teacher_ids) or len(set(entry.location_ids)) != len(entry.location_ids):
            raise ValueError(f"Entry for {entry.lesson_id} at {slot.key} repeats a teacher or location")
        for tid in entry.teacher_ids:
            if (tid, slot) in self.by_teacher:
                raise ValueError(f"Teacher {tid} already scheduled at {slot.key}")
        for lid in entry.location_ids:
            if (lid, slot) in self.by_location:
                raise ValueError(f"Location {lid} already scheduled at {slot.key}")
        if (pool, slot) in self.by_class:
            raise ValueError(f"Class {pool} already scheduled at {slot.key}")

        for tid in entry.teacher_ids:
            self.by_teacher[(tid, slot)] = entry
        for lid in entry.location_ids:
            self.by_location[(lid, slot)] = entry
        self.by_class[(pool, slot)] = entry
        self.by_lesson.setdefault(entry.lesson_id, []).append(entry)
        self._entries.append(entry)

    def remove(self, entry: ScheduledEntry) -> None:
        slot = entry.time_slot
        for tid in entry.teacher_ids:
            self.by_teacher.pop((tid, slot), None)
        for lid in entry.location_ids:
            self.by_location.pop((lid, slot), None)
        self.by_class.pop((class_pool(entry.branch_id, entry.grade_level), slot), None)
        lesson_entries = self.by_lesson.get(entry.lesson_id)
        if lesson_entries is not None:
            lesson_entries.remove(entry)
            if not lesson_entries:
                del self.by_lesson[entry.lesson_id]
        self._entries.remove(entry)

    def lesson_entries(self, lesson_id: str) -> List[ScheduledEntry]:
        return list(self.by_lesson.get(lesson_id, ()))

    def clear(self) -> None:
        self._entries.clear()
        self.by_teacher.clear()
        self.by_location.clear()
        self.by_class.clear()
        self.by_lesson.clear()


# ----------------------------
# Input / output contracts
# ----------------------------


@dataclass(frozen=True)
class SchedulerInput:
    lessons: Tuple[Lesson, ...]
    teachers: Tuple[Teacher, ...]
    locations: Tuple[Location, ...]
    time_slots: Tuple[TimeSlot, ...]
    # teacher_id -> lesson ids the teacher is obliged to teach
    required_assignments: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    @property
    def active_lessons(self) -> Tuple[Lesson, ...]:
        return tuple(l for l in self.lessons if l.active)

    @property
    def days(self) -> Tuple[str, ...]:
        seen: List[str] = []
        for s in self.time_slots:
            if s.day not in seen:
                seen.append(s.day)
        return tuple(seen)

    @property
    def hours_per_day(self) -> int:
        return max((s.hour for s in self.time_slots), default=0)

    def is_required(self, teacher_id: str, lesson_id: str) -> bool:
        return lesson_id in self.required_assignments.get(teacher_id, ())


class FailureKind(str, Enum):
    CONSTRAINT_EXHAUSTION = "constraint_exhaustion"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    BUDGET_EXHAUSTED = "budget_exhausted"
    INTERNAL_ERROR = "internal_error"
    FAIRNESS_REJECTION = "fairness_rejection"
    NO_VALID_SCHEDULE = "no_valid_schedule"


def _unassigned_rows(lessons: Iterable[Lesson], remaining: Dict[str, int]) -> List[Dict[str, Any]]:
    return [
        {
            "lesson_id": l.id,
            "lesson_name": l.name,
            "remaining_hours": int(remaining.get(l.id, l.weekly_hours)),
        }
        for l in lessons
    ]


@dataclass
class AttemptResult:
    success: bool
    schedule: List[ScheduledEntry]
    unassigned_lessons: List[Lesson]
    logs: List[str]
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    remaining_hours: Dict[str, int] = field(default_factory=dict)
    steps: int = 0
    seed: Optional[int] = None
    duration_seconds: float = 0.0

    def unassigned_summary(self) -> List[Dict[str, Any]]:
        return _unassigned_rows(self.unassigned_lessons, self.remaining_hours)

    @property
    def total_unassigned_hours(self) -> int:
        return sum(r["remaining_hours"] for r in self.unassigned_summary())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "schedule": [e.to_dict() for e in self.schedule],
            "unassigned_lessons": self.unassigned_summary(),
            "total_unassigned_hours": self.total_unassigned_hours,
            "logs": list(self.logs),
            "error": self.error,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "steps": self.steps,
            "seed": self.seed,
        }


@dataclass
class BestScheduleResult:
    success: bool
    best_schedule: List[ScheduledEntry]
    unassigned_lessons: List[Lesson]
    logs: List[str]
    attempts_made: int
    # attempts that completed AND passed the free-day rule
    successful_attempts: int
    min_fitness_score: float
    best_variance: float
    best_total_gaps: float
    best_short_day_penalty: float
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    completed_attempts: int = 0
    fairness_rejections: int = 0
    best_attempt_index: Optional[int] = None
    refined: bool = False

    def unassigned_summary(self) -> List[Dict[str, Any]]:
        return _unassigned_rows(self.unassigned_lessons, {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "best_schedule": [e.to_dict() for e in self.best_schedule],
            "unassigned_lessons": self.unassigned_summary(),
            "total_unassigned_hours": sum(r["remaining_hours"] for r in self.unassigned_summary()),
            "logs": list(self.logs),
            "attempts_made": self.attempts_made,
            "successful_attempts": self.successful_attempts,
            "completed_attempts": self.completed_attempts,
            "fairness_rejections": self.fairness_rejections,
            "min_fitness_score": self.min_fitness_score,
            "best_variance": self.best_variance,
            "best_total_gaps": self.best_total_gaps,
            "best_short_day_penalty": self.best_short_day_penalty,
            "refined": self.refined,
            "error": self.error,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
        }
