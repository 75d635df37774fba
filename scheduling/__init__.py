"""Weekly lesson scheduling engine (backtracking + multi-attempt optimization)."""

from .attempt import run_attempt
from .best_schedule import find_best_schedule
from .config import SchedulerConfig
from .data_preparation import SchedulerInputError, load_scheduler_input_from_json, prepare_scheduler_input
from .fitness import score_schedule
from .formatting import format_class_timetable, format_location_timetable, format_teacher_timetable
from .models import (
    DAYS_OF_WEEK,
    AttemptResult,
    BestScheduleResult,
    FailureKind,
    Lesson,
    Location,
    Schedule,
    ScheduledEntry,
    SchedulerInput,
    Teacher,
    TimeSlot,
    generate_time_slots,
)
from .refinement import refine_schedule

__all__ = [
    "DAYS_OF_WEEK",
    "AttemptResult",
    "BestScheduleResult",
    "FailureKind",
    "Lesson",
    "Location",
    "Schedule",
    "ScheduledEntry",
    "SchedulerConfig",
    "SchedulerInput",
    "SchedulerInputError",
    "Teacher",
    "TimeSlot",
    "find_best_schedule",
    "format_class_timetable",
    "format_location_timetable",
    "format_teacher_timetable",
    "generate_time_slots",
    "load_scheduler_input_from_json",
    "prepare_scheduler_input",
    "refine_schedule",
    "run_attempt",
    "score_schedule",
]
