"""Run configuration for the multi-attempt scheduler."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional


# camelCase option names used by the presentation layer's re-run controls
_ALIASES = {
    "numberOfAttempts": "number_of_attempts",
    "weightVariance": "weight_variance",
    "weightGaps": "weight_gaps",
    "weightShortDays": "weight_short_days",
    "minLessonsPerDay": "min_lessons_per_day",
    "maxSearchSteps": "max_search_steps",
    "timeLimitSeconds": "time_limit_seconds",
    "maxWorkers": "max_workers",
    "verboseLogs": "verbose_logs",
    "refineSteps": "refine_steps",
}


@dataclass(frozen=True)
class SchedulerConfig:
    """User-tunable scheduling settings.

    Attributes:
        number_of_attempts: Independent backtracking attempts to run.
        weight_variance: Fitness weight of the teacher workload variance.
        weight_gaps: Fitness weight of the total idle hours between lessons.
        weight_short_days: Fitness weight of the short-day penalty.
        min_lessons_per_day: A working day with fewer lessons is "short".
        seed: Master seed. Each attempt gets its own seed derived from it.
            None => non-reproducible runs.
        max_search_steps: Placement budget per attempt. The search is
            exponential in the worst case; this bound guarantees termination.
        time_limit_seconds: Optional wall-clock deadline per attempt.
        max_workers: 1 runs attempts sequentially, >1 uses a process pool.
        verbose_logs: Record every placement/backtrack in the attempt log.
        refine_steps: Annealing steps for post-optimization (0 disables).
        hard_penalty: Energy added to refinement states that break the
            free-day rule.
    """

    number_of_attempts: int = 5
    weight_variance: float = 1.0
    weight_gaps: float = 1.0
    weight_short_days: float = 1.0
    min_lessons_per_day: int = 4
    seed: Optional[int] = None
    max_search_steps: int = 200_000
    time_limit_seconds: Optional[float] = None
    max_workers: int = 1
    verbose_logs: bool = False
    refine_steps: int = 0
    hard_penalty: float = 1_000_000.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SchedulerConfig":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (raw or {}).items():
            name = _ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        config = cls(**kwargs)
        config.validate()
        return config

    def with_weights(
        self,
        *,
        variance: Optional[float] = None,
        gaps: Optional[float] = None,
        short_days: Optional[float] = None,
    ) -> "SchedulerConfig":
        return replace(
            self,
            weight_variance=self.weight_variance if variance is None else float(variance),
            weight_gaps=self.weight_gaps if gaps is None else float(gaps),
            weight_short_days=self.weight_short_days if short_days is None else float(short_days),
        )

    def validate(self) -> None:
        if int(self.number_of_attempts) < 1:
            raise ValueError("number_of_attempts must be >= 1")
        if int(self.max_workers) < 1:
            raise ValueError("max_workers must be >= 1")
        for name in ("weight_variance", "weight_gaps", "weight_short_days"):
            if float(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0")
        if int(self.min_lessons_per_day) < 1:
            raise ValueError("min_lessons_per_day must be >= 1")
        if int(self.max_search_steps) < 1:
            raise ValueError("max_search_steps must be >= 1")
        if self.time_limit_seconds is not None and float(self.time_limit_seconds) <= 0:
            raise ValueError("time_limit_seconds must be > 0")
        if int(self.refine_steps) < 0:
            raise ValueError("refine_steps must be >= 0")
