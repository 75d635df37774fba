"""Multi-attempt optimizer.

Runs N independent attempts (each with its own shuffled slot order), drops
completed schedules in which some teacher works every day of the week, scores
the rest with the weighted fitness function and returns the lowest score.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional

import logging
import math
import random

from .attempt import run_attempt
from .config import SchedulerConfig
from .fitness import FitnessBreakdown, fitness_summary, score_schedule, teachers_without_free_day
from .models import AttemptResult, BestScheduleResult, FailureKind, SchedulerInput
from .refinement import refine_schedule


logger = logging.getLogger(__name__)


def attempt_seeds(config: SchedulerConfig) -> List[Optional[int]]:
    """One seed per attempt, all derived from `config.seed`.

    With `seed=None` the seeds come from OS entropy and the run is not
    reproducible, but every attempt still differs.
    """

    master = random.Random(config.seed)
    return [master.randrange(2**32) for _ in range(int(config.number_of_attempts))]


def _run_attempts(problem: SchedulerInput, config: SchedulerConfig, seeds: List[Optional[int]]) -> List[AttemptResult]:
    if int(config.max_workers) <= 1 or len(seeds) <= 1:
        return [run_attempt(problem, config, seed) for seed in seeds]

    with ProcessPoolExecutor(max_workers=int(config.max_workers)) as pool:
        futures = [pool.submit(run_attempt, problem, config, seed) for seed in seeds]
        return [f.result() for f in futures]


def find_best_schedule(
    problem: SchedulerInput,
    config: SchedulerConfig = SchedulerConfig(),
) -> BestScheduleResult:
    config.validate()
    teacher_ids = [t.id for t in problem.teachers]
    days = problem.days
    n = int(config.number_of_attempts)

    logs: List[str] = [
        f"[Scheduler] Starting search: attempts={n}, W_variance={config.weight_variance}, "
        f"W_gaps={config.weight_gaps}, W_short_days={config.weight_short_days}"
    ]
    logger.info(logs[0])

    results = _run_attempts(problem, config, attempt_seeds(config))

    best: Optional[AttemptResult] = None
    best_fit: Optional[FitnessBreakdown] = None
    best_index: Optional[int] = None
    completed = 0
    rejected = 0

    for i, result in enumerate(results):
        label = f"Attempt {i + 1}/{n}"
        if not result.success:
            logs.append(f"[Scheduler] {label} failed ({result.failure_kind.value if result.failure_kind else '?'}): {result.error}")
            continue
        completed += 1

        busy = teachers_without_free_day(result.schedule, teacher_ids, days)
        if busy:
            rejected += 1
            logs.append(f"[Scheduler] {label} discarded ({FailureKind.FAIRNESS_REJECTION.value}): no free day for {', '.join(busy)}")
            continue

        fit = score_schedule(result.schedule, teacher_ids, config)
        logs.append(f"[Scheduler] {label} valid & scored. {', '.join(fitness_summary(fit))}")
        if best_fit is None or fit.score < best_fit.score:
            best, best_fit, best_index = result, fit, i

    valid = completed - rejected
    logs.append(f"[Scheduler] Finished {n} attempts. Completed: {completed}, valid (with free days): {valid}.")
    for line in logs[1:]:
        logger.debug(line)

    if best is None or best_fit is None:
        error = f"No valid schedule could be built in {n} attempt(s)."
        if completed > 0:
            error += f" {completed} attempt(s) completed but none gave every teacher a free day."
        else:
            error += " No attempt completed."
        logger.warning(error)
        return BestScheduleResult(
            success=False,
            best_schedule=[],
            unassigned_lessons=[l for l in problem.active_lessons if int(l.weekly_hours) > 0],
            logs=logs,
            attempts_made=n,
            successful_attempts=0,
            min_fitness_score=math.inf,
            best_variance=math.inf,
            best_total_gaps=math.inf,
            best_short_day_penalty=math.inf,
            error=error,
            failure_kind=FailureKind.NO_VALID_SCHEDULE,
            completed_attempts=completed,
            fairness_rejections=rejected,
        )

    entries = list(best.schedule)
    refined = False
    if int(config.refine_steps) > 0:
        refinement = refine_schedule(problem, entries, config, rng=random.Random(best.seed))
        if refinement.improved:
            entries = refinement.entries
            best_fit = refinement.breakdown
            refined = True
        logs.append(
            f"[Scheduler] Refinement: {refinement.initial_breakdown.score:.4f} -> "
            f"{refinement.breakdown.score:.4f} ({'applied' if refined else 'no improvement'})"
        )

    logs.append(f"[Scheduler] Best schedule from attempt {best_index + 1}. {', '.join(fitness_summary(best_fit))}")
    logger.info(logs[-1])

    return BestScheduleResult(
        success=True,
        best_schedule=entries,
        unassigned_lessons=list(best.unassigned_lessons),
        logs=logs + list(best.logs),
        attempts_made=n,
        successful_attempts=valid,
        min_fitness_score=best_fit.score,
        best_variance=best_fit.variance,
        best_total_gaps=float(best_fit.total_gaps),
        best_short_day_penalty=best_fit.short_day_penalty,
        completed_attempts=completed,
        fairness_rejections=rejected,
        best_attempt_index=best_index,
        refined=refined,
    )
