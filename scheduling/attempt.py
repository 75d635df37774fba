"""Single scheduling attempt: fresh state, one solver run, a result object."""

from __future__ import annotations

from typing import List, Optional

import logging
import random
import time

from .config import SchedulerConfig
from .context import SearchContext
from .models import AttemptResult, FailureKind, Lesson, SchedulerInput
from .solver import SearchOutcome, solve


logger = logging.getLogger(__name__)


def _missing_hours_text(lessons: List[Lesson], remaining: dict) -> str:
    return ", ".join(f"{l.name} ({remaining.get(l.id, l.weekly_hours)}h missing)" for l in lessons)


def run_attempt(
    problem: SchedulerInput,
    config: SchedulerConfig = SchedulerConfig(),
    seed: Optional[int] = None,
) -> AttemptResult:
    """Run one independent backtracking attempt.

    Never raises: an unexpected fault inside the search is logged and turned
    into a failed result with `FailureKind.INTERNAL_ERROR`.
    """

    started = time.perf_counter()
    logs: List[str] = []
    active = [l for l in problem.active_lessons if int(l.weekly_hours) > 0]

    try:
        ctx = SearchContext(
            problem,
            rng=random.Random(seed),
            max_steps=config.max_search_steps,
            time_limit_seconds=config.time_limit_seconds,
            verbose=config.verbose_logs,
        )
        logs = ctx.logs
        ctx.log("--- Starting schedule attempt ---")
        ctx.log(f"Seed: {seed}")
        ctx.log(f"Lessons to schedule: {len(ctx.lessons)}")
        ctx.log(f"Time slots available: {len(ctx.slots)}")

        blocked = ctx.insufficient_resources()
        if blocked:
            for lesson, reason in blocked:
                ctx.log(f"[FAIL] {lesson.name}: {reason}")
            names = ", ".join(l.name for l, _ in blocked)
            return AttemptResult(
                success=False,
                schedule=[],
                unassigned_lessons=list(ctx.lessons),
                logs=logs,
                error=f"Lessons lack the resources they need: {names}",
                failure_kind=FailureKind.INSUFFICIENT_RESOURCES,
                remaining_hours=dict(ctx.remaining),
                seed=seed,
                duration_seconds=time.perf_counter() - started,
            )

        outcome = solve(ctx)
    except Exception as exc:
        logger.exception("Scheduling attempt (seed=%s) crashed", seed)
        logs.append(f"[FATAL ERROR] {exc}")
        return AttemptResult(
            success=False,
            schedule=[],
            unassigned_lessons=active,
            logs=logs,
            error=f"Internal error during scheduling: {exc}",
            failure_kind=FailureKind.INTERNAL_ERROR,
            seed=seed,
            duration_seconds=time.perf_counter() - started,
        )

    elapsed = time.perf_counter() - started
    unassigned = [l for l in ctx.lessons if ctx.remaining[l.id] > 0]
    success = outcome is SearchOutcome.SOLVED and not unassigned

    ctx.log("--- Schedule attempt finished ---")
    ctx.log(f"Result: {'Success' if success else 'Failed'} ({outcome.value})")
    ctx.log(f"Steps: {ctx.steps}")
    ctx.log(f"Duration: {elapsed:.2f} seconds")

    error: Optional[str] = None
    kind: Optional[FailureKind] = None
    if outcome is SearchOutcome.BUDGET_EXHAUSTED:
        kind = FailureKind.BUDGET_EXHAUSTED
        error = f"Search budget exhausted after {ctx.steps} steps; unassigned: {_missing_hours_text(unassigned, ctx.remaining)}"
    elif not success:
        kind = FailureKind.CONSTRAINT_EXHAUSTION
        error = f"Lessons could not be placed: {_missing_hours_text(unassigned, ctx.remaining)}"

    if success:
        logger.debug("Attempt seed=%s solved in %d steps (%.2fs)", seed, ctx.steps, elapsed)
    else:
        logger.debug("Attempt seed=%s failed: %s", seed, error)

    return AttemptResult(
        success=success,
        schedule=list(ctx.schedule.entries) if success else [],
        unassigned_lessons=unassigned,
        logs=logs,
        error=error,
        failure_kind=kind,
        remaining_hours=dict(ctx.remaining),
        steps=ctx.steps,
        seed=seed,
        duration_seconds=elapsed,
    )
