"""Demo runner: build a weekly lesson timetable from sample JSON.

Usage:
    python scripts/run_weekly_demo.py --attempts 10 --seed 7
    python scripts/run_weekly_demo.py --input my_school.json --export out.zip

"""

from __future__ import annotations

from pathlib import Path
import argparse
import logging
import sys

import pandas as pd

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reporting import class_timetable_df, teacher_workload_df, weekly_reports_zip_bytes
from scheduling import SchedulerConfig, find_best_schedule, load_scheduler_input_from_json
from scheduling.formatting import class_pools


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a weekly lesson timetable.")
    p.add_argument("--input", default=str(ROOT / "data" / "sample_scheduler_input.json"))
    p.add_argument("--attempts", type=int, default=5)
    p.add_argument("--seed", type=int, default=7)
    p.add_argument("--weight-variance", type=float, default=1.0)
    p.add_argument("--weight-gaps", type=float, default=1.0)
    p.add_argument("--weight-short-days", type=float, default=1.0)
    p.add_argument("--min-lessons-per-day", type=int, default=4)
    p.add_argument("--refine-steps", type=int, default=0)
    p.add_argument("--workers", type=int, default=1)
    p.add_argument("--export", default=None, help="write a ZIP with the workbook and CSV timetables")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    problem = load_scheduler_input_from_json(args.input)
    config = SchedulerConfig(
        number_of_attempts=args.attempts,
        weight_variance=args.weight_variance,
        weight_gaps=args.weight_gaps,
        weight_short_days=args.weight_short_days,
        min_lessons_per_day=args.min_lessons_per_day,
        seed=args.seed,
        refine_steps=args.refine_steps,
        max_workers=args.workers,
    )

    result = find_best_schedule(problem, config)

    if not result.success:
        print(f"\n=== No schedule ===\n{result.error}")
        if result.unassigned_lessons:
            print(pd.DataFrame(result.unassigned_summary()).to_string(index=False))
        return 1

    for branch_id, grade in class_pools(problem):
        df = class_timetable_df(problem=problem, entries=result.best_schedule, branch_id=branch_id, grade_level=grade)
        print(f"\n=== Class {branch_id} / grade {grade} ===")
        print(df.to_string(index=False))

    print("\n=== Teacher workload ===")
    print(teacher_workload_df(problem=problem, entries=result.best_schedule, min_lessons_per_day=config.min_lessons_per_day).to_string(index=False))

    print("\n=== Metrics ===")
    for k in ("attempts_made", "successful_attempts", "min_fitness_score", "best_variance", "best_total_gaps", "best_short_day_penalty", "refined"):
        print(f"{k}: {getattr(result, k)}")

    if args.export:
        data = weekly_reports_zip_bytes(
            problem=problem, entries=result.best_schedule, min_lessons_per_day=config.min_lessons_per_day
        )
        Path(args.export).write_bytes(data)
        print(f"\nExported {len(data)} bytes to {args.export}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
