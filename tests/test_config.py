from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scheduling.config import SchedulerConfig


def test_from_mapping_accepts_camel_case_options() -> None:
    config = SchedulerConfig.from_mapping(
        {"numberOfAttempts": 10, "weightVariance": 2.5, "weightGaps": 0, "weightShortDays": None, "seed": 3, "unknown": 1}
    )

    assert config.number_of_attempts == 10
    assert config.weight_variance == 2.5
    assert config.weight_gaps == 0
    assert config.weight_short_days == 1.0
    assert config.seed == 3


def test_with_weights_only_replaces_given_values() -> None:
    config = SchedulerConfig().with_weights(gaps=4)
    assert (config.weight_variance, config.weight_gaps, config.weight_short_days) == (1.0, 4.0, 1.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"number_of_attempts": 0},
        {"weight_gaps": -1.0},
        {"max_workers": 0},
        {"max_search_steps": 0},
        {"time_limit_seconds": 0},
        {"refine_steps": -5},
        {"min_lessons_per_day": 0},
    ],
)
def test_validate_rejects_out_of_range_values(kwargs) -> None:
    with pytest.raises(ValueError):
        SchedulerConfig(**kwargs).validate()
