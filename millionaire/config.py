"""
Configuration for the Millionaire Maker engine

Module-level constants for data locations and engine parameters, plus the
FilterConfig that callers own and pass into every engine operation.
"""
import os
from dataclasses import dataclass


DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
CSV_TEMPLATE = "{game_id}_results.csv"
API_URL = os.environ.get("MILLIONAIRE_API_URL", "http://localhost:3001")
REQUEST_TIMEOUT = 15

# Profiler minimums
MIN_DRAWS_FOR_STATS = 10
MIN_DRAWS_FOR_HOT_COLD = 20
HOT_COLD_WINDOW = 20
HOT_COLD_FRACTION = 0.2

# Shared band width for the mean +/- k*std filters and positional bounds
STD_FACTOR = 1.5

# Generator
MAX_ATTEMPTS = 5000
GRAND_EXCLUSION_DRAWS = 3

# Auto-tuner and past-draw analysis
BACKTEST_DRAWS = 10
MIN_DRAWS_FOR_TUNING = 20
FILTER_FAILURE_THRESHOLD = 0.5
MIN_TICKETS = 5
MAX_TICKETS = 50

# Reduction estimator
REDUCTION_SAMPLES = 10_000
MODEL_PROBABILITY_THRESHOLD = 1e-10

POOL_STRATEGIES = ("dynamic", "frequency", "model")

# Filter names double as FilterConfig toggle attributes; this is the fixed
# priority order used by the reduction estimator and filter reports.
FILTER_ORDER = (
    "arithmetic",
    "sequential",
    "balance",
    "statistical_sum",
    "digit_sum",
    "rank_sum",
    "positional",
    "similarity",
    "delta",
    "last_digit",
    "consecutive_repeat",
    "number_group",
)


@dataclass
class FilterConfig:
    """Filter toggles and pool settings for one generation or analysis pass."""

    arithmetic: bool = True
    sequential: bool = True
    balance: bool = True
    statistical_sum: bool = True
    digit_sum: bool = True
    rank_sum: bool = True
    positional: bool = True
    delta: bool = True
    last_digit: bool = True
    similarity: bool = True
    consecutive_repeat: bool = True
    number_group: bool = True

    recent_similarity_threshold: float = 49
    older_similarity_threshold: float = 60
    max_sequential: int = 3

    pool_size: int = 30
    pool_strategy: str = "dynamic"
    num_sets: int = 1

    def __post_init__(self):
        if self.pool_strategy not in POOL_STRATEGIES:
            raise ValueError(
                f"pool_strategy must be one of {POOL_STRATEGIES}, got '{self.pool_strategy}'"
            )

    def is_enabled(self, filter_name):
        if filter_name not in FILTER_ORDER:
            raise KeyError(f"Unknown filter '{filter_name}'")
        return bool(getattr(self, filter_name))

    def enabled_filters(self):
        return [name for name in FILTER_ORDER if self.is_enabled(name)]

    @classmethod
    def all_disabled(cls, **overrides):
        toggles = {name: False for name in FILTER_ORDER}
        toggles.update(overrides)
        return cls(**toggles)
