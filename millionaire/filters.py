"""
Combination Filtering Engine for Millionaire Maker

Plausibility rules a generated combination must pass. Each predicate is a
pure function returning True when the combination is acceptable (or, for
the pattern detectors, True when the pattern is present). A statistic that
is absent because history is too short makes its predicate pass.
"""
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from millionaire.analysis import (
    build_profile,
    combination_digit_sum,
    delta_sum,
    rank_sum,
    similarity_windows,
)
from millionaire.config import FILTER_ORDER, GRAND_EXCLUSION_DRAWS, STD_FACTOR
from millionaire.repository import main_numbers


FILTER_LABELS = {
    "arithmetic": "Arithmetic",
    "sequential": "Sequential",
    "balance": "Balance",
    "statistical_sum": "Statistical Sum",
    "digit_sum": "Sum of Digits",
    "rank_sum": "Sum of Ranks",
    "positional": "Positional",
    "similarity": "Similarity",
    "delta": "Delta System",
    "last_digit": "Last Digits",
    "consecutive_repeat": "Consecutive Repeats",
    "number_group": "Number Groups",
}

MAX_REPEATS_FROM_LAST_DRAW = 2
MAX_SAME_LAST_DIGIT = 3
MAX_PER_DECADE = 4


# ── Pattern rules ────────────────────────────────────────────────────────

def is_arithmetic_progression(numbers) -> bool:
    """True if the sorted numbers form one progression with a step above 1."""
    if len(numbers) < 3:
        return False
    ordered = sorted(numbers)
    diff = ordered[1] - ordered[0]
    if diff <= 1:
        return False
    return all(b - a == diff for a, b in zip(ordered, ordered[1:]))


def contains_too_many_sequentials(numbers, max_sequential=3) -> bool:
    """True if the sorted numbers hold a run of max_sequential consecutive integers."""
    ordered = sorted(numbers)
    if not ordered:
        return False
    if max_sequential <= 1:
        return True
    run = 1
    for a, b in zip(ordered, ordered[1:]):
        run = run + 1 if b == a + 1 else 1
        if run >= max_sequential:
            return True
    return False


def _balance_bounds(count):
    return count // 2 - 1, math.ceil(count / 2) + 1


def is_balanced_odd_even(numbers) -> bool:
    lo, hi = _balance_bounds(len(numbers))
    odd = sum(1 for n in numbers if n % 2 != 0)
    return lo <= odd <= hi


def is_balanced_high_low(numbers, range_max) -> bool:
    lo, hi = _balance_bounds(len(numbers))
    midpoint = math.ceil(range_max / 2)
    low = sum(1 for n in numbers if n <= midpoint)
    return lo <= low <= hi


# ── Statistical rules ────────────────────────────────────────────────────

def is_sum_within_range(numbers, stats) -> bool:
    if stats is None:
        return True
    return stats.contains(sum(numbers), STD_FACTOR)


def is_digit_sum_within_range(numbers, stats) -> bool:
    if stats is None:
        return True
    return stats.contains(combination_digit_sum(numbers), STD_FACTOR)


def is_rank_sum_within_range(numbers, stats, rank_map, range_max) -> bool:
    if stats is None:
        return True
    return stats.contains(rank_sum(numbers, rank_map, range_max), STD_FACTOR)


def is_within_positional_bounds(numbers, bounds) -> bool:
    if not bounds or len(numbers) != len(bounds):
        return True
    return all(lo <= n <= hi for n, (lo, hi) in zip(sorted(numbers), bounds))


def is_delta_sum_valid(numbers, stats) -> bool:
    if stats is None:
        return True
    return stats.contains(delta_sum(numbers), STD_FACTOR)


def has_valid_last_digit_distribution(numbers, stats) -> bool:
    """No last digit more than 3 times, and at least k/2 distinct last digits."""
    if stats is None:
        return True
    digits = [n % 10 for n in numbers]
    if max(digits.count(d) for d in set(digits)) > MAX_SAME_LAST_DIGIT:
        return False
    return len(set(digits)) >= len(numbers) / 2


# ── History rules ────────────────────────────────────────────────────────

def is_too_similar(numbers, window, threshold) -> bool:
    """
    True if the combination shares at least ceil(k * threshold / 100) numbers
    with any single draw in the window.
    """
    if not window:
        return False
    chosen = set(numbers)
    needed = math.ceil(len(numbers) * (threshold / 100))
    return any(len(chosen.intersection(draw)) >= needed for draw in window)


def calculate_similarity(numbers, window) -> float:
    """Highest percentage of the combination found in any single draw of the window."""
    if not window or not numbers:
        return 0.0
    chosen = set(numbers)
    best = max(len(chosen.intersection(draw)) for draw in window)
    return 100.0 * best / len(numbers)


def has_valid_consecutive_repeat(numbers, last_draw) -> bool:
    if not last_draw:
        return True
    repeats = len(set(numbers).intersection(last_draw))
    return repeats <= MAX_REPEATS_FROM_LAST_DRAW


def has_valid_number_group_distribution(numbers, range_max) -> bool:
    """Fail when one decade bucket holds k-1 or more numbers, or more than 4."""
    buckets = [0] * math.ceil(range_max / 10)
    for n in numbers:
        idx = (n - 1) // 10
        if idx < len(buckets):
            buckets[idx] += 1
    busiest = max(buckets) if buckets else 0
    if busiest >= len(numbers) - 1:
        return False
    return busiest <= MAX_PER_DECADE


# ===================================================================
# Filter context & dispatch
# ===================================================================

@dataclass(frozen=True)
class FilterContext:
    """Historical context the filters are evaluated against."""

    profile: object
    last_draw: Optional[Tuple[int, ...]] = None
    recent_window: Sequence[Tuple[int, ...]] = field(default_factory=tuple)
    older_window: Sequence[Tuple[int, ...]] = field(default_factory=tuple)
    recent_grands: Tuple[int, ...] = ()

    @property
    def game(self):
        return self.profile.game


def build_context(df, game, profile=None, reference_date=None):
    """
    Context for evaluating combinations against the draws in df.

    The similarity windows are measured back from reference_date (now by
    default); the consecutive-repeat rule uses the last draw of df and the
    grand-number exclusion its last three grand numbers.
    """
    if profile is None:
        profile = build_profile(df, game)
    recent, older = similarity_windows(df, game, reference_date)
    draws = main_numbers(df.tail(1), game)
    grands = df.tail(GRAND_EXCLUSION_DRAWS)["grand"].dropna()
    return FilterContext(
        profile=profile,
        last_draw=draws[0] if draws else None,
        recent_window=tuple(recent),
        older_window=tuple(older),
        recent_grands=tuple(int(g) for g in grands),
    )


def _passes(name, numbers, ctx, config):
    profile = ctx.profile
    game = profile.game
    if name == "arithmetic":
        return not is_arithmetic_progression(numbers)
    if name == "sequential":
        return not contains_too_many_sequentials(numbers, config.max_sequential)
    if name == "balance":
        return is_balanced_odd_even(numbers) and is_balanced_high_low(numbers, game.range)
    if name == "statistical_sum":
        return is_sum_within_range(numbers, profile.sum_stats)
    if name == "digit_sum":
        return is_digit_sum_within_range(numbers, profile.digit_sum_stats)
    if name == "rank_sum":
        return is_rank_sum_within_range(
            numbers, profile.rank_stats, profile.rank_map, game.range
        )
    if name == "positional":
        return is_within_positional_bounds(numbers, profile.positional_bounds)
    if name == "similarity":
        return not (
            is_too_similar(numbers, ctx.recent_window, config.recent_similarity_threshold)
            or is_too_similar(numbers, ctx.older_window, config.older_similarity_threshold)
        )
    if name == "delta":
        return is_delta_sum_valid(numbers, profile.delta_stats)
    if name == "last_digit":
        return has_valid_last_digit_distribution(numbers, profile.last_digit_stats)
    if name == "consecutive_repeat":
        return has_valid_consecutive_repeat(numbers, ctx.last_draw)
    if name == "number_group":
        return has_valid_number_group_distribution(numbers, game.range)
    raise KeyError(f"Unknown filter '{name}'")


def passes_filter(name, numbers, ctx, config) -> bool:
    """Evaluate one filter regardless of whether it is toggled on."""
    return _passes(name, numbers, ctx, config)


def failing_filters(numbers, ctx, config, respect_toggles=True):
    """Names of the filters the combination fails, in priority order."""
    return [
        name for name in FILTER_ORDER
        if (not respect_toggles or config.is_enabled(name))
        and not _passes(name, numbers, ctx, config)
    ]


def first_failing_filter(numbers, ctx, config):
    """The first enabled filter (priority order) the combination fails, or None."""
    for name in FILTER_ORDER:
        if config.is_enabled(name) and not _passes(name, numbers, ctx, config):
            return name
    return None


def passes_all_filters(numbers, ctx, config) -> bool:
    return first_failing_filter(numbers, ctx, config) is None


# ===================================================================
# Reports
# ===================================================================

def _detail(name, numbers, ctx):
    profile = ctx.profile
    if name == "statistical_sum":
        return f"Sum={sum(numbers)}"
    if name == "digit_sum":
        return f"Digit sum={combination_digit_sum(numbers)}"
    if name == "rank_sum":
        return f"Rank sum={rank_sum(numbers, profile.rank_map, profile.game.range)}"
    if name == "delta":
        return f"Delta sum={delta_sum(numbers)}"
    if name == "similarity":
        recent = calculate_similarity(numbers, ctx.recent_window)
        older = calculate_similarity(numbers, ctx.older_window)
        return f"Recent={recent:.0f}%, older={older:.0f}%"
    if name == "consecutive_repeat" and ctx.last_draw:
        return f"Repeats={len(set(numbers).intersection(ctx.last_draw))}"
    if name == "balance":
        stats = get_board_stats(numbers, profile.game)
        return f"Odd/Even={stats['odd_even']}, High/Low={stats['high_low']}"
    return ""


def run_all_filters(board, ctx, config):
    """
    Run every enabled filter on a board.
    Returns: dict with 'passed_count', 'total', 'results' list, 'all_passed' bool.
    """
    results = []
    for name in config.enabled_filters():
        results.append({
            "name": FILTER_LABELS[name],
            "filter": name,
            "passed": _passes(name, board, ctx, config),
            "detail": _detail(name, board, ctx),
        })
    passed = sum(1 for r in results if r["passed"])
    return {
        "passed_count": passed,
        "total": len(results),
        "all_passed": passed == len(results),
        "results": results,
        "confidence": f"{passed}/{len(results)}",
    }


def get_board_stats(board, game):
    """Calculate summary stats for a board."""
    size = len(board)
    odd = sum(1 for n in board if n % 2 == 1)
    low = sum(1 for n in board if n <= math.ceil(game.range / 2))

    groups = {}
    for n in board:
        start = (n - 1) // 10 * 10 + 1
        label = f"{start}-{min(start + 9, game.range)}"
        groups[label] = groups.get(label, 0) + 1

    return {
        "numbers": sorted(board),
        "sum": sum(board),
        "digit_sum": combination_digit_sum(board),
        "delta_sum": delta_sum(board),
        "odd_even": f"{odd}/{size - odd}",
        "high_low": f"{size - low}/{low}",
        "group_spread": groups,
        "group_count": len(groups),
    }
