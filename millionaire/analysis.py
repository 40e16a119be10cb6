"""
Millionaire Maker - Statistical Profiling Engine

Derives every aggregate the filters and pool builders rely on from the
date-sorted draw frame of a single game:

    sum / digit-sum / delta-sum / rank-sum mean and std
    frequency ranks, positional bounds and averages
    pairing matrix, recurrence gaps, last-digit mix
    hot / cold numbers and the dynamic weighted pool

All functions are pure in (draws, game). Statistics with too little history
come back as None (or empty), which turns their dependent filters into
no-ops instead of failing the whole operation.
"""

import math
import warnings
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from millionaire.config import (
    HOT_COLD_FRACTION,
    HOT_COLD_WINDOW,
    MIN_DRAWS_FOR_HOT_COLD,
    MIN_DRAWS_FOR_STATS,
    STD_FACTOR,
)
from millionaire.games import GameProfile
from millionaire.repository import main_matrix, main_numbers


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MeanStd:
    mean: float
    std_dev: float

    def bounds(self, factor=STD_FACTOR):
        return self.mean - factor * self.std_dev, self.mean + factor * self.std_dev

    def contains(self, value, factor=STD_FACTOR):
        lo, hi = self.bounds(factor)
        return lo <= value <= hi


def round_half_up(x) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return int(math.floor(x + 0.5))


def mean_std(values) -> MeanStd:
    """Mean and population standard deviation (divide by N)."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return MeanStd(0.0, 0.0)
    return MeanStd(float(arr.mean()), float(arr.std()))


def digit_sum(n: int) -> int:
    return sum(int(d) for d in str(abs(int(n))))


def combination_digit_sum(numbers) -> int:
    return sum(digit_sum(n) for n in numbers)


def delta_sum(numbers) -> int:
    """Sum of consecutive differences of the ascending combination."""
    ordered = sorted(numbers)
    return sum(b - a for a, b in zip(ordered, ordered[1:]))


def rank_sum(numbers, rank_map, default_rank) -> int:
    return sum(rank_map.get(n, default_rank) for n in numbers)


# ===================================================================
# 1. Frequency & Rank
# ===================================================================

def frequency_counts(df: pd.DataFrame, game: GameProfile) -> Dict[int, int]:
    """Count each main number 1..range across all draws."""
    counter = Counter(main_matrix(df, game).ravel().tolist())
    return {n: counter.get(n, 0) for n in game.numbers}


def rank_numbers(frequencies: Dict[int, int], game: GameProfile) -> Dict[int, int]:
    """
    Rank numbers by frequency, most frequent = 1.

    Ties keep ascending-number order (sorted() is stable), so the result is
    always a bijection from 1..range onto 1..range.
    """
    ordered = sorted(game.numbers, key=lambda n: -frequencies.get(n, 0))
    return {n: rank for rank, n in enumerate(ordered, 1)}


# ===================================================================
# 2. Scalar-per-draw statistics
# ===================================================================

def _scalar_stats(df, game, reducer) -> Optional[MeanStd]:
    if len(df) < MIN_DRAWS_FOR_STATS:
        return None
    return mean_std([reducer(nums) for nums in main_numbers(df, game)])


def sum_stats(df: pd.DataFrame, game: GameProfile) -> Optional[MeanStd]:
    return _scalar_stats(df, game, sum)


def digit_sum_stats(df: pd.DataFrame, game: GameProfile) -> Optional[MeanStd]:
    return _scalar_stats(df, game, combination_digit_sum)


def delta_stats(df: pd.DataFrame, game: GameProfile) -> Optional[MeanStd]:
    return _scalar_stats(df, game, delta_sum)


def rank_stats(df: pd.DataFrame, game: GameProfile, rank_map=None) -> Optional[MeanStd]:
    if rank_map is None:
        rank_map = rank_numbers(frequency_counts(df, game), game)
    return _scalar_stats(df, game, lambda nums: rank_sum(nums, rank_map, game.range))


# ===================================================================
# 3. Positional statistics
# ===================================================================

def positional_stats(df: pd.DataFrame, game: GameProfile):
    """
    Per sorted position: bounds = round(mean +/- 1.5 * std).
    Per number: mean 1-indexed sorted position it has been drawn at (0 if never).

    Returns
    -------
    (bounds, averages) where bounds is a tuple of (min, max) per position, or
    None with fewer than 10 draws, and averages is a dict {number: avg}.
    """
    matrix = main_matrix(df, game)

    pos_sum = Counter()
    pos_count = Counter()
    for row in matrix:
        for pos, n in enumerate(row, 1):
            pos_sum[int(n)] += pos
            pos_count[int(n)] += 1
    averages = {
        n: (pos_sum[n] / pos_count[n] if pos_count[n] else 0.0) for n in game.numbers
    }

    if len(matrix) < MIN_DRAWS_FOR_STATS:
        return None, averages

    bounds = []
    for i in range(game.standard_size):
        stats = mean_std(matrix[:, i])
        lo, hi = stats.bounds()
        bounds.append((round_half_up(lo), round_half_up(hi)))
    return tuple(bounds), averages


# ===================================================================
# 4. Pairing & Gaps
# ===================================================================

def pairing_matrix(df: pd.DataFrame, game: GameProfile) -> np.ndarray:
    """Symmetric co-occurrence counts, indexed [n1][n2] for numbers 1..range."""
    matrix = np.zeros((game.range + 1, game.range + 1), dtype=np.int64)
    for row in main_matrix(df, game):
        for i in range(len(row)):
            for j in range(i + 1, len(row)):
                a, b = row[i], row[j]
                matrix[a, b] += 1
                matrix[b, a] += 1
    return matrix


def gap_stats(df: pd.DataFrame, game: GameProfile):
    """
    Recurrence gaps measured in draws.

    avg_gaps[n]     : mean gap between consecutive appearances of n, or the
                      total draw count when n has fewer than two appearances
    current_gaps[n] : draws elapsed since n last appeared, or the total draw
                      count if it never has
    """
    total = len(df)
    last_seen = {}
    gaps = {n: [] for n in game.numbers}
    for idx, nums in enumerate(main_numbers(df, game)):
        for n in nums:
            if n in last_seen:
                gaps[n].append(idx - last_seen[n])
            last_seen[n] = idx

    avg_gaps = {n: (float(np.mean(g)) if g else float(total)) for n, g in gaps.items()}
    current_gaps = {
        n: (total - 1 - last_seen[n] if n in last_seen else total) for n in game.numbers
    }
    return avg_gaps, current_gaps


# ===================================================================
# 5. Last digits & Hot / Cold
# ===================================================================

def last_digit_stats(df: pd.DataFrame, game: GameProfile) -> Optional[Tuple[float, ...]]:
    """Fraction of all drawn numbers ending in each digit 0-9."""
    if len(df) < MIN_DRAWS_FOR_STATS:
        return None
    digits = main_matrix(df, game).ravel() % 10
    counts = np.bincount(digits, minlength=10)
    total = len(df) * game.standard_size
    return tuple(float(c) / total for c in counts)


def hot_cold_numbers(df: pd.DataFrame, game: GameProfile):
    """
    Hot  : top 20% of numbers by frequency over the last 20 draws.
    Cold : bottom 20% in the same stable descending order.

    Both are empty with fewer than 20 draws.
    """
    if len(df) < MIN_DRAWS_FOR_HOT_COLD:
        return (), ()
    recent = df.tail(HOT_COLD_WINDOW)
    counts = frequency_counts(recent, game)
    ordered = sorted(game.numbers, key=lambda n: -counts[n])
    size = int(math.floor(game.range * HOT_COLD_FRACTION))
    if size == 0:
        return (), ()
    return tuple(ordered[:size]), tuple(ordered[-size:])


def dynamic_weighted_pool(game, rank_map, hot, cold, avg_gaps, current_gaps):
    """
    Order all numbers by a composite score:

        0.5 * (1 - rank / range)
      + 0.2 * (+0.5 hot, -0.5 cold, else 0)
      + 0.3 * (1 if current gap > 1.5 * average gap else 0)

    Descending by score, ties by ascending number.
    """
    hot_set, cold_set = set(hot), set(cold)
    scores = {}
    for n in game.numbers:
        rank_score = 1 - rank_map.get(n, game.range) / game.range
        hot_cold_score = 0.5 if n in hot_set else -0.5 if n in cold_set else 0.0
        due_score = 1.0 if current_gaps[n] > avg_gaps[n] * 1.5 else 0.0
        scores[n] = rank_score * 0.5 + hot_cold_score * 0.2 + due_score * 0.3
    return tuple(sorted(game.numbers, key=lambda n: -scores[n]))


# ===================================================================
# 6. Similarity windows
# ===================================================================

def similarity_windows(df: pd.DataFrame, game: GameProfile, reference_date=None):
    """
    Split history into the two similarity windows relative to reference_date
    (default: now).

    recent : draws on or after reference_date - 1 year
    older  : draws in [reference_date - 2 years, reference_date - 1 year)
    """
    ref = pd.Timestamp.now() if reference_date is None else pd.Timestamp(reference_date)
    one_year_ago = ref - pd.DateOffset(years=1)
    two_years_ago = ref - pd.DateOffset(years=2)
    dates = df["date"]
    recent = df[dates >= one_year_ago]
    older = df[(dates >= two_years_ago) & (dates < one_year_ago)]
    return main_numbers(recent, game), main_numbers(older, game)


# ===================================================================
# Statistical Profile
# ===================================================================

@dataclass(frozen=True, eq=False)
class StatisticalProfile:
    """Read-only bundle of every derived statistic for one (draws, game) pair."""

    game: GameProfile
    draw_count: int
    frequencies: Dict[int, int]
    rank_map: Dict[int, int]
    sum_stats: Optional[MeanStd]
    digit_sum_stats: Optional[MeanStd]
    delta_stats: Optional[MeanStd]
    rank_stats: Optional[MeanStd]
    positional_bounds: Optional[Tuple[Tuple[int, int], ...]]
    positional_averages: Dict[int, float]
    pairing_matrix: np.ndarray
    avg_gaps: Dict[int, float]
    current_gaps: Dict[int, int]
    last_digit_stats: Optional[Tuple[float, ...]]
    hot: Tuple[int, ...]
    cold: Tuple[int, ...]
    dynamic_weighted_pool: Tuple[int, ...]


def build_profile(df: pd.DataFrame, game: GameProfile, verbose=False) -> StatisticalProfile:
    """
    Compute the full statistical profile.

    df must contain only valid draws of `game`, sorted ascending by date.
    """
    n_draws = len(df)
    if n_draws < MIN_DRAWS_FOR_STATS:
        warnings.warn(
            f"Only {n_draws} draws available for {game.game_id}; statistical "
            f"filters need at least {MIN_DRAWS_FOR_STATS} and will be skipped."
        )

    frequencies = frequency_counts(df, game)
    ranks = rank_numbers(frequencies, game)
    bounds, averages = positional_stats(df, game)
    avg_gaps, current_gaps = gap_stats(df, game)
    hot, cold = hot_cold_numbers(df, game)

    profile = StatisticalProfile(
        game=game,
        draw_count=n_draws,
        frequencies=frequencies,
        rank_map=ranks,
        sum_stats=sum_stats(df, game),
        digit_sum_stats=digit_sum_stats(df, game),
        delta_stats=delta_stats(df, game),
        rank_stats=rank_stats(df, game, ranks),
        positional_bounds=bounds,
        positional_averages=averages,
        pairing_matrix=pairing_matrix(df, game),
        avg_gaps=avg_gaps,
        current_gaps=current_gaps,
        last_digit_stats=last_digit_stats(df, game),
        hot=hot,
        cold=cold,
        dynamic_weighted_pool=dynamic_weighted_pool(
            game, ranks, hot, cold, avg_gaps, current_gaps
        ),
    )

    if verbose:
        print(f"  [Profiler] {game.game_id}: {n_draws} draws profiled")
        if profile.sum_stats is not None:
            print(f"  [Profiler] Sum mean={profile.sum_stats.mean:.1f} "
                  f"std={profile.sum_stats.std_dev:.1f}")
        if profile.hot:
            print(f"  [Profiler] Hot: {list(profile.hot)}")
            print(f"  [Profiler] Cold: {list(profile.cold)}")
    return profile


_PROFILE_CACHE: Dict[tuple, StatisticalProfile] = {}
_PROFILE_CACHE_SIZE = 16


def _frame_key(df, game):
    cols = ["date"] + game.num_cols
    digest = int(pd.util.hash_pandas_object(df[cols], index=False).sum()) if len(df) else 0
    return game, len(df), digest


def profile_for(df: pd.DataFrame, game: GameProfile) -> StatisticalProfile:
    """build_profile, memoized on a hash of the draw frame's contents."""
    key = _frame_key(df, game)
    profile = _PROFILE_CACHE.get(key)
    if profile is None:
        if len(_PROFILE_CACHE) >= _PROFILE_CACHE_SIZE:
            _PROFILE_CACHE.pop(next(iter(_PROFILE_CACHE)))
        profile = build_profile(df, game)
        _PROFILE_CACHE[key] = profile
    return profile
