"""
Combination Generation for Millionaire Maker

Rejection-samples combinations from a candidate pool until one passes every
enabled filter or the attempt budget runs out.
"""
import warnings
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from millionaire.analysis import profile_for
from millionaire.config import MAX_ATTEMPTS
from millionaire.errors import NoValidCombination, PoolTooSmall
from millionaire.filters import build_context, passes_all_filters
from millionaire.pools import build_pool


@dataclass(frozen=True)
class CandidateCombination:
    main: Tuple[int, ...]
    grand: Optional[int] = None

    def __str__(self):
        line = ", ".join(str(n) for n in self.main)
        if self.grand is not None:
            line += f" Grand: {self.grand}"
        return line


@dataclass
class GenerationResult:
    requested: int
    combinations: List[CandidateCombination] = field(default_factory=list)
    pool: List[int] = field(default_factory=list)

    @property
    def generated(self):
        return len(self.combinations)

    @property
    def shortfall(self):
        return self.requested - self.generated


# ── Sampling ─────────────────────────────────────────────────────────────

def _sample_main(pool, ctx, config, rng, max_attempts):
    """Return the first filter-passing sorted tuple, or None when the budget is spent."""
    size = ctx.game.standard_size
    candidates = np.asarray(pool)
    for _ in range(max_attempts):
        picks = rng.choice(candidates, size=size, replace=False)
        main = tuple(sorted(int(n) for n in picks))
        if passes_all_filters(main, ctx, config):
            return main
    return None


def choose_grand(game, recent_grands, rng):
    """
    Uniform choice over the grand-number domain, skipping the grand numbers
    of the most recent draws unless that leaves nothing to choose from.
    """
    domain = list(range(1, game.grand_range + 1))
    available = [g for g in domain if g not in set(recent_grands)]
    if not available:
        available = domain
    return int(rng.choice(available))


def generate_combination(pool, ctx, config, rng=None, max_attempts=MAX_ATTEMPTS):
    """
    Generate one combination from pool that passes every enabled filter.

    Raises PoolTooSmall if the pool cannot fill a combination and
    NoValidCombination once max_attempts samples have been rejected.
    """
    rng = np.random.default_rng(rng)
    game = ctx.game
    pool = sorted(set(int(n) for n in pool))
    if len(pool) < game.standard_size:
        raise PoolTooSmall(len(pool), game.standard_size)

    main = _sample_main(pool, ctx, config, rng, max_attempts)
    if main is None:
        raise NoValidCombination(max_attempts)

    grand = None
    if game.grand_range:
        grand = choose_grand(game, ctx.recent_grands, rng)
    return CandidateCombination(main=main, grand=grand)


def generate_batch(df, game, config, count=None, profile=None, scorer=None,
                   rng=None, reference_date=None, max_attempts=MAX_ATTEMPTS,
                   verbose=False):
    """
    Generate `count` combinations (default: config.num_sets).

    The pool is built once with config.pool_strategy; a PoolTooSmall error
    aborts the whole batch. Slots that exhaust their attempt budget are
    skipped and show up as the result's shortfall.
    """
    rng = np.random.default_rng(rng)
    count = config.num_sets if count is None else count
    if profile is None:
        profile = profile_for(df, game)

    pool = build_pool(
        config.pool_strategy, game, config.pool_size,
        profile=profile, df=df, scorer=scorer,
    )
    ctx = build_context(df, game, profile=profile, reference_date=reference_date)
    result = GenerationResult(requested=count, pool=list(pool))

    if verbose:
        print(f"  [Generator] Pool ({config.pool_strategy}, {len(pool)}): {sorted(pool)}")

    for i in range(count):
        try:
            combo = generate_combination(pool, ctx, config, rng=rng, max_attempts=max_attempts)
        except NoValidCombination:
            if verbose:
                print(f"  [Generator] Set {i + 1}: no valid combination after {max_attempts} attempts")
            continue
        result.combinations.append(combo)
        if verbose:
            print(f"  [Generator] Set {i + 1}: {combo}")

    if result.shortfall:
        warnings.warn(
            f"Generated {result.generated} of {count} requested sets; "
            "the current filter settings rejected the rest."
        )
    return result
