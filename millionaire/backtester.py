"""
Backtesting & Auto-Tuning Engine for Millionaire Maker

Walk-forward checks over the most recent draws:

- analyze_past_draws : how each of the last 10 draws sat against the
                       frequency pool built from the draws that preceded
                       it, and against the enabled filters
- auto_tune          : picks the pool size that captured the most recent
                       draws, then disables filters that would have rejected
                       most of those draws
"""
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, List, Tuple

import pandas as pd
from scipy import stats

from millionaire.analysis import frequency_counts, profile_for, round_half_up
from millionaire.config import (
    BACKTEST_DRAWS,
    FILTER_FAILURE_THRESHOLD,
    FILTER_ORDER,
    MAX_TICKETS,
    MIN_DRAWS_FOR_TUNING,
    MIN_TICKETS,
)
from millionaire.errors import InsufficientHistory
from millionaire.filters import (
    FILTER_LABELS,
    build_context,
    calculate_similarity,
    failing_filters,
)
from millionaire.games import hit_target as game_hit_target
from millionaire.games import hits_to_win as game_hits_to_win
from millionaire.pools import frequency_order, frequency_pool
from millionaire.repository import main_numbers


def count_hits(numbers, pool):
    """Count how many drawn numbers fall inside the pool."""
    return len(set(numbers) & set(pool))


def _history_before(df, date):
    """Draws strictly before `date`; never uses the draw itself or later data."""
    return df[df["date"] < date]


def prob_at_least(pool_size, hits, standard_size, needed):
    """
    P(at least `needed` successes) when drawing standard_size numbers from a
    pool of pool_size that holds `hits` winners (hypergeometric).
    """
    if standard_size > pool_size:
        return 0.0
    dist = stats.hypergeom(pool_size, hits, standard_size)
    losing = sum(dist.pmf(i) for i in range(needed))
    return max(0.0, 1.0 - float(losing))


# ===================================================================
# Past-draw analysis
# ===================================================================

@dataclass
class DrawAnalysis:
    date: pd.Timestamp
    numbers: Tuple[int, ...]
    pool_size: int
    hits: int
    hit_rate: float
    recent_similarity: float
    older_similarity: float
    hits_to_win: int
    prob_at_least: float
    failed_filters: List[str] = field(default_factory=list)

    @property
    def passed(self):
        return not self.failed_filters


def analyze_past_draws(df, game, config, n_draws=BACKTEST_DRAWS, verbose=False):
    """
    Walk-forward analysis of the last `n_draws` draws.

    For every draw only the history before it is used to build the frequency
    pool, the last-draw check and the similarity windows (measured back from
    the draw's own date). The statistical filters use the full-history
    profile. Similarity is reported as percentages only and is never listed
    among the failed filters.
    """
    if len(df) < n_draws:
        raise InsufficientHistory(n_draws, len(df), "past draw analysis")

    needed = game_hits_to_win(game)
    profile = profile_for(df, game)
    records = []
    for draw_numbers, date in zip(main_numbers(df.tail(n_draws), game), df.tail(n_draws)["date"]):
        history = _history_before(df, date)
        if len(history) == 0:
            continue

        pool = frequency_pool(history, game, config.pool_size)
        hits = count_hits(draw_numbers, pool)
        ctx = build_context(history, game, profile=profile, reference_date=date)

        records.append(DrawAnalysis(
            date=date,
            numbers=draw_numbers,
            pool_size=len(pool),
            hits=hits,
            hit_rate=100.0 * hits / game.standard_size,
            recent_similarity=calculate_similarity(draw_numbers, ctx.recent_window),
            older_similarity=calculate_similarity(draw_numbers, ctx.older_window),
            hits_to_win=needed,
            prob_at_least=prob_at_least(len(pool), hits, game.standard_size, needed),
            failed_filters=[
                name for name in failing_filters(draw_numbers, ctx, config)
                if name != "similarity"
            ],
        ))

    if verbose:
        print(format_analysis(records, game))
    return records


def format_analysis(records, game):
    """Render past-draw analysis records as a text report."""
    lines = [f"Past Draw Analysis (Last {len(records)} Draws):", ""]
    for r in records:
        if r.failed_filters:
            check = "FAILED (" + ", ".join(FILTER_LABELS[f] for f in r.failed_filters) + ")"
        else:
            check = "PASSED"
        lines.append(f"Draw: {r.date.strftime('%Y-%m-%d')} - [{', '.join(str(n) for n in r.numbers)}]")
        lines.append(f"  - Pool Size: {r.pool_size} / {game.range} | Hit Rate: "
                     f"{r.hit_rate:.1f}% ({r.hits}/{game.standard_size})")
        lines.append(f"  - Similarity (Recent/Older): {r.recent_similarity:.0f}% / "
                     f"{r.older_similarity:.0f}%")
        lines.append(f"  - P(>={r.hits_to_win} hits): {r.prob_at_least * 100:.2f}%")
        lines.append(f"  - Filter Check: {check}")
        lines.append("")
    return "\n".join(lines)


# ===================================================================
# Auto-tune
# ===================================================================

@dataclass
class AutoTuneResult:
    pool_size: int
    best_success_count: int
    hit_target: int
    success_counts: Dict[int, int]
    qualifying_draws: int
    filter_failures: Dict[str, int]
    disabled_filters: List[str]
    recommended_tickets: int
    config: object


def find_best_pool_size(df, game, target, backtest):
    """
    Phase 1: scan pool sizes standard_size..range.

    For each back-tested draw the frequency pool is rebuilt from the draws
    before it (skipped with fewer than 20 of them). The winning size has the
    strictly greatest number of draws reaching `target` hits; the smallest
    size wins ties.

    Returns (best_size, best_count, {size: count}).
    """
    snapshots = []
    for draw_numbers, date in zip(main_numbers(backtest, game), backtest["date"]):
        history = _history_before(df, date)
        if len(history) < MIN_DRAWS_FOR_TUNING:
            continue
        snapshots.append((frequency_order(frequency_counts(history, game), game), draw_numbers))

    best_size, best_count = game.range, -1
    success_counts = {}
    for size in range(game.standard_size, game.range + 1):
        count = sum(
            1 for order, draw_numbers in snapshots
            if count_hits(draw_numbers, order[:size]) >= target
        )
        success_counts[size] = count
        if count > best_count:
            best_count, best_size = count, size
    return best_size, best_count, success_counts


def recommended_ticket_count(best_count):
    tickets = round_half_up(10 * (5 / max(1, best_count)))
    return max(MIN_TICKETS, min(MAX_TICKETS, tickets))


def auto_tune(df, game, config, reference_date=None, verbose=False):
    """
    Two-phase back-test over the most recent 10 draws.

    Phase 1 chooses the frequency-pool size (see find_best_pool_size).
    Phase 2 rebuilds that pool from the whole history and, for the
    back-tested draws that still reach the hit target in it, evaluates every
    filter against the actual draw. Each draw is checked against the draws
    before it, with similarity windows measured back from reference_date
    (now by default). Filters failing more than half of those draws are
    disabled.

    The caller's config is left untouched; the tuned copy is returned in
    the result.
    """
    if len(df) < MIN_DRAWS_FOR_TUNING:
        raise InsufficientHistory(MIN_DRAWS_FOR_TUNING, len(df), "auto-tune")

    target = game_hit_target(game)
    backtest = df.tail(BACKTEST_DRAWS)

    if verbose:
        print(f"\n{'='*60}")
        print("STRATEGIC AUTO-TUNE")
        print(f"{'='*60}")
        print("  [AutoTune] Phase 1: finding optimal pool size for the hit target...")

    best_size, best_count, success_counts = find_best_pool_size(df, game, target, backtest)

    if verbose:
        print(f"  [AutoTune] Phase 2: best pool size {best_size}; analyzing filters...")

    final_pool = frequency_pool(df, game, best_size)
    profile = profile_for(df, game)
    failures = Counter()
    qualifying = 0
    for draw_numbers, date in zip(main_numbers(backtest, game), backtest["date"]):
        if count_hits(draw_numbers, final_pool) < target:
            continue
        qualifying += 1
        ctx = build_context(
            _history_before(df, date), game, profile=profile, reference_date=reference_date
        )
        failures.update(failing_filters(draw_numbers, ctx, config, respect_toggles=False))

    disabled = []
    if qualifying:
        disabled = [
            name for name in FILTER_ORDER
            if failures[name] / qualifying > FILTER_FAILURE_THRESHOLD
        ]

    tickets = recommended_ticket_count(best_count)
    tuned = replace(
        config, pool_size=best_size, num_sets=tickets, **{name: False for name in disabled}
    )
    result = AutoTuneResult(
        pool_size=best_size,
        best_success_count=best_count,
        hit_target=target,
        success_counts=success_counts,
        qualifying_draws=qualifying,
        filter_failures={name: failures[name] for name in FILTER_ORDER},
        disabled_filters=disabled,
        recommended_tickets=tickets,
        config=tuned,
    )

    if verbose:
        print(format_tune_result(result, len(backtest)))
    return result


def format_tune_result(result, n_backtested=BACKTEST_DRAWS):
    lines = [
        "Auto-Tune Complete!",
        "",
        f"Optimal Pool Size: {result.pool_size}",
        f"   - This pool achieved {result.best_success_count}/{n_backtested} draws "
        f"with at least {result.hit_target} hits.",
        f"Recommended Tickets: {result.recommended_tickets}",
    ]
    if result.disabled_filters:
        names = ", ".join(FILTER_LABELS[f] for f in result.disabled_filters)
        lines.append(f"Disabled Filters (for failing too often): {names}")
    else:
        lines.append("No filters were disabled as they all performed well.")
    return "\n".join(lines)
