"""
Combination Reduction Estimator for Millionaire Maker

Monte Carlo estimate of how far the enabled filters shrink the full space of
C(range, standard_size) combinations.

Each uniform random sample is charged to the FIRST enabled filter it fails,
in fixed priority order (then the external model threshold, if a scorer is
present). Every filter's elimination fraction is measured against the whole
sample, then applied in turn to the running remainder. The result is an
order-dependent approximation, not an exact count.
"""
import warnings
from collections import Counter
from dataclasses import dataclass, field
from typing import List

import numpy as np

from millionaire.analysis import profile_for, round_half_up
from millionaire.config import FILTER_ORDER, MODEL_PROBABILITY_THRESHOLD, REDUCTION_SAMPLES
from millionaire.errors import ExternalModelUnavailable
from millionaire.filters import FILTER_LABELS, build_context, first_failing_filter
from millionaire.models.scoring import score_vector

MODEL_STEP = "model"
STEP_LABELS = dict(FILTER_LABELS, **{MODEL_STEP: "Model Score"})


@dataclass(frozen=True)
class ReductionStep:
    filter_name: str
    remaining: int

    @property
    def label(self):
        return STEP_LABELS[self.filter_name]


@dataclass
class ReductionReport:
    initial: int
    final: int
    elimination_percent: float
    steps: List[ReductionStep] = field(default_factory=list)
    elimination_counts: dict = field(default_factory=dict)


def total_combinations(n, k):
    """C(n, k) by the multiplicative formula, rounded to the nearest integer."""
    if k < 0 or k > n:
        return 0
    if k == 0 or k == n:
        return 1
    k = min(k, n - k)
    res = 1.0
    for i in range(1, k + 1):
        res = res * (n - i + 1) / i
    return round_half_up(res)


def _model_probabilities(scorer, game, verbose):
    if scorer is None:
        return None
    try:
        return score_vector(scorer, game)
    except ExternalModelUnavailable as e:
        warnings.warn(f"Skipping model step in reduction analysis: {e}")
        if verbose:
            print(f"  [Reduction] Model unavailable, skipped: {e}")
        return None


def estimate_reduction(df, game, config, profile=None, scorer=None,
                       n_samples=REDUCTION_SAMPLES, rng=None, reference_date=None,
                       verbose=False):
    """
    Estimate the filters' combined reduction of the combination space.

    Parameters
    ----------
    df : pd.DataFrame
        Valid draws of `game`, sorted by date.
    config : FilterConfig
        Only enabled filters are sampled and reported.
    scorer : object, optional
        External model with score(number). When it is missing or fails the
        model step is skipped.
    n_samples : int
        Number of uniform random combinations drawn from 1..range.

    Returns
    -------
    ReductionReport
    """
    rng = np.random.default_rng(rng)
    if profile is None:
        profile = profile_for(df, game)
    ctx = build_context(df, game, profile=profile, reference_date=reference_date)
    probabilities = _model_probabilities(scorer, game, verbose)
    initial = total_combinations(game.range, game.standard_size)

    if verbose:
        print("  [Reduction] Analyzing combination reduction...")
        print(f"  [Reduction] Total combinations: {initial:,}")
        print(f"  [Reduction] Samples: {n_samples:,}")

    numbers = np.arange(1, game.range + 1)
    counts = Counter()
    for _ in range(n_samples):
        sample = tuple(sorted(int(n) for n in rng.choice(numbers, size=game.standard_size, replace=False)))
        failed = first_failing_filter(sample, ctx, config)
        if failed is not None:
            counts[failed] += 1
        elif probabilities is not None:
            combo_prob = float(np.prod(probabilities[np.asarray(sample) - 1]))
            if combo_prob < MODEL_PROBABILITY_THRESHOLD:
                counts[MODEL_STEP] += 1

    active = [name for name in FILTER_ORDER if config.is_enabled(name)]
    if probabilities is not None:
        active.append(MODEL_STEP)

    remaining = float(initial)
    steps = []
    for name in active:
        remaining -= remaining * (counts[name] / n_samples)
        steps.append(ReductionStep(name, round_half_up(remaining)))

    percent = (1 - remaining / initial) * 100 if initial else 0.0
    report = ReductionReport(
        initial=initial,
        final=round_half_up(remaining),
        elimination_percent=percent,
        steps=steps,
        elimination_counts={name: counts[name] for name in active},
    )

    if verbose:
        print(format_reduction(report))
    return report


def format_reduction(report):
    lines = [f"Initial combinations: {report.initial:,}"]
    for step in report.steps:
        lines.append(f"  after {step.label:<20s} {step.remaining:>12,}")
    lines.append(f"Final estimate: {report.final:,} "
                 f"({report.elimination_percent:.2f}% eliminated)")
    return "\n".join(lines)
