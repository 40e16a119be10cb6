"""
Candidate Number Pools

A pool is the restricted, ordered subset of numbers combinations are sampled
from. Three strategies:

- dynamic   : the profile's dynamic weighted pool (composite score order)
- frequency : least frequent numbers first, favoring historically
              under-represented numbers
- model     : highest external-model scores first
"""
from millionaire.analysis import frequency_counts
from millionaire.errors import ExternalModelUnavailable, PoolTooSmall
from millionaire.models.scoring import score_vector


def frequency_order(frequencies, game):
    """All numbers sorted ascending by frequency, ties by ascending number."""
    return sorted(game.numbers, key=lambda n: frequencies.get(n, 0))


def frequency_pool(df, game, pool_size):
    return frequency_order(frequency_counts(df, game), game)[:pool_size]


def dynamic_pool(profile, pool_size):
    return list(profile.dynamic_weighted_pool[:pool_size])


def model_pool(scorer, game, pool_size):
    if scorer is None:
        raise ExternalModelUnavailable("No scoring model is available for the model pool.")
    scores = score_vector(scorer, game)
    ordered = sorted(game.numbers, key=lambda n: -scores[n - 1])
    return ordered[:pool_size]


def build_pool(strategy, game, pool_size, profile=None, df=None, scorer=None):
    """
    Build a pool with the given strategy, truncated to pool_size.

    Raises PoolTooSmall when the result cannot fill one combination.
    """
    if strategy == "dynamic":
        if profile is None:
            raise ValueError("The dynamic pool needs a statistical profile")
        pool = dynamic_pool(profile, pool_size)
    elif strategy == "frequency":
        if df is not None:
            pool = frequency_pool(df, game, pool_size)
        elif profile is not None:
            pool = frequency_order(profile.frequencies, game)[:pool_size]
        else:
            raise ValueError("The frequency pool needs draws or a statistical profile")
    elif strategy == "model":
        pool = model_pool(scorer, game, pool_size)
    else:
        raise ValueError(f"Unknown pool strategy '{strategy}'")

    if len(pool) < game.standard_size:
        raise PoolTooSmall(len(pool), game.standard_size)
    return pool
