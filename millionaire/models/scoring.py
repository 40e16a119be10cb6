"""
External Scoring Model Boundary

The predictive model that scores each number lives outside this package.
Anything exposing score(number) -> probability in [0, 1] can be plugged in;
this module only validates what such a collaborator returns.
"""
import numpy as np

from millionaire.errors import ExternalModelUnavailable


class StaticScorer:
    """Scorer backed by a precomputed {number: probability} mapping."""

    def __init__(self, probabilities):
        self.probabilities = {int(n): float(p) for n, p in dict(probabilities).items()}

    @classmethod
    def from_sequence(cls, probabilities):
        """Build from a sequence where index 0 holds the score of number 1."""
        return cls({i + 1: p for i, p in enumerate(probabilities)})

    def score(self, number):
        try:
            return self.probabilities[number]
        except KeyError:
            raise ExternalModelUnavailable(f"No score for number {number}") from None


def score_vector(scorer, game):
    """
    Scores for numbers 1..range as a float array (index 0 = number 1).

    Raises ExternalModelUnavailable if the scorer is missing, fails, or
    returns anything outside [0, 1].
    """
    if scorer is None:
        raise ExternalModelUnavailable("No scoring model has been provided.")
    try:
        scores = np.array([float(scorer.score(n)) for n in game.numbers], dtype=float)
    except ExternalModelUnavailable:
        raise
    except Exception as e:
        raise ExternalModelUnavailable(f"Scoring model failed: {e}") from e

    if not np.all(np.isfinite(scores)) or scores.min() < 0 or scores.max() > 1:
        raise ExternalModelUnavailable("Scoring model returned values outside [0, 1].")
    return scores
