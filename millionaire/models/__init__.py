"""
External scoring models

The number-scoring model is trained and hosted outside this package; this
subpackage holds the adapters that validate its output:
- scoring: StaticScorer and score_vector for any score(number) collaborator
"""

from . import scoring

__all__ = [
    "scoring",
]
