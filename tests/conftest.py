import numpy as np
import pandas as pd
import pytest

from millionaire.games import GAMES, GameProfile
from millionaire.repository import draws_to_frame

END_DATE = pd.Timestamp("2026-10-01")


def _weekly_dates(n, end=END_DATE):
    return [end - pd.Timedelta(days=7 * (n - 1 - i)) for i in range(n)]


@pytest.fixture
def lotto649():
    return GAMES["lotto649"]


@pytest.fixture
def daily_grand():
    return GAMES["dailyGrand"]


@pytest.fixture
def tiny_game():
    return GameProfile("tiny", standard_size=2, range=6)


@pytest.fixture
def make_frame():
    """Build a draw frame from a list of main-number lists, one draw per week."""

    def _make(game, mains, grands=None, end=END_DATE):
        dates = _weekly_dates(len(mains), end)
        rows = []
        for i, (date, main) in enumerate(zip(dates, mains)):
            rows.append({
                "date": date.strftime("%Y-%m-%d"),
                "main": list(main),
                "grand": grands[i] if grands else None,
                "bonus": None,
            })
        return draws_to_frame(rows, game)

    return _make


@pytest.fixture
def random_history(make_frame):
    """Uniformly random valid draws ending on END_DATE."""

    def _history(game, n, seed=0):
        rng = np.random.default_rng(seed)
        mains = [
            sorted(int(x) for x in rng.choice(np.arange(1, game.range + 1), game.standard_size, replace=False))
            for _ in range(n)
        ]
        grands = None
        if game.grand_range:
            grands = [int(rng.integers(1, game.grand_range + 1)) for _ in range(n)]
        return make_frame(game, mains, grands)

    return _history


@pytest.fixture
def empty_frame():
    def _empty(game):
        return draws_to_frame([], game)

    return _empty


@pytest.fixture
def blank_context(lotto649, empty_frame):
    """Filter context for 6/49 with no history at all."""
    from millionaire.analysis import build_profile
    from millionaire.filters import FilterContext

    with pytest.warns(UserWarning):
        profile = build_profile(empty_frame(lotto649), lotto649)
    return FilterContext(profile=profile)
