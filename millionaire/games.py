"""
Game Profiles for the supported Canadian lotteries

Each game is defined by how many main numbers are drawn, the range they are
drawn from, and (for Daily Grand) the range of the separate Grand Number.
"""
import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GameProfile:
    game_id: str
    standard_size: int
    range: int
    grand_range: Optional[int] = None

    @property
    def numbers(self):
        """All main numbers of the game, ascending."""
        return list(range(1, self.range + 1))

    @property
    def num_cols(self):
        return [f"num{i}" for i in range(1, self.standard_size + 1)]


GAMES = {
    "dailyGrand": GameProfile("dailyGrand", standard_size=5, range=49, grand_range=7),
    "lottoMax": GameProfile("lottoMax", standard_size=7, range=50),
    "lotto649": GameProfile("lotto649", standard_size=6, range=49),
}

# Back-test hit targets used by the auto-tuner
HIT_TARGETS = {
    "dailyGrand": 3,
    "lotto649": 4,
    "lottoMax": 4,
}

# Hits needed for the lowest paying prize tier, used by the past-draw analysis
HITS_TO_WIN = {
    "dailyGrand": 2,
}
DEFAULT_HITS_TO_WIN = 3


def get_game(game_id):
    """Look up a game by id, raising KeyError with the known ids listed."""
    try:
        return GAMES[game_id]
    except KeyError:
        raise KeyError(
            f"Unknown game '{game_id}'. Expected one of: {', '.join(GAMES)}"
        ) from None


def hit_target(game: GameProfile) -> int:
    return HIT_TARGETS.get(game.game_id, math.ceil(game.standard_size / 2))


def hits_to_win(game: GameProfile) -> int:
    return HITS_TO_WIN.get(game.game_id, DEFAULT_HITS_TO_WIN)
