import logging
import math
from dataclasses import dataclass
from typing import Tuple

from .colors import Color, distance, squared_distance


log = logging.getLogger(__name__)

BASE_POINT = 1.0
TIE_POINT = 0.5
MAX_BONUS = 5
BONUS_STEP = 10


@dataclass(frozen=True)
class RoundOutcome:
    distances: Tuple[float, float]
    scores: Tuple[float, float]
    winner: int  # 1 or 2, 0 on a tie

    @property
    def is_tie(self) -> bool:
        return self.winner == 0


def accuracy_bonus(squared: int) -> int:
    """Bonus for a winning guess at the given squared distance.

    floor(sqrt(n) / 10) == isqrt(n) // 10, so the step boundaries are exact.
    """
    return max(0, MAX_BONUS - math.isqrt(squared) // BONUS_STEP)


def score_round(target: Color, guess1: Color, guess2: Color) -> RoundOutcome:
    """Score one round for two guesses against the target.

    The strictly closer guess gets the base point plus the accuracy bonus,
    the other gets nothing. Equal distances (including both exact) give each
    player half a point and no bonus.
    """
    sq1 = squared_distance(target, guess1)
    sq2 = squared_distance(target, guess2)
    distances = (distance(target, guess1), distance(target, guess2))

    if sq1 < sq2:
        scores = (BASE_POINT + accuracy_bonus(sq1), 0.0)
        winner = 1
    elif sq2 < sq1:
        scores = (0.0, BASE_POINT + accuracy_bonus(sq2))
        winner = 2
    else:
        scores = (TIE_POINT, TIE_POINT)
        winner = 0

    log.debug(f"[round-score] d1={distances[0]:.2f} d2={distances[1]:.2f} scores={scores}")
    return RoundOutcome(distances=distances, scores=scores, winner=winner)
