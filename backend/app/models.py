import enum
from dataclasses import dataclass, field
from typing import Dict, Optional

from app.services.games.colors import Color, WHITE, to_hex


PLAYER_IDS = (1, 2)


class GameState(enum.Enum):
    NAME_ENTRY = 'name_entry'
    WAITING = 'waiting'
    SHOWING = 'showing'
    PICKING = 'picking'
    RESULTS = 'results'


@dataclass
class Player:
    id: int
    name: str
    score: float = 0.0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
        }


def _fresh_guesses() -> Dict[int, Color]:
    return {pid: WHITE for pid in PLAYER_IDS}


def _zero_scores() -> Dict[int, float]:
    return {pid: 0.0 for pid in PLAYER_IDS}


@dataclass
class Round:
    index: int
    target: Color
    guesses: Dict[int, Color] = field(default_factory=_fresh_guesses)
    scores: Dict[int, float] = field(default_factory=_zero_scores)
    distances: Optional[Dict[int, float]] = None
    scored: bool = False

    def player_dict(self, player_id: int):
        distance = self.distances.get(player_id) if self.distances else None
        return {
            'guess': to_hex(self.guesses[player_id]),
            'round_score': self.scores[player_id],
            'distance': round(distance, 2) if distance is not None else None,
        }
