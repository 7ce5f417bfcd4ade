import logging
import random
import threading
import time
from typing import Callable, Dict, Optional

from app.models import GameState, Player, PLAYER_IDS, Round
from .colors import WHITE, Color, random_color, to_hex
from .scoring import score_round


log = logging.getLogger(__name__)

# How long the target stays on screen before picking opens
SHOW_DURATION_SEC = 5.0


class GameSession:
    """One two-player game: players, the current round and its reveal timer.

    Every action returns True when it changed the state and False when it was
    not legal in the current state (a no-op, never an error). Timer callbacks
    arrive from background tasks, so all mutation happens under ``_lock``.
    """

    def __init__(
        self,
        game_code: str,
        scheduler,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        on_change: Optional[Callable[['GameSession', GameState], None]] = None,
    ):
        self.game_code = game_code
        self.state = GameState.NAME_ENTRY
        self.players: Dict[int, Player] = {}
        self.current_round: Optional[Round] = None
        self.show_instructions = True
        self.closed = False

        self._scheduler = scheduler
        self._clock = clock
        self._rng = rng or random.Random()
        self._on_change = on_change
        self._next_round_index = 0
        self._deadline: Optional[float] = None
        self._timer = None
        self._lock = threading.RLock()
        # Last applied time (ms) per debounced controller action
        self.action_times: Dict[str, float] = {}

    # ---- actions ----

    def start_game(self, name1, name2) -> bool:
        with self._lock:
            if self.closed or self.state != GameState.NAME_ENTRY:
                return False
            name1 = (name1 or '').strip()
            name2 = (name2 or '').strip()
            if not name1 or not name2:
                return False
            self.players = {1: Player(1, name1), 2: Player(2, name2)}
            self.state = GameState.WAITING
            log.info(f"[game-start] game={self.game_code} players={name1!r},{name2!r}")
            state = self.state
        self._notify(state)
        return True

    def start_round(self) -> bool:
        with self._lock:
            if self.closed or self.state != GameState.WAITING:
                return False
            self._begin_round()
            state = self.state
        self._notify(state)
        return True

    def start_next_round(self) -> bool:
        with self._lock:
            if self.closed or self.state != GameState.RESULTS:
                return False
            self._begin_round()
            state = self.state
        self._notify(state)
        return True

    def set_guess(self, player_id: int, color: Color) -> bool:
        with self._lock:
            if self.closed or self.state != GameState.PICKING or player_id not in PLAYER_IDS:
                return False
            self.current_round.guesses[player_id] = color
            state = self.state
        self._notify(state)
        return True

    def submit_guesses(self) -> bool:
        with self._lock:
            if self.closed or self.state != GameState.PICKING:
                return False
            rnd = self.current_round
            if rnd.scored:
                return False
            outcome = score_round(rnd.target, rnd.guesses[1], rnd.guesses[2])
            rnd.distances = dict(zip(PLAYER_IDS, outcome.distances))
            rnd.scores = dict(zip(PLAYER_IDS, outcome.scores))
            rnd.scored = True
            for pid in PLAYER_IDS:
                self.players[pid].score += rnd.scores[pid]
            self.state = GameState.RESULTS
            log.info(
                f"[round-scored] game={self.game_code} round={rnd.index} "
                f"winner={outcome.winner or 'tie'} scores={outcome.scores}"
            )
            state = self.state
        self._notify(state)
        return True

    def reveal_elapsed(self, round_index: int) -> bool:
        """Timer callback: Showing -> Picking for the round it was armed for."""
        with self._lock:
            rnd = self.current_round
            if (
                self.closed
                or self.state != GameState.SHOWING
                or rnd is None
                or rnd.index != round_index
            ):
                log.info(f"[timer-stale] game={self.game_code} round={round_index} state={self.state.value}")
                return False
            self.state = GameState.PICKING
            self._timer = None
            self._deadline = None
            state = self.state
        self._notify(state)
        return True

    def toggle_instructions(self) -> bool:
        with self._lock:
            if self.closed or self.state == GameState.NAME_ENTRY:
                return False
            self.show_instructions = not self.show_instructions
            state = self.state
        self._notify(state)
        return True

    def close(self) -> None:
        """Tear down: cancel the pending reveal timer and ignore later actions."""
        with self._lock:
            if self.closed:
                return
            self.closed = True
            self._cancel_timer()
            log.info(f"[session-close] game={self.game_code}")

    # ---- derived values ----

    @property
    def round_index(self) -> Optional[int]:
        return self.current_round.index if self.current_round else None

    def fraction_remaining(self, now: Optional[float] = None) -> Optional[float]:
        """Share of the display time left, 1.0 down to 0.0, while Showing."""
        with self._lock:
            if self.state != GameState.SHOWING or self._deadline is None:
                return None
            now = self._clock() if now is None else now
            left = (self._deadline - now) / SHOW_DURATION_SEC
            return max(0.0, min(1.0, left))

    def to_dict(self):
        with self._lock:
            rnd = self.current_round
            reveal = self.state in (GameState.SHOWING, GameState.RESULTS)
            players = []
            for pid in PLAYER_IDS:
                player = self.players.get(pid)
                pd = player.to_dict() if player else {'id': pid, 'name': None, 'score': 0.0}
                if rnd:
                    pd.update(rnd.player_dict(pid))
                else:
                    pd.update({'guess': to_hex(WHITE), 'round_score': 0.0, 'distance': None})
                players.append(pd)
            fraction = self.fraction_remaining()
            return {
                'game_code': self.game_code,
                'state': self.state.value,
                'round_index': self.round_index,
                'round_number': (rnd.index + 1) if rnd else 1,
                'target': to_hex(rnd.target) if (rnd and reveal) else None,
                'players': players,
                'show_instructions': self.show_instructions,
                'fraction_remaining': fraction,
                'deadline_in': round(fraction * SHOW_DURATION_SEC, 3) if fraction is not None else None,
                'closed': self.closed,
            }

    # ---- internals ----

    def _begin_round(self) -> None:
        self._cancel_timer()
        index = self._next_round_index
        self._next_round_index += 1
        self.current_round = Round(index=index, target=random_color(self._rng))
        self.state = GameState.SHOWING
        self.show_instructions = False
        self._deadline = self._clock() + SHOW_DURATION_SEC
        self._timer = self._scheduler.call_later(
            SHOW_DURATION_SEC,
            lambda: self.reveal_elapsed(index),
            label=f"game={self.game_code} round={index}",
        )
        log.info(f"[round-start] game={self.game_code} round={index} target={to_hex(self.current_round.target)}")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._deadline = None

    def _notify(self, state: GameState) -> None:
        # state is captured under the lock so each transition is reported once
        if self._on_change is not None:
            self._on_change(self, state)
