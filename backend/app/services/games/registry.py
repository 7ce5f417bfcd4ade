import random
import string
import threading
import time
from typing import Callable, Dict, Optional

from flask import current_app

from app.models import GameState
from .session import GameSession


EXTENSION_KEY = 'color_sessions'


def generate_game_code(taken, length=4, rng=None):
    """Generate a unique, short game code."""
    rng = rng or random
    while True:
        code = ''.join(rng.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


class SessionRegistry:
    """Live game sessions keyed by game code. Nothing outlives the process."""

    def __init__(
        self,
        scheduler=None,
        clock: Callable[[], float] = time.monotonic,
        rng_factory: Callable[[], random.Random] = random.Random,
        on_change: Optional[Callable[[GameSession, GameState], None]] = None,
    ):
        self.scheduler = scheduler
        self.clock = clock
        self.rng_factory = rng_factory
        self.on_change = on_change
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def create(self) -> GameSession:
        with self._lock:
            code = generate_game_code(self._sessions)
            session = GameSession(
                code,
                scheduler=self.scheduler,
                clock=self.clock,
                rng=self.rng_factory(),
                on_change=self.on_change,
            )
            self._sessions[code] = session
        return session

    def get(self, game_code: Optional[str]) -> Optional[GameSession]:
        if not game_code:
            return None
        return self._sessions.get(game_code.upper())

    def end(self, game_code: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.pop(game_code.upper(), None)
        if session is not None:
            session.close()
        return session

    def __len__(self):
        return len(self._sessions)


def get_registry() -> SessionRegistry:
    return current_app.extensions[EXTENSION_KEY]
