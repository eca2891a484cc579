"""
Keyed persistence for game aggregates.

Games are stored encoded, so every load hands back a private copy and no
two requests ever share a mutable aggregate. `save` is a compare-and-swap
on the version observed at load time.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict

from .errors import NotFoundError, WriteConflictError, GAME_NOT_FOUND, WRITE_CONFLICT
from .models import GameState
from .serialization import decode_game, encode_game

logger = logging.getLogger(__name__)


class GameStore(ABC):
    """Read-modify-write access to games keyed by id."""

    @abstractmethod
    def load(self, game_id: str) -> GameState:
        """Return the stored game or raise NotFoundError."""

    @abstractmethod
    def save(self, state: GameState, expected_version: int) -> GameState:
        """
        Persist `state` if the stored version still equals `expected_version`.

        Returns the saved game with its new version. Raises WriteConflictError
        when another writer got there first.
        """

    @abstractmethod
    def create(self, state: GameState) -> GameState:
        """Insert a new game; raises WriteConflictError if the id is taken."""

    @abstractmethod
    def exists(self, game_id: str) -> bool:
        ...


class InMemoryGameStore(GameStore):
    def __init__(self, clock: Callable[[], float] = time.time):
        self._records: Dict[str, bytes] = {}
        self._versions: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def load(self, game_id: str) -> GameState:
        with self._lock:
            raw = self._records.get(game_id)
        if raw is None:
            raise NotFoundError(GAME_NOT_FOUND, "Game not found")
        return decode_game(raw)

    def save(self, state: GameState, expected_version: int) -> GameState:
        with self._lock:
            if state.id not in self._records:
                raise NotFoundError(GAME_NOT_FOUND, "Game not found")

            current_version = self._versions[state.id]
            if current_version != expected_version:
                logger.warning(
                    f"Write conflict on game {state.id}: expected version "
                    f"{expected_version}, found {current_version}"
                )
                raise WriteConflictError(WRITE_CONFLICT, "Game was modified concurrently, retry the request")

            state.version = expected_version + 1
            state.updated_at = self._clock()
            raw = encode_game(state)
            self._records[state.id] = raw
            self._versions[state.id] = state.version
        return decode_game(raw)

    def create(self, state: GameState) -> GameState:
        with self._lock:
            if state.id in self._records:
                raise WriteConflictError(WRITE_CONFLICT, f"Game {state.id} already exists")
            state.version = 0
            raw = encode_game(state)
            self._records[state.id] = raw
            self._versions[state.id] = 0
        return decode_game(raw)

    def exists(self, game_id: str) -> bool:
        with self._lock:
            return game_id in self._records
