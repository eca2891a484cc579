# engine_py/src/instalose_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    category = "game"
    status_code = 400

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(GameError):
    """Missing or malformed request fields."""
    category = "validation"
    status_code = 400


class NotFoundError(GameError):
    category = "not-found"
    status_code = 404


class StateConflictError(GameError):
    """Request does not fit the game's current status."""
    category = "state-conflict"
    status_code = 409


class AuthorizationError(GameError):
    """Acting out of turn, or starting a game without being the MVP."""
    category = "authorization"
    status_code = 403


class RuleViolationError(GameError):
    category = "rule-violation"
    status_code = 400


class WriteConflictError(GameError):
    """Another writer committed between load and save."""
    category = "write-conflict"
    status_code = 409


# Specific error codes
INVALID_REQUEST = "INVALID_REQUEST"
GAME_NOT_FOUND = "GAME_NOT_FOUND"
ALREADY_STARTED = "ALREADY_STARTED"
GAME_FULL = "GAME_FULL"
ALREADY_JOINED = "ALREADY_JOINED"
NOT_MVP = "NOT_MVP"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
PLAYER_ELIMINATED = "PLAYER_ELIMINATED"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
DECK_EMPTY = "DECK_EMPTY"
CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
INVALID_MANUAL_PLAY = "INVALID_MANUAL_PLAY"
MISSING_PAIR = "MISSING_PAIR"
INVALID_ACTION = "INVALID_ACTION"
WRITE_CONFLICT = "WRITE_CONFLICT"
INTERNAL_ERROR = "INTERNAL"
