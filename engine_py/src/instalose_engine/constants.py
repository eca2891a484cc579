"""Game constants"""

from .models import CardKind

# Game status
STATUS_WAITING = "waiting"
STATUS_IN_PROGRESS = "in-progress"
STATUS_FINISHED = "finished"

# Action types
ACTION_DRAW = "draw"
ACTION_PLAY_CARD = "playCard"
ACTION_GAME_STARTED = "game-started"

# Action result tags
RESULT_DREW_CARD = "drew-card"
RESULT_ELIMINATED = "eliminated"
RESULT_SAVED = "saved-by-counter"
RESULT_STOLE_CARD = "stole-card"
RESULT_PAIR_PLAYED = "pair-played"
RESULT_SKIPPED = "skipped"
RESULT_SHUFFLED = "shuffled"
RESULT_PEEKED = "peeked"
RESULT_PLAYED = "played"

# Filler cycle for deck construction; Save and Elimination are added separately.
DECK_FILL_PATTERN = [
    CardKind.PAIR_A, CardKind.PAIR_A,
    CardKind.PAIR_B, CardKind.PAIR_B,
    CardKind.PAIR_C, CardKind.PAIR_C,
    CardKind.PEEK, CardKind.PEEK, CardKind.PEEK,
    CardKind.SKIP, CardKind.SKIP, CardKind.SKIP,
    CardKind.SHUFFLE, CardKind.SHUFFLE,
]

GAME_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

DEFAULT_ICON = "cat"
DEFAULT_COLOR = "blue"
