"""
Precondition checks for player actions.

Every check runs against the loaded state before anything is mutated, so a
failed action leaves the game untouched.
"""

from typing import Optional, Type

from .constants import ACTION_DRAW, ACTION_PLAY_CARD, STATUS_IN_PROGRESS
from .errors import (
    AuthorizationError, GameError, RuleViolationError, StateConflictError,
    ValidationError,
    CARD_NOT_IN_HAND, DECK_EMPTY, GAME_NOT_IN_PROGRESS, INVALID_ACTION,
    INVALID_MANUAL_PLAY, INVALID_REQUEST, MISSING_PAIR, NOT_YOUR_TURN,
    PLAYER_ELIMINATED, PLAYER_NOT_FOUND,
)
from .models import Card, CardKind, GameState, PlayerAction


class ValidationResult:
    """Result of action validation."""

    def __init__(
        self,
        valid: bool,
        error_cls: Optional[Type[GameError]] = None,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        card: Optional[Card] = None,
    ):
        self.valid = valid
        self.error_cls = error_cls
        self.error_code = error_code
        self.error_message = error_message
        self.card = card

    @classmethod
    def success(cls, card: Optional[Card] = None) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, card=card)

    @classmethod
    def error(cls, error_cls: Type[GameError], error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_cls=error_cls, error_code=error_code, error_message=error_message)

    def raise_if_invalid(self) -> None:
        if not self.valid:
            raise self.error_cls(self.error_code, self.error_message)


def validate_turn(state: GameState, player_id: str) -> ValidationResult:
    """Status, turn ownership and liveness, in that order."""
    if state.status != STATUS_IN_PROGRESS:
        return ValidationResult.error(
            StateConflictError, GAME_NOT_IN_PROGRESS, "Game not in progress"
        )
    if state.current_turn_player_id != player_id:
        return ValidationResult.error(AuthorizationError, NOT_YOUR_TURN, "Not your turn")

    player = state.get_player(player_id)
    if player is None:
        return ValidationResult.error(AuthorizationError, PLAYER_NOT_FOUND, "Invalid player")
    if not player.alive:
        return ValidationResult.error(AuthorizationError, PLAYER_ELIMINATED, "Player has been eliminated")

    return ValidationResult.success()


def validate_draw(state: GameState) -> ValidationResult:
    if not state.deck:
        return ValidationResult.error(RuleViolationError, DECK_EMPTY, "Deck is empty")
    return ValidationResult.success()


def validate_play(state: GameState, player_id: str, card_id: Optional[str]) -> ValidationResult:
    """Check that the card is in hand and playable by its kind's constraints."""
    if not card_id:
        return ValidationResult.error(ValidationError, INVALID_REQUEST, "Missing cardId")

    player = state.get_player(player_id)
    card = player.find_card(card_id)
    if card is None:
        return ValidationResult.error(RuleViolationError, CARD_NOT_IN_HAND, "Card not in hand")

    if card.kind == CardKind.SAVE:
        return ValidationResult.error(
            RuleViolationError, INVALID_MANUAL_PLAY,
            "Panic cards can only be played automatically when you draw an Insta-Lose card"
        )

    if card.kind.is_pair and player.count_kind(card.kind) < 2:
        return ValidationResult.error(
            RuleViolationError, MISSING_PAIR,
            "You need a matching pair card to play this card"
        )

    return ValidationResult.success(card)


def validate_action(state: GameState, action: PlayerAction) -> ValidationResult:
    """Run every precondition for an action."""
    if action.type not in (ACTION_DRAW, ACTION_PLAY_CARD):
        return ValidationResult.error(ValidationError, INVALID_ACTION, f"Invalid action type: {action.type}")

    result = validate_turn(state, action.player_id)
    if not result.valid:
        return result

    if action.type == ACTION_DRAW:
        return validate_draw(state)
    return validate_play(state, action.player_id, action.card_id)
