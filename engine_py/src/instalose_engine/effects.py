"""
Card effects implementation.

Each handler works on the engine's private working copy of the game and
mutates it in place. Handlers never advance the turn themselves; they report
whether the turn should advance and the engine does it.
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .constants import (
    RESULT_DREW_CARD, RESULT_ELIMINATED, RESULT_PAIR_PLAYED, RESULT_PEEKED,
    RESULT_PLAYED, RESULT_SAVED, RESULT_SHUFFLED, RESULT_SKIPPED,
    RESULT_STOLE_CARD,
)
from .models import Card, CardKind, GameState, Player
from .rules import RuleConfig
from .shuffle import shuffle_deck


@dataclass
class EffectResult:
    result: str
    advance_turn: bool = False
    card_kind: Optional[CardKind] = None
    target_player_id: Optional[str] = None
    stolen_card_kind: Optional[CardKind] = None
    peeked_cards: List[Card] = field(default_factory=list)


def resolve_draw(state: GameState, player: Player, rng: random.Random) -> EffectResult:
    """
    Draw the top card and resolve it.

    An Elimination card is countered by the first Save card in hand: the Save
    card is discarded and the Elimination card goes back into a reshuffled
    deck. Without a Save card the player is out and the Elimination card is
    discarded for good.
    """
    drawn = state.deck.pop()

    if drawn.kind == CardKind.ELIMINATION:
        save = player.find_kind(CardKind.SAVE)
        if save is None:
            player.alive = False
            state.discard.append(drawn)
            result = RESULT_ELIMINATED
        else:
            player.hand.remove(save)
            state.discard.append(save)
            state.deck = shuffle_deck(state.deck + [drawn], rng)
            result = RESULT_SAVED
    else:
        player.hand.append(drawn)
        result = RESULT_DREW_CARD

    return EffectResult(result=result, advance_turn=True, card_kind=drawn.kind)


def apply_skip(state: GameState, player: Player, card: Card, rng, rules, target_player_id=None) -> EffectResult:
    """End the turn without drawing."""
    _discard_from_hand(state, player, card)
    return EffectResult(result=RESULT_SKIPPED, advance_turn=True)


def apply_shuffle(state: GameState, player: Player, card: Card, rng, rules, target_player_id=None) -> EffectResult:
    _discard_from_hand(state, player, card)
    state.deck = shuffle_deck(state.deck, rng)
    return EffectResult(result=RESULT_SHUFFLED)


def apply_peek(state: GameState, player: Player, card: Card, rng, rules: RuleConfig, target_player_id=None) -> EffectResult:
    """Reveal the top cards in the order they would be drawn."""
    _discard_from_hand(state, player, card)
    top = state.deck[-rules.peek_count:] if state.deck else []
    return EffectResult(result=RESULT_PEEKED, peeked_cards=list(reversed(top)))


def apply_pair(
    state: GameState,
    player: Player,
    card: Card,
    rng: random.Random,
    rules: RuleConfig,
    target_player_id: Optional[str] = None,
) -> EffectResult:
    """
    Discard the played card and its matching partner, then steal one random
    card from the target if the target is another living player holding at
    least one card.
    """
    _discard_from_hand(state, player, card)
    partner = player.find_kind(card.kind)
    _discard_from_hand(state, player, partner)

    target = state.get_player(target_player_id)
    if target is None or target.id == player.id or not target.alive or not target.hand:
        return EffectResult(result=RESULT_PAIR_PLAYED)

    stolen = target.hand.pop(rng.randrange(len(target.hand)))
    player.hand.append(stolen)
    return EffectResult(
        result=RESULT_STOLE_CARD,
        target_player_id=target.id,
        stolen_card_kind=stolen.kind,
    )


def apply_plain(state: GameState, player: Player, card: Card, rng, rules, target_player_id=None) -> EffectResult:
    _discard_from_hand(state, player, card)
    return EffectResult(result=RESULT_PLAYED)


def _discard_from_hand(state: GameState, player: Player, card: Card) -> None:
    player.hand.remove(card)
    state.discard.append(card)


EffectHandler = Callable[..., EffectResult]

# Save is absent on purpose: it is only ever played by resolve_draw.
CARD_EFFECTS: Dict[CardKind, EffectHandler] = {
    CardKind.SKIP: apply_skip,
    CardKind.SHUFFLE: apply_shuffle,
    CardKind.PEEK: apply_peek,
    CardKind.PAIR_A: apply_pair,
    CardKind.PAIR_B: apply_pair,
    CardKind.PAIR_C: apply_pair,
    CardKind.ELIMINATION: apply_plain,
}


def apply_card_effect(
    state: GameState,
    player: Player,
    card: Card,
    rng: random.Random,
    rules: RuleConfig,
    target_player_id: Optional[str] = None,
) -> EffectResult:
    handler = CARD_EFFECTS.get(card.kind, apply_plain)
    effect = handler(state, player, card, rng, rules, target_player_id=target_player_id)
    effect.card_kind = card.kind
    return effect
