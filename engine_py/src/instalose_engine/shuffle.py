"""
Card shuffling and dealing utilities.
"""

import random
import uuid
from typing import List, Optional

from .constants import DECK_FILL_PATTERN, GAME_ID_ALPHABET
from .models import Card, CardKind, Player
from .rules import RuleConfig, default_rules


def new_card(kind: CardKind) -> Card:
    return Card(id=f"card-{uuid.uuid4().hex[:12]}", kind=kind)


def create_deck(player_count: int, rules: RuleConfig = default_rules) -> List[Card]:
    """
    Build the filler deck for a game.

    Kinds cycle through DECK_FILL_PATTERN until the deck holds enough cards to
    deal every starting hand and leave the gameplay buffer. Save and
    Elimination cards are not part of it.
    """
    count = rules.filler_card_count(player_count)
    return [
        new_card(DECK_FILL_PATTERN[i % len(DECK_FILL_PATTERN)])
        for i in range(count)
    ]


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Return a uniformly shuffled copy of the deck.

    Args:
        deck: Cards to shuffle
        rng: Optional random source for deterministic shuffling
    """
    deck_copy = deck.copy()
    (rng or random).shuffle(deck_copy)
    return deck_copy


def deal_initial_hands(
    players: List[Player],
    deck: List[Card],
    rules: RuleConfig = default_rules,
) -> List[Card]:
    """
    Give each player one Save card, then deal the rest of the starting hand
    round-robin from the top of the deck.

    Mutates the players' hands and returns the remaining deck.
    """
    remaining = deck.copy()
    for player in players:
        player.hand = [new_card(CardKind.SAVE)]

    for _ in range(rules.starting_hand_size - 1):
        for player in players:
            if remaining:
                player.hand.append(remaining.pop())

    return remaining


def add_elimination_cards(
    deck: List[Card],
    player_count: int,
    rng: Optional[random.Random] = None,
) -> List[Card]:
    """
    Add player_count - 1 Elimination cards and reshuffle.

    Only call this after the starting hands are dealt; it is what keeps
    Elimination cards out of every starting hand.
    """
    eliminations = [new_card(CardKind.ELIMINATION) for _ in range(player_count - 1)]
    return shuffle_deck(deck + eliminations, rng)


def shuffle_turn_order(player_ids: List[str], rng: Optional[random.Random] = None) -> List[str]:
    """Independent shuffle of player ids fixing the turn order."""
    order = list(player_ids)
    (rng or random).shuffle(order)
    return order


def generate_game_id(length: int, rng: Optional[random.Random] = None) -> str:
    source = rng or random
    return "".join(source.choice(GAME_ID_ALPHABET) for _ in range(length))
