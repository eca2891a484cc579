"""Game models and data structures"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CardKind(str, Enum):
    """Closed set of card kinds."""
    ELIMINATION = "insta-lose"
    SAVE = "panic"
    SKIP = "skip"
    SHUFFLE = "misdeal"
    PEEK = "peek"
    PAIR_A = "pairs-A"
    PAIR_B = "pairs-B"
    PAIR_C = "pairs-C"

    @property
    def is_pair(self) -> bool:
        return self in (CardKind.PAIR_A, CardKind.PAIR_B, CardKind.PAIR_C)


@dataclass(frozen=True)
class Card:
    id: str
    kind: CardKind


@dataclass
class Player:
    id: str
    name: str
    icon: str
    color: str
    hand: List[Card] = field(default_factory=list)
    alive: bool = True

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def find_kind(self, kind: CardKind) -> Optional[Card]:
        for card in self.hand:
            if card.kind == kind:
                return card
        return None

    def count_kind(self, kind: CardKind) -> int:
        return sum(1 for card in self.hand if card.kind == kind)


@dataclass(frozen=True)
class ActionRecord:
    type: str
    timestamp: float
    sequence_number: int
    player_id: Optional[str] = None
    card_kind: Optional[CardKind] = None
    result: Optional[str] = None
    target_player_id: Optional[str] = None
    stolen_card_kind: Optional[CardKind] = None  # known to thief and victim only
    winner_id: Optional[str] = None


@dataclass
class GameState:
    id: str
    host_id: Optional[str] = None
    status: str = 'waiting'  # waiting|in-progress|finished
    players: List[Player] = field(default_factory=list)
    turn_order: List[str] = field(default_factory=list)
    current_turn_player_id: Optional[str] = None
    deck: List[Card] = field(default_factory=list)  # top of the deck is the end of the list
    discard: List[Card] = field(default_factory=list)
    actions: List[ActionRecord] = field(default_factory=list)
    total_action_count: int = 0
    winner_id: Optional[str] = None
    version: int = 0
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def mvp_id(self) -> Optional[str]:
        return self.players[0].id if self.players else None

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def alive_players(self) -> List[Player]:
        return [p for p in self.players if p.alive]


@dataclass
class PlayerAction:
    """An inbound request to the rules engine."""
    player_id: str
    type: str  # draw|playCard
    card_id: Optional[str] = None
    target_player_id: Optional[str] = None


@dataclass
class Subscriber:
    connection_id: str
    game_id: str
    viewer_player_id: Optional[str] = None  # None for host/spectator
    is_host: bool = False
    connected_at: float = 0.0
    expires_at: float = 0.0
    last_delivered_version: int = -1
