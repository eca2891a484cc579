"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=2,
        ge=2,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=100,
        ge=2,
        description="Maximum number of players allowed to join"
    )
    starting_hand_size: int = Field(
        default=7,
        ge=1,
        le=20,
        description="Cards per starting hand, including the Save card"
    )
    gameplay_buffer_per_player: int = Field(
        default=5,
        ge=0,
        description="Extra filler cards per player left in the deck after dealing"
    )
    action_log_limit: int = Field(
        default=50,
        ge=1,
        description="Most recent action records kept on the game"
    )
    view_action_limit: int = Field(
        default=10,
        ge=1,
        description="Most recent action records exposed in a view"
    )
    peek_count: int = Field(
        default=3,
        ge=1,
        description="Cards revealed by a Peek"
    )
    subscriber_ttl: int = Field(
        default=86400,
        ge=1,
        description="Seconds before an idle push subscription expires"
    )
    game_id_length: int = Field(default=6, ge=4, le=12)
    game_id_attempts: int = Field(default=10, ge=1)

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't undercut the minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def filler_card_count(self, player_count: int) -> int:
        """Filler cards needed to deal every hand and leave the gameplay buffer."""
        return player_count * (self.starting_hand_size - 1 + self.gameplay_buffer_per_player)


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
