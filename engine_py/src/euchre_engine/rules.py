"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import SUITS


class RuleConfig(BaseModel):
    """Configuration for game rules and table pacing."""

    winning_score: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Points a team needs to win the match"
    )
    history_limit: int = Field(
        default=10,
        ge=1,
        description="Number of hand results kept in the rolling history"
    )
    log_limit: int = Field(
        default=50,
        ge=1,
        description="Number of human-readable log lines kept"
    )
    stick_the_dealer_suit: str = Field(
        default='spades',
        description="Suit the dealer is forced to call when everyone passes twice"
    )
    default_aggressiveness: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Aggressiveness used by bots without a personality"
    )
    bot_think_seconds: float = Field(
        default=1.2,
        ge=0,
        description="Delay before a bot acts (pacing only, 0 in tests)"
    )
    trick_clear_seconds: float = Field(
        default=3.0,
        ge=0,
        description="How long a completed trick stays on the table"
    )
    next_deal_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Pause between a finished hand and the next deal"
    )
    scoring_ack_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay before finishing a hand once every human acknowledged the overlay"
    )
    heartbeat_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Interval between freeze-detector snapshots"
    )
    freeze_threshold_seconds: float = Field(
        default=20.0,
        ge=0,
        description="Inactivity after which an unchanged table counts as frozen"
    )
    max_recovery_attempts: int = Field(
        default=3,
        ge=1,
        description="Remedies tried for one stall before giving up until the state moves"
    )

    @field_validator('stick_the_dealer_suit')
    @classmethod
    def validate_stick_suit(cls, v):
        """Validate the forced suit is a real suit."""
        if v not in SUITS:
            raise ValueError(f'stick_the_dealer_suit must be one of {SUITS}, got {v}')
        return v


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
