"""
Game rule configuration and validation.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import JOKER_SUITS, RANKS, SUITS


class RuleConfig(BaseModel):
    """Configuration for a Cabo match and the AI's thresholds."""

    model_config = ConfigDict(extra="forbid")

    num_players: int = Field(
        default=2,
        ge=2,
        le=4,
        description="Number of seats: one human plus 1-3 computer opponents"
    )
    total_rounds: int = Field(
        default=1,
        ge=1,
        le=99,
        description="Rounds in the match"
    )
    memory_aids: bool = Field(
        default=False,
        description="Show remembered card values to the human (presentation only)"
    )
    hand_size: int = Field(
        default=4,
        ge=1,
        le=8,
        description="Cards dealt to each player"
    )
    initial_peek_slots: Tuple[int, ...] = Field(
        default=(2, 3),
        description="Slots every player memorises at the start of a round"
    )
    discard_take_threshold: int = Field(
        default=6,
        ge=-1,
        le=13,
        description="Highest discard value an AI will take"
    )
    unknown_card_estimate: int = Field(
        default=6,
        ge=0,
        le=13,
        description="Value assumed for an unseen card when estimating a hand"
    )
    cabo_bonus: int = Field(
        default=5,
        ge=0,
        description="Bonus/penalty applied to the Cabo caller"
    )
    cabo_max_unknown: int = Field(
        default=1,
        ge=0,
        description="Most unknown own cards an AI tolerates when calling Cabo"
    )
    cabo_ceiling_min: float = Field(
        default=10.0,
        description="Lower bound of the absolute score ceiling for an AI Cabo call"
    )
    cabo_ceiling_spread: float = Field(
        default=4.0,
        ge=0,
        description="Random spread added on top of cabo_ceiling_min"
    )
    cabo_slack: float = Field(
        default=3.0,
        ge=0,
        description="Random slack over the lowest opponent estimate"
    )
    log_limit: int = Field(
        default=80,
        ge=1,
        description="Entries kept in the in-game log"
    )
    peek_reveal_seconds: float = Field(
        default=2.5,
        ge=0,
        description="How long a peeked card stays face-up (0 = revert immediately)"
    )
    ai_step_delay: float = Field(
        default=0.0,
        ge=0,
        description="Pause between AI sub-steps in seconds"
    )
    dev_mode: bool = Field(
        default=False,
        description="Record AI reasoning in the in-game log"
    )
    seed: Optional[int] = Field(
        default=None,
        description="Seed for a reproducible game"
    )

    @field_validator('initial_peek_slots')
    @classmethod
    def validate_peek_slots(cls, v, info):
        """Peek slots must exist in a dealt hand."""
        hand_size = info.data.get('hand_size', 4)
        for slot in v:
            if not 0 <= slot < hand_size:
                raise ValueError(f'peek slot {slot} outside hand of {hand_size}')
        return v

    def get_deck_size(self) -> int:
        """Get the total number of cards in the deck."""
        return len(SUITS) * len(RANKS) + len(JOKER_SUITS)


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
