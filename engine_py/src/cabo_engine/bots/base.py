"""
Base bot interface and utilities.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..cards import card_value, is_protected
from ..models import Card, MemoryMap, Position, TableView
from ..rules import RuleConfig, default_rules


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    @classmethod
    def swap(cls, card_idx: int) -> 'BotAction':
        """Place the drawn card into an own slot."""
        return cls('swap', card_idx=card_idx)

    @classmethod
    def discard(cls) -> 'BotAction':
        """Discard the drawn card."""
        return cls('discard')

    @classmethod
    def power(cls) -> 'BotAction':
        """Discard the drawn card and use its power."""
        return cls('power')

    @property
    def card_idx(self) -> Optional[int]:
        return self.data.get('card_idx')

    def __repr__(self):
        return f"BotAction({self.type}, {self.data})"


@dataclass
class HandEstimate:
    total: int
    known_total: int
    unknown_count: int


class BaseBot(ABC):
    """
    Abstract base class for computer players.

    A bot only ever sees its own memory map and the public TableView; it never
    reads another player's memory or the true identity of an unseen card.
    """

    def __init__(self, player_index: int, rules: RuleConfig = default_rules,
                 rng: Optional[random.Random] = None):
        self.player_index = player_index
        self.rules = rules
        self.rng = rng or random.Random()

    @abstractmethod
    def should_take_discard(self, memory: MemoryMap, view: TableView) -> bool:
        """Take the discard top instead of drawing from the deck?"""

    @abstractmethod
    def decide_action(self, memory: MemoryMap, view: TableView, drawn: Card,
                      from_deck: bool) -> BotAction:
        """Swap, discard or use the power of a freshly drawn card."""

    @abstractmethod
    def find_match_targets(self, memory: MemoryMap, view: TableView,
                           top: Card) -> List[Position]:
        """Positions this bot believes hold the rank of top."""

    @abstractmethod
    def should_call_cabo(self, memory: MemoryMap, view: TableView) -> bool:
        """Call Cabo at the end of this turn?"""

    # Memory helpers

    def own_position(self, card_idx: int) -> Position:
        return Position(self.player_index, card_idx)

    def own_slots(self, view: TableView) -> List[int]:
        return view.occupied_indices(self.player_index)

    def unknown_own_slots(self, memory: MemoryMap, view: TableView) -> List[int]:
        return [c for c in self.own_slots(view) if self.own_position(c) not in memory]

    def worst_known_own(self, memory: MemoryMap, view: TableView) -> Tuple[int, int]:
        """
        Highest-valued known own card that may be replaced.

        Jokers and red Kings never count. Returns (slot, value) or (-1, -1).
        """
        worst_idx, worst_val = -1, -1
        for c in self.own_slots(view):
            known = memory.get(self.own_position(c))
            if known is None or is_protected(known):
                continue
            val = card_value(known)
            if val > worst_val:
                worst_idx, worst_val = c, val
        return worst_idx, worst_val

    def estimate_hand(self, player: int, memory: MemoryMap, view: TableView) -> HandEstimate:
        """Known values plus a flat guess for every unseen card of one player."""
        known_total = 0
        unknown_count = 0
        for c in view.occupied_indices(player):
            known = memory.get(Position(player, c))
            if known is not None:
                known_total += card_value(known)
            else:
                unknown_count += 1
        total = known_total + unknown_count * self.rules.unknown_card_estimate
        return HandEstimate(total, known_total, unknown_count)

    def pick(self, items: list):
        return items[self.rng.randrange(len(items))]
